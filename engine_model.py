# engine_model.py
#
# MIT License
#
# Copyright (c) 2025 Chris Cullin


from dataclasses import dataclass, asdict, fields, replace
import collections.abc

import numpy as np

import physics_functions as pf
import constants as c


class InvalidConfiguration(ValueError):
    """A configuration value lies outside its physical range."""


class InvalidGeometry(InvalidConfiguration):
    """Connecting rod too short for the crank: sqrt(1 - λ² sin² θ) is undefined."""


class FixedKeyDictionary(dict):
    """A dictionary that only allows assignments or updates to predefined keys."""

    def __init__(self, *args, **kwargs):
        # We allow keys to be set ONLY during the initial super().__init__ call
        super().__init__(*args, **kwargs)
        self._valid_keys = set(self.keys())
        self._is_initialized = True

    def _check_key(self, key):
        if hasattr(self, "_is_initialized") and key not in self._valid_keys:
            raise KeyError(
                f"Attempted to assign a new key '{key}'. "
                f"Only existing keys ({sorted(self._valid_keys)}) are allowed."
            )

    def __setitem__(self, key, value):
        self._check_key(key)
        super().__setitem__(key, value)

    def update(self, other=None, **kwargs):
        """Overrides dict.update() to enforce key restriction."""
        if other:
            if isinstance(other, collections.abc.Mapping):
                incoming_keys = list(other.keys())
            else:
                other = list(other)
                incoming_keys = [k for k, v in other]
            for key in incoming_keys:
                self._check_key(key)
        for key in kwargs:
            self._check_key(key)

        # If all checks pass, call the original update
        super().update(other or (), **kwargs)

    def setdefault(self, key, default=None):
        """Overrides dict.setdefault() to enforce key restriction."""
        self._check_key(key)
        return super().setdefault(key, default)


@dataclass(frozen=True)
class EngineConfiguration:
    # geometry, mm
    bore: float = c.BORE_MM
    stroke: float = c.STROKE_MM
    con_rod_length: float = c.LEN_CONROD_MM
    compression_ratio: float = c.COMP_RATIO

    # operating point
    rpm: float = c.RPM
    load: float = c.LOAD_NM
    max_load: float = c.MAX_LOAD_NM

    # ambient
    ambient_pressure: float = c.P_AMBIENT_BAR
    ambient_temperature: float = c.T_AMBIENT_K

    # thermodynamics
    gamma: float = c.GAMMA_AIR
    gas_constant: float = c.R_SPECIFIC_AIR

    # combustion timing, degrees
    ignition_advance: float = c.IGNITION_ADVANCE_DEG
    combustion_duration: float = c.COMBUSTION_DURATION_DEG

    def __post_init__(self):
        # frozen: coerce through object.__setattr__
        for f in fields(self):
            value = getattr(self, f.name)
            try:
                object.__setattr__(self, f.name, float(value))
            except (TypeError, ValueError) as err:
                raise InvalidConfiguration(f"{f.name} must be a number, got {value!r}") from err

    def validate(self):
        """Raises InvalidConfiguration / InvalidGeometry on the first violated bound."""
        positive = (
            "bore",
            "stroke",
            "con_rod_length",
            "rpm",
            "max_load",
            "ambient_pressure",
            "ambient_temperature",
            "gas_constant",
            "combustion_duration",
        )
        for name in positive:
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise InvalidConfiguration(f"{name} must be > 0, got {value}")

        for name in ("load", "ignition_advance"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0:
                raise InvalidConfiguration(f"{name} must be >= 0, got {value}")

        if not np.isfinite(self.compression_ratio) or self.compression_ratio <= 1.0:
            raise InvalidConfiguration(
                f"compression_ratio must be > 1, got {self.compression_ratio}"
            )
        if not np.isfinite(self.gamma) or self.gamma <= 1.0:
            raise InvalidConfiguration(f"gamma must be > 1, got {self.gamma}")

        if self.con_rod_length <= self.stroke / 2.0:
            raise InvalidGeometry(
                f"con_rod_length ({self.con_rod_length} mm) must exceed the crank "
                f"radius ({self.stroke / 2.0} mm)"
            )


@dataclass(frozen=True)
class DerivedGeometry:
    crank_radius: float  # mm
    rod_ratio: float  # λ = R/L
    piston_area: float  # mm²
    displacement_volume: float  # m³
    displacement_volume_cc: float
    clearance_volume: float  # m³
    clearance_volume_cc: float
    total_volume: float  # m³
    total_volume_cc: float

    @classmethod
    def from_config(cls, cfg: EngineConfiguration):
        R = cfg.stroke / 2.0
        A_piston = np.pi * cfg.bore**2 / 4.0
        V_d_cc = A_piston * cfg.stroke / 1000.0  # mm³ -> cm³
        V_c_cc = V_d_cc / (cfg.compression_ratio - 1.0)
        return cls(
            crank_radius=R,
            rod_ratio=R / cfg.con_rod_length,
            piston_area=A_piston,
            displacement_volume=V_d_cc * 1e-6,
            displacement_volume_cc=V_d_cc,
            clearance_volume=V_c_cc * 1e-6,
            clearance_volume_cc=V_c_cc,
            total_volume=(V_c_cc + V_d_cc) * 1e-6,
            total_volume_cc=V_c_cc + V_d_cc,
        )


@dataclass(frozen=True, slots=True)
class CyclePoint:
    theta: float  # degrees
    volume: float  # cm³
    pressure: float  # bar
    phase: str


PRESSURE_MODELS = {
    "theoretical": pf.calc_theoretical_pressure,
    "actual": pf.calc_actual_pressure,
    "actual_six_phase": pf.calc_actual_pressure,
    "actual_wiebe": pf.calc_wiebe_pressure,
}


def get_pressure_model(model):
    try:
        return PRESSURE_MODELS[model]
    except KeyError:
        raise InvalidConfiguration(
            f"Unknown pressure model '{model}'. Choose from {sorted(PRESSURE_MODELS)}."
        ) from None


def cycle_angles(step=c.THETA_DELTA):
    """0, step, 2*step, ... up to and including 720 when step divides it."""
    if not np.isfinite(step) or step <= 0:
        raise InvalidConfiguration(f"Sampling step must be > 0, got {step}")
    n_steps = int(np.floor((c.THETA_MAX - c.THETA_MIN) / step + 1e-9))
    return c.THETA_MIN + np.arange(n_steps + 1) * step


class EngineModel:
    """
    Single-cylinder four-stroke SI engine over one 720° cycle.

    theta = 0 is TDC at the start of suction, 360 is TDC of the power stroke.
    Every query is a pure function of (configuration, theta). The configuration
    and its derived geometry are replaced together by update_params(), so a
    query never sees one without the other.
    """

    def __init__(self, config=None, **params):
        base = config if config is not None else EngineConfiguration()
        base.validate()
        self.config = base
        self.geometry = DerivedGeometry.from_config(base)
        if params:
            self.update_params(params)

    # ----------------------------------------------------------------------
    def update_params(self, params=None, **kwargs):
        """
        Merge a partial update. Unknown keys raise KeyError, bad values raise
        InvalidConfiguration; in both cases the model is left untouched.
        """
        merged = FixedKeyDictionary(asdict(self.config))
        merged.update(params, **kwargs)

        candidate = replace(self.config, **merged)
        candidate.validate()
        geometry = DerivedGeometry.from_config(candidate)

        self.config, self.geometry = candidate, geometry
        return self

    def copy(self):
        """Independently owned model with the same configuration."""
        return EngineModel(self.config)

    # ----------------------------------------------------------------------
    # Geometry & kinematics
    # ----------------------------------------------------------------------
    def volume(self, theta):
        """Cylinder volume, cm³."""
        return float(
            pf.v_cyl(
                theta,
                self.config.bore,
                self.geometry.crank_radius,
                self.config.con_rod_length,
                self.geometry.clearance_volume_cc,
            )
        )

    def piston_position(self, theta):
        """Piston displacement from TDC, mm."""
        return float(
            pf.piston_displacement(theta, self.geometry.crank_radius, self.config.con_rod_length)
        )

    def con_rod_angle(self, theta):
        """Rod angle from the cylinder axis, degrees."""
        return float(
            pf.calc_con_rod_angle(theta, self.geometry.crank_radius, self.config.con_rod_length)
        )

    def piston_velocity(self, theta):
        """Instantaneous piston speed, m/s (positive moving away from the head)."""
        dx_dtheta = pf.calc_piston_speed_factor(
            theta, self.geometry.crank_radius, self.config.con_rod_length
        )
        return float(dx_dtheta / 1000.0 * pf.eng_speed_rad(self.config.rpm))

    def phase(self, theta):
        return pf.get_stroke_phase(theta)

    def valve_states(self, theta):
        return pf.calc_valve_states(theta)

    def spark_firing(self, theta):
        return pf.is_spark_firing(theta, self.config.ignition_advance)

    # ----------------------------------------------------------------------
    # Pressure
    # ----------------------------------------------------------------------
    def pressure(self, theta, model="actual"):
        """Cylinder pressure in bar under the named model."""
        return float(get_pressure_model(model)(theta, self.config, self.geometry))

    def theoretical_pressure(self, theta):
        return self.pressure(theta, "theoretical")

    def actual_pressure(self, theta):
        return self.pressure(theta, "actual")

    # ----------------------------------------------------------------------
    # Sampling
    # ----------------------------------------------------------------------
    def sample_cycle(self, model="actual", step=c.THETA_DELTA):
        """Ordered CyclePoints from 0 to 720°. A new tuple on every call."""
        pressure_fn = get_pressure_model(model)
        return tuple(
            CyclePoint(
                theta=float(theta),
                volume=self.volume(theta),
                pressure=float(pressure_fn(theta, self.config, self.geometry)),
                phase=self.phase(theta),
            )
            for theta in cycle_angles(step)
        )

    def cycle_arrays(self, model="actual", step=c.THETA_DELTA):
        """(theta, volume cm³, pressure bar) as numpy arrays."""
        pressure_fn = get_pressure_model(model)
        theta = cycle_angles(step)
        volume = pf.v_cyl(
            theta,
            self.config.bore,
            self.geometry.crank_radius,
            self.config.con_rod_length,
            self.geometry.clearance_volume_cc,
        )
        pressure = np.array([pressure_fn(t, self.config, self.geometry) for t in theta])
        return theta, volume, pressure

    def load_sweep(self, loads=c.OVERLAY_LOADS_NM, model="actual", step=c.THETA_DELTA):
        """
        One sampled cycle per load for overlay plots. Each load is sampled on a
        copy, this model's configuration is not touched.
        """
        sweep = []
        for load in loads:
            engine = self.copy().update_params(load=load)
            sweep.append((float(load), engine.sample_cycle(model, step)))
        return sweep

    # ----------------------------------------------------------------------
    # Performance
    # ----------------------------------------------------------------------
    def performance_metrics(self):
        theta, volume, pressure = self.cycle_arrays("actual", c.THETA_DELTA_METRICS)
        work = pf.calc_indicated_work(volume, pressure)
        i_peak = int(np.argmax(pressure))

        return {
            "displacement_volume": self.geometry.displacement_volume_cc,  # cm³
            "compression_ratio": self.config.compression_ratio,
            "imep": pf.calc_imep_bar(work, self.geometry.displacement_volume),  # bar
            "indicated_power": pf.calc_indicated_power_kw(work, self.config.rpm),  # kW
            "thermal_efficiency": 100.0 * pf.calc_otto_efficiency(
                self.config.compression_ratio, self.config.gamma
            ),  # %
            "mean_piston_speed": pf.calc_mean_piston_speed(self.config.stroke, self.config.rpm),
            "indicated_work": work,  # J, signed
            "peak_pressure": float(pressure[i_peak]),
            "peak_pressure_angle": float(theta[i_peak]),
        }

    def stroke_work(self, model="actual"):
        """Per-stroke work in J plus the gross (power loop) / pumping split."""
        theta, volume, pressure = self.cycle_arrays(model, c.THETA_DELTA_METRICS)
        work = pf.calc_stroke_work(theta, volume, pressure)
        gross = work["Compression"] + work["Power"]
        pumping = work["Suction"] + work["Exhaust"]

        return {
            **work,
            "gross": gross,
            "pumping": pumping,
            "net": gross + pumping,
        }
