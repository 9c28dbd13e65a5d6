# physics_functions.py
#
# MIT License
#
# Copyright (c) 2025 Chris Cullin

from typing import TYPE_CHECKING
import math

import numpy as np
from scipy.integrate import trapezoid

import constants as c

if TYPE_CHECKING:
    from engine_model import EngineConfiguration, DerivedGeometry


def eng_speed_rad(rpm):
    """Converts RPM (Revolutions Per Minute) to angular speed in radians per second."""
    return rpm * np.pi / 30.0


def normalize_theta(theta):
    """Wraps a crank angle in degrees onto [0, 720)."""
    theta = float(theta) % c.THETA_MAX
    # -1e-14 % 720 rounds up to 720.0
    return 0.0 if theta >= c.THETA_MAX else theta


# --- Geometric Functions ---


def piston_displacement(theta, R_crank, L_conrod):
    """
    Distance of the piston pin from its TDC position, slider-crank geometry.

    :param theta: crank angle in degrees (scalar or np array), 0 = TDC
    :param R_crank: crank radius (half stroke), mm
    :param L_conrod: connecting rod length, mm

    x = R(1 - cos θ) + L(1 - sqrt(1 - λ² sin² θ)),  λ = R/L
    """
    theta_rad = np.deg2rad(theta)
    lam = R_crank / L_conrod
    return R_crank * (1 - np.cos(theta_rad)) + L_conrod * (
        1 - np.sqrt(1 - lam**2 * np.sin(theta_rad) ** 2)
    )


def v_cyl(theta, bore, R_crank, L_conrod, V_clearance_cc):
    """
    Cylinder volume in cm³ at crank angle theta (degrees).

    V = V_clearance + A_piston * x, with A_piston in mm² and x in mm,
    so the swept part comes out in mm³ and is divided by 1000.
    """
    x = piston_displacement(theta, R_crank, L_conrod)
    return V_clearance_cc + (np.pi * bore**2 / 4.0 * x) / 1000.0


def calc_con_rod_angle(theta, R_crank, L_conrod):
    """Angle of the connecting rod from the cylinder axis, degrees."""
    return np.rad2deg(np.arcsin((R_crank / L_conrod) * np.sin(np.deg2rad(theta))))


def calc_piston_speed_factor(theta, R_crank, L_conrod):
    """
    Calculates the instantaneous geometric factor (dx/dtheta) for piston speed.

    To get the actual piston speed:
    Vp = omega * (dx/dtheta)  (where omega is in rad/s and theta in rad)

    Returns mm per radian of crank rotation, theta given in degrees.
    """
    sin_t = np.sin(np.deg2rad(theta))
    cos_t = np.cos(np.deg2rad(theta))

    term1 = R_crank * sin_t
    denominator = np.sqrt(1 - (R_crank / L_conrod) ** 2 * sin_t**2)
    term2 = (R_crank**2 / L_conrod) * sin_t * cos_t / denominator

    return term1 + term2


# --- Cycle Events ---


def get_stroke_phase(theta):
    """Suction / Compression / Power / Exhaust, one per 180° of the 720° cycle."""
    index = int(normalize_theta(theta) // 180.0)
    return c.PHASES[min(index, len(c.PHASES) - 1)]


def calc_valve_states(theta):
    theta = normalize_theta(theta)
    return {
        "intake": theta < c.IVC_DEG or theta > c.IVO_DEG,
        "exhaust": theta >= c.EVO_DEG or theta < c.EVC_DEG,
    }


def is_spark_firing(theta, ignition_advance):
    theta = normalize_theta(theta)
    spark_start = c.TDC_COMPRESSION - ignition_advance
    return spark_start <= theta <= spark_start + c.SPARK_WINDOW_DEG


# --- Burn Profiles ---


def smoothstep(progress):
    """Hermite S-curve 3p² - 2p³ on [0, 1]."""
    return 3.0 * progress**2 - 2.0 * progress**3


def calc_wiebe_fraction(theta, ignition_start_theta, burn_duration, a_vibe, m_vibe):
    """Cumulative mass fraction burned, clamped to [0, 1] outside the burn."""

    delta_theta = theta - ignition_start_theta

    if delta_theta <= 0:
        return 0.0
    if delta_theta >= burn_duration:
        return 1.0

    # The standard Wiebe cumulative S-curve formula
    return 1.0 - np.exp(-a_vibe * (delta_theta / burn_duration) ** (m_vibe + 1))


# --- Pressure Models (bar) ---


def _volume(theta, cfg: "EngineConfiguration", geom: "DerivedGeometry"):
    return v_cyl(theta, cfg.bore, geom.crank_radius, cfg.con_rod_length, geom.clearance_volume_cc)


def calc_theoretical_pressure(theta, cfg: "EngineConfiguration", geom: "DerivedGeometry"):
    """
    Ideal Otto cycle: isobaric gas exchange at ambient pressure, adiabatic
    compression and expansion, instantaneous constant-volume heat addition
    at TDC of the power stroke.
    """
    theta = normalize_theta(theta)
    P_atm = cfg.ambient_pressure
    gamma = cfg.gamma

    if theta < 180.0:
        return P_atm

    if theta < 360.0:
        return P_atm * (_volume(180.0, cfg, geom) / _volume(theta, cfg, geom)) ** gamma

    if theta < 540.0:
        load_factor = c.OTTO_LOAD_BASE + c.OTTO_LOAD_GAIN * (cfg.load / cfg.max_load)
        P_peak = P_atm * cfg.compression_ratio**gamma * load_factor
        return P_peak * (_volume(360.0, cfg, geom) / _volume(theta, cfg, geom)) ** gamma

    return P_atm


def calc_combustion_anchors(cfg: "EngineConfiguration", geom: "DerivedGeometry"):
    """
    Returns (P_compression_end, P_peak, P_400) for the six-phase model.

    P_400 is the polytropic expansion of the peak from 372° to 400° and is
    shared by the combustion fall and the expansion phase, so the two meet
    exactly at 400°.
    """
    P_atm = cfg.ambient_pressure
    V_180 = _volume(180.0, cfg, geom)
    V_peak = _volume(c.COMBUSTION_PEAK_DEG, cfg, geom)
    V_400 = _volume(c.COMBUSTION_END_DEG, cfg, geom)

    P_comp_end = (
        c.COMPRESSION_START_FACTOR * P_atm * (V_180 / _volume(360.0, cfg, geom)) ** c.N_COMPRESSION
    )

    load_fraction = cfg.load / cfg.max_load
    rpm_efficiency = 1.0 - c.RPM_EFF_PENALTY * abs(cfg.rpm / c.RPM_OPTIMUM - 1.0)
    peak_multiplier = (c.PEAK_MULT_BASE + c.PEAK_MULT_LOAD_GAIN * load_fraction) * (
        c.RPM_EFF_BASE + c.RPM_EFF_GAIN * rpm_efficiency
    )
    P_peak = P_comp_end * peak_multiplier
    P_400 = P_peak * (V_peak / V_400) ** c.N_EXPANSION

    return P_comp_end, P_peak, P_400


def calc_actual_pressure(theta, cfg: "EngineConfiguration", geom: "DerivedGeometry"):
    """
    Six-phase empirical indicator diagram (pumping loop + power loop).

    0-180    suction, rpm-dependent vacuum dip
    180-360  polytropic compression, n = 1.32
    360-400  smoothstep rise to the peak at 372°, smoothstep fall to P_400
    400-540  polytropic expansion, n = 1.28, blended toward EVO pressure after 500°
    540-600  blowdown ease-out
    600-720  exhaust back-pressure hump
    """
    theta = normalize_theta(theta)
    P_atm = cfg.ambient_pressure
    rpm_frac = cfg.rpm / c.RPM_REF

    if theta < 180.0:
        vacuum_depth = c.SUCTION_VACUUM_BASE + c.SUCTION_VACUUM_RPM_GAIN * rpm_frac
        P = P_atm * (1.0 - vacuum_depth * math.sin(math.pi * theta / 180.0))

    elif theta < 360.0:
        P_start = c.COMPRESSION_START_FACTOR * P_atm
        P = P_start * (_volume(180.0, cfg, geom) / _volume(theta, cfg, geom)) ** c.N_COMPRESSION

    elif theta < c.COMBUSTION_END_DEG:
        P_comp_end, P_peak, P_400 = calc_combustion_anchors(cfg, geom)
        if theta <= c.COMBUSTION_PEAK_DEG:
            progress = (theta - 360.0) / (c.COMBUSTION_PEAK_DEG - 360.0)
            P = P_comp_end + smoothstep(progress) * (P_peak - P_comp_end)
        else:
            progress = (theta - c.COMBUSTION_PEAK_DEG) / (c.COMBUSTION_END_DEG - c.COMBUSTION_PEAK_DEG)
            P = P_peak + smoothstep(progress) * (P_400 - P_peak)

    elif theta < 540.0:
        _, _, P_400 = calc_combustion_anchors(cfg, geom)
        V_400 = _volume(c.COMBUSTION_END_DEG, cfg, geom)
        P = P_400 * (V_400 / _volume(theta, cfg, geom)) ** c.N_EXPANSION
        if theta > c.EVO_BLEND_START_DEG:
            P = (1.0 - c.EVO_BLEND_WEIGHT) * P + c.EVO_BLEND_WEIGHT * c.EVO_PRESSURE_FACTOR * P_atm

    elif theta < c.BLOWDOWN_END_DEG:
        progress = (theta - 540.0) / (c.BLOWDOWN_END_DEG - 540.0)
        ease = 1.0 - (1.0 - progress) ** c.BLOWDOWN_EASE_EXP
        P_start = c.BLOWDOWN_START_FACTOR * P_atm
        P_end = c.BLOWDOWN_END_FACTOR * P_atm
        P = P_start + ease * (P_end - P_start)

    else:
        height = c.EXHAUST_BACKPRESSURE_BASE + c.EXHAUST_BACKPRESSURE_RPM_GAIN * rpm_frac
        P = P_atm * (1.0 + height * math.sin(math.pi * (theta - 540.0) / 180.0))

    return max(float(P), c.P_FLOOR_BAR)


def calc_wiebe_pressure(theta, cfg: "EngineConfiguration", geom: "DerivedGeometry"):
    """
    Alternative actual-cycle model with a Wiebe burn between the spark and
    360° + combustion duration. Reduced gamma stands in for wall heat loss.
    """
    theta = normalize_theta(theta)
    P_atm = cfg.ambient_pressure
    gamma_actual = cfg.gamma - c.WIEBE_GAMMA_DROP
    gamma_expansion = gamma_actual - c.WIEBE_EXPANSION_GAMMA_DROP

    load_factor = c.WIEBE_LOAD_BASE + c.WIEBE_LOAD_GAIN * (cfg.load / cfg.max_load)
    rpm_factor = 1.0 - (cfg.rpm - c.WIEBE_RPM_REF) / c.WIEBE_RPM_SPAN
    P_peak = P_atm * cfg.compression_ratio**gamma_actual * load_factor * rpm_factor

    theta_ignition = c.TDC_COMPRESSION - cfg.ignition_advance
    theta_end = c.TDC_COMPRESSION + cfg.combustion_duration
    V = _volume(theta, cfg, geom)
    V_180 = _volume(180.0, cfg, geom)

    if theta < 180.0:
        P = P_atm * (0.85 + 0.1 * math.sin(math.pi * theta / 180.0))

    elif theta < theta_ignition:
        P = P_atm * (V_180 / V) ** gamma_actual * c.COMPRESSION_START_FACTOR

    elif theta < theta_end and theta < 540.0:
        V_ignition = _volume(theta_ignition, cfg, geom)
        P_ignition = P_atm * (V_180 / V_ignition) ** gamma_actual * c.COMPRESSION_START_FACTOR
        burn_fraction = calc_wiebe_fraction(
            theta,
            theta_ignition,
            cfg.combustion_duration + cfg.ignition_advance,
            c.WIEBE_A,
            c.WIEBE_M,
        )
        P = P_ignition * (V_ignition / V) ** (gamma_actual * 0.3) + burn_fraction * (P_peak - P_ignition)

        if c.TDC_COMPRESSION < theta < c.WIEBE_PEAK_SMOOTH_END_DEG:
            peak_smooth = math.sin(math.pi * (theta - c.TDC_COMPRESSION) / 30.0)
            P = max(P, P_peak * peak_smooth)

    elif theta < 540.0:
        P = P_peak * (_volume(c.WIEBE_PEAK_REF_DEG, cfg, geom) / V) ** gamma_expansion

    elif theta < 540.0 + c.WIEBE_BLOWDOWN_DEG:
        V_peak = _volume(c.WIEBE_PEAK_REF_DEG, cfg, geom)
        P_before_evo = P_peak * (V_peak / _volume(540.0, cfg, geom)) ** gamma_expansion
        progress = (theta - 540.0) / c.WIEBE_BLOWDOWN_DEG
        P_exhaust = P_atm * c.WIEBE_EXHAUST_FACTOR
        P = P_before_evo - progress * (P_before_evo - P_exhaust)

    else:
        P = P_atm * (c.WIEBE_EXHAUST_FACTOR - 0.05 * math.sin(math.pi * (theta - 540.0) / 180.0))

    return max(float(P), c.P_FLOOR_BAR)


# --- Work & Performance ---


def calc_indicated_work(V_cc, P_bar):
    """
    Signed closed-loop work in J: trapezoidal ∮P dV over the sampled cycle,
    with V converted cm³ -> m³ and P bar -> Pa.
    """
    V_m3 = np.asarray(V_cc, dtype=float) * 1e-6
    P_pa = np.asarray(P_bar, dtype=float) * 1e5
    return float(trapezoid(P_pa, V_m3))


def calc_stroke_work(theta, V_cc, P_bar):
    """
    Work in J per 180° stroke. Each segment shares its boundary sample with
    the next, so the four terms add up to the closed-loop work.
    """
    theta = np.asarray(theta, dtype=float)
    work = {}
    for k, name in enumerate(c.PHASES):
        mask = (theta >= 180.0 * k) & (theta <= 180.0 * (k + 1))
        work[name] = calc_indicated_work(np.asarray(V_cc)[mask], np.asarray(P_bar)[mask])
    return work


def calc_imep_bar(work_J, V_displaced_m3):
    return abs(work_J) / V_displaced_m3 / 1e5


def calc_indicated_power_kw(work_J, rpm):
    # four-stroke: one power stroke every two revolutions
    return abs(work_J) * (rpm / 120.0) / 1000.0


def calc_otto_efficiency(compression_ratio, gamma):
    return 1.0 - compression_ratio ** (1.0 - gamma)


def calc_mean_piston_speed(stroke_mm, rpm):
    return 2.0 * (stroke_mm / 1000.0) * rpm / 60.0
