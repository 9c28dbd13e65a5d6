import unittest
import contextlib
import dataclasses
import io
import math
import os
import tempfile
import time

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

import constants as c
from engine_model import (
    CyclePoint,
    DerivedGeometry,
    EngineConfiguration,
    EngineModel,
    FixedKeyDictionary,
    InvalidConfiguration,
    InvalidGeometry,
    cycle_angles,
)
import dashboard
import diagnostics
import logger
import main

# =================================================================
# 1. SHARED INFRASTRUCTURE
# =================================================================

V_DISPLACED_CC = math.pi * 80.0**2 / 4.0 * 110.0 / 1000.0  # 552.92
V_CLEARANCE_CC = V_DISPLACED_CC / 7.0  # 78.99


class BaseEngineTest(unittest.TestCase):
    """Fresh default engine per test plus a quiet-stdout helper."""

    def setUp(self):
        self.engine = EngineModel()

    def quietly(self, fn, *args, **kwargs):
        with contextlib.redirect_stdout(io.StringIO()) as out:
            result = fn(*args, **kwargs)
        return result, out.getvalue()


# =================================================================
# 2. CONFIGURATION & GEOMETRY
# =================================================================

class TestConfiguration(BaseEngineTest):

    def test_default_configuration(self):
        cfg = self.engine.config
        self.assertEqual(
            (cfg.bore, cfg.stroke, cfg.con_rod_length, cfg.compression_ratio),
            (80.0, 110.0, 220.0, 8.0),
        )
        self.assertEqual((cfg.rpm, cfg.load, cfg.max_load), (1857.0, 11.1, 20.0))
        self.assertEqual((cfg.ambient_pressure, cfg.ambient_temperature), (1.013, 298.0))
        self.assertEqual((cfg.gamma, cfg.gas_constant), (1.4, 287.0))
        self.assertEqual((cfg.ignition_advance, cfg.combustion_duration), (15.0, 50.0))

    def test_default_derived_geometry(self):
        geom = self.engine.geometry
        self.assertAlmostEqual(geom.crank_radius, 55.0)
        self.assertAlmostEqual(geom.displacement_volume_cc, 552.92, delta=0.01)
        self.assertAlmostEqual(geom.clearance_volume_cc, 78.99, delta=0.01)
        self.assertAlmostEqual(geom.total_volume_cc, 631.91, delta=0.01)
        self.assertAlmostEqual(geom.displacement_volume, geom.displacement_volume_cc * 1e-6)
        self.assertAlmostEqual(geom.rod_ratio, 0.25)

    def test_configuration_is_immutable(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            self.engine.config.bore = 90.0

    def test_geometry_is_pure_function_of_configuration(self):
        a = EngineModel(bore=86.0, stroke=86.0)
        b = EngineModel(EngineConfiguration(bore=86.0, stroke=86.0))
        self.assertEqual(a.geometry, b.geometry)
        self.assertEqual(a.geometry, DerivedGeometry.from_config(a.config))

    def test_update_recomputes_geometry(self):
        self.engine.update_params(stroke=90.0)
        self.assertAlmostEqual(self.engine.geometry.crank_radius, 45.0)
        self.assertAlmostEqual(
            self.engine.geometry.displacement_volume_cc, math.pi * 80.0**2 / 4.0 * 90.0 / 1000.0
        )
        self.assertAlmostEqual(self.engine.volume(180.0), self.engine.geometry.total_volume_cc, places=6)

    def test_update_accepts_mapping_and_kwargs(self):
        self.engine.update_params({"rpm": 3000}, load=5)
        self.assertEqual(self.engine.config.rpm, 3000.0)
        self.assertEqual(self.engine.config.load, 5.0)

    def test_update_is_idempotent(self):
        params = {"bore": 84.0, "rpm": 2500.0, "load": 9.0}
        self.engine.update_params(params)
        geometry = self.engine.geometry
        points = self.engine.sample_cycle()
        self.engine.update_params(params)
        self.assertEqual(self.engine.geometry, geometry)
        self.assertEqual(self.engine.sample_cycle(), points)

    def test_copy_is_independent(self):
        other = self.engine.copy()
        other.update_params(load=2.0)
        self.assertEqual(self.engine.config.load, c.LOAD_NM)
        self.assertEqual(other.config.load, 2.0)


# =================================================================
# 3. ERROR HANDLING
# =================================================================

class TestErrorHandling(BaseEngineTest):

    def test_short_con_rod_is_invalid_geometry(self):
        with self.assertRaises(InvalidGeometry):
            EngineModel(con_rod_length=50.0)
        with self.assertRaises(InvalidGeometry):
            EngineModel(con_rod_length=55.0)  # λ = 1

    def test_invalid_geometry_is_a_configuration_error(self):
        self.assertTrue(issubclass(InvalidGeometry, InvalidConfiguration))
        self.assertTrue(issubclass(InvalidConfiguration, ValueError))

    def test_non_positive_values_rejected(self):
        for params in (
            {"bore": 0.0},
            {"stroke": -10.0},
            {"compression_ratio": 1.0},
            {"compression_ratio": 0.5},
            {"rpm": 0.0},
            {"max_load": 0.0},
            {"load": -1.0},
            {"ambient_pressure": 0.0},
            {"gamma": 1.0},
            {"combustion_duration": 0.0},
            {"bore": float("nan")},
            {"rpm": "fast"},
        ):
            with self.subTest(params=params), self.assertRaises(InvalidConfiguration):
                EngineModel(**params)

    def test_configuration_coerces_field_types(self):
        engine = EngineModel(EngineConfiguration(bore="80", rpm=2000))
        self.assertEqual(engine.config.bore, 80.0)
        self.assertIsInstance(engine.config.rpm, float)
        self.assertEqual(engine.geometry, EngineModel(rpm=2000).geometry)
        for value in ("eighty", None, [80.0]):
            with self.subTest(value=value), self.assertRaises(InvalidConfiguration):
                EngineModel(EngineConfiguration(bore=value))

    def test_failed_update_leaves_model_untouched(self):
        config, geometry = self.engine.config, self.engine.geometry
        with self.assertRaises(InvalidGeometry):
            self.engine.update_params(stroke=500.0)
        self.assertIs(self.engine.config, config)
        self.assertIs(self.engine.geometry, geometry)

    def test_unknown_key_rejected(self):
        with self.assertRaises(KeyError):
            self.engine.update_params(displacement=500.0)
        with self.assertRaises(KeyError):
            EngineModel(conRodLength=200.0)

    def test_unknown_model_and_bad_step(self):
        with self.assertRaises(InvalidConfiguration):
            self.engine.pressure(100.0, "diesel")
        with self.assertRaises(InvalidConfiguration):
            self.engine.sample_cycle(step=0)
        with self.assertRaises(InvalidConfiguration):
            cycle_angles(-2.0)

    def test_fixed_key_dictionary(self):
        d = FixedKeyDictionary({"a": 1, "b": 2})
        d["a"] = 3
        d.update(b=4)
        d.update([("a", 5)])
        self.assertEqual(d, {"a": 5, "b": 4})
        with self.assertRaises(KeyError):
            d["c"] = 1
        with self.assertRaises(KeyError):
            d.update({"c": 1})
        with self.assertRaises(KeyError):
            d.setdefault("c", 0)


# =================================================================
# 4. GEOMETRY & KINEMATICS QUERIES
# =================================================================

class TestKinematics(BaseEngineTest):

    def test_volume_at_dead_centres(self):
        geom = self.engine.geometry
        for theta in (0.0, 360.0, 720.0):
            self.assertAlmostEqual(self.engine.volume(theta), geom.clearance_volume_cc, delta=1e-6)
        for theta in (180.0, 540.0):
            self.assertAlmostEqual(self.engine.volume(theta), geom.total_volume_cc, delta=1e-6)

    def test_volume_periodic_and_bounded(self):
        geom = self.engine.geometry
        for theta in np.arange(0.0, 720.0, 7.0):
            V = self.engine.volume(theta)
            self.assertAlmostEqual(V, self.engine.volume(theta + 720.0), places=9)
            self.assertGreaterEqual(V, geom.clearance_volume_cc - 1e-9)
            self.assertLessEqual(V, geom.total_volume_cc + 1e-9)

    def test_piston_position_and_rod_angle(self):
        self.assertAlmostEqual(self.engine.piston_position(0.0), 0.0)
        self.assertAlmostEqual(self.engine.piston_position(180.0), 110.0)
        self.assertAlmostEqual(self.engine.con_rod_angle(90.0), math.degrees(math.asin(0.25)))

    def test_piston_velocity(self):
        omega = 1857.0 * math.pi / 30.0
        self.assertAlmostEqual(self.engine.piston_velocity(0.0), 0.0)
        self.assertAlmostEqual(self.engine.piston_velocity(90.0), 0.055 * omega, places=9)
        self.assertLess(self.engine.piston_velocity(270.0), 0.0)

    def test_phase_valves_spark(self):
        self.assertEqual(self.engine.phase(100.0), "Suction")
        self.assertEqual(self.engine.phase(400.0), "Power")
        self.assertEqual(self.engine.valve_states(600.0), {"intake": False, "exhaust": True})

        firing = [t for t in np.arange(300.0, 400.0, 0.5) if self.engine.spark_firing(t)]
        self.assertEqual(firing[0], 345.0)
        self.assertEqual(firing[-1], 355.0)
        self.assertEqual(firing[-1] - firing[0], c.SPARK_WINDOW_DEG)

        self.engine.update_params(ignition_advance=25.0)
        self.assertTrue(self.engine.spark_firing(335.0))
        self.assertFalse(self.engine.spark_firing(350.0))


# =================================================================
# 5. PRESSURE MODELS
# =================================================================

class TestPressureModels(BaseEngineTest):

    def test_theoretical_landmarks(self):
        P_atm = c.P_AMBIENT_BAR
        self.assertEqual(self.engine.theoretical_pressure(0.0), P_atm)
        load_factor = 1.5 + 2.0 * c.LOAD_NM / c.MAX_LOAD_NM
        P_peak = P_atm * 8.0**1.4 * load_factor
        self.assertAlmostEqual(self.engine.theoretical_pressure(360.0), P_peak, places=9)
        self.assertAlmostEqual(self.engine.theoretical_pressure(360.001), P_peak, delta=1e-3 * P_peak)
        self.assertAlmostEqual(
            self.engine.theoretical_pressure(359.999), P_atm * 8.0**1.4, delta=1e-3 * P_peak
        )

    def test_theoretical_peak_scales_with_load(self):
        low = self.engine.copy().update_params(load=0.0).theoretical_pressure(360.0)
        high = self.engine.copy().update_params(load=20.0).theoretical_pressure(360.0)
        self.assertAlmostEqual(high / low, 3.5 / 1.5)

    def test_models_stay_positive(self):
        configs = [
            {},
            {"load": 0.0, "rpm": 8000.0},
            {"load": 20.0, "rpm": 500.0, "compression_ratio": 12.0},
            {"ambient_pressure": 0.2},
        ]
        for params in configs:
            engine = EngineModel(**params)
            for model in ("theoretical", "actual", "actual_wiebe"):
                pressures = [engine.pressure(t, model) for t in np.arange(0.0, 720.0, 0.5)]
                self.assertGreater(min(pressures), 0.0, f"{model} {params}")
                if model != "theoretical":
                    self.assertGreaterEqual(min(pressures), c.P_FLOOR_BAR)

    def test_actual_is_periodic(self):
        for theta in (10.0, 250.0, 380.0, 450.0, 570.0, 650.0):
            self.assertEqual(self.engine.actual_pressure(theta), self.engine.actual_pressure(theta - 720.0))

    def test_six_phase_continuity_at_400(self):
        before = self.engine.actual_pressure(400.0 - 1e-9)
        after = self.engine.actual_pressure(400.0)
        self.assertAlmostEqual(before, after, delta=1e-6)

    def test_six_phase_continuity_at_tdc(self):
        before = self.engine.actual_pressure(360.0 - 1e-7)
        after = self.engine.actual_pressure(360.0)
        self.assertAlmostEqual(before, after, delta=1e-4)

    def test_evo_blend_uses_fixed_weight(self):
        """30% toward 1.5·P_amb across the whole 500-540° window."""
        P_atm = c.P_AMBIENT_BAR
        V_400 = self.engine.volume(c.COMBUSTION_END_DEG)
        P_400 = self.engine.actual_pressure(c.COMBUSTION_END_DEG)
        for theta in (501.0, 520.0, 539.0):
            P_expansion = P_400 * (V_400 / self.engine.volume(theta)) ** c.N_EXPANSION
            expected = 0.7 * P_expansion + 0.3 * 1.5 * P_atm
            self.assertAlmostEqual(self.engine.actual_pressure(theta), expected, places=9, msg=f"theta={theta}")

        # the blend switches on just after 500°
        P_500 = self.engine.actual_pressure(c.EVO_BLEND_START_DEG)
        P_after = self.engine.actual_pressure(c.EVO_BLEND_START_DEG + 1e-9)
        self.assertAlmostEqual(P_after, 0.7 * P_500 + 0.3 * 1.5 * P_atm, delta=1e-6)

    def test_actual_loop_shape(self):
        """Vacuum on suction, back-pressure on exhaust, peak just after TDC."""
        P_atm = c.P_AMBIENT_BAR
        self.assertLess(self.engine.actual_pressure(90.0), P_atm)
        self.assertGreater(self.engine.actual_pressure(630.0), P_atm)
        theta, _, pressure = self.engine.cycle_arrays("actual", 1.0)
        self.assertEqual(theta[np.argmax(pressure)], c.COMBUSTION_PEAK_DEG)

    def test_peak_rises_with_load(self):
        peaks = [
            self.engine.copy().update_params(load=load).actual_pressure(c.COMBUSTION_PEAK_DEG)
            for load in c.OVERLAY_LOADS_NM
        ]
        self.assertEqual(peaks, sorted(peaks))

    def test_six_phase_alias(self):
        for theta in (45.0, 390.0, 610.0):
            self.assertEqual(
                self.engine.pressure(theta, "actual_six_phase"), self.engine.pressure(theta, "actual")
            )

    def test_wiebe_burn_raises_pressure_over_compression(self):
        engine = self.engine
        P_ignition = engine.pressure(345.0, "actual_wiebe")
        P_late = engine.pressure(380.0, "actual_wiebe")
        self.assertGreater(P_late, P_ignition)
        self.assertAlmostEqual(engine.pressure(700.0, "actual_wiebe"),
                               c.P_AMBIENT_BAR * (1.1 - 0.05 * math.sin(math.radians(160.0))))


# =================================================================
# 6. SAMPLING & PERFORMANCE
# =================================================================

class TestSamplingAndMetrics(BaseEngineTest):

    def test_sample_cycle_layout(self):
        points = self.engine.sample_cycle("actual", 2.0)
        self.assertEqual(len(points), 361)
        self.assertEqual(points[0].theta, 0.0)
        self.assertEqual(points[-1].theta, 720.0)
        self.assertTrue(all(isinstance(p, CyclePoint) for p in points))
        self.assertEqual([p.phase for p in points[:3]], ["Suction"] * 3)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            points[0].pressure = 0.0

    def test_sample_cycle_is_restartable(self):
        self.assertEqual(self.engine.sample_cycle(), self.engine.sample_cycle())

    def test_uneven_step_stays_inside_cycle(self):
        thetas = [p.theta for p in self.engine.sample_cycle(step=7.0)]
        self.assertEqual(thetas[-1], 714.0)
        self.assertAlmostEqual(thetas[1] - thetas[0], 7.0)

    def test_resolution_consistency(self):
        coarse = {p.theta: p for p in self.engine.sample_cycle("actual", 2.0)}
        fine = {p.theta: p for p in self.engine.sample_cycle("actual", 1.0)}
        for theta, point in coarse.items():
            self.assertAlmostEqual(point.volume, fine[theta].volume, places=9)
            self.assertAlmostEqual(point.pressure, fine[theta].pressure, places=9)
            self.assertEqual(point.phase, fine[theta].phase)

    def test_cycle_arrays_match_points(self):
        theta, volume, pressure = self.engine.cycle_arrays("theoretical", 5.0)
        points = self.engine.sample_cycle("theoretical", 5.0)
        np.testing.assert_allclose(theta, [p.theta for p in points])
        np.testing.assert_allclose(volume, [p.volume for p in points])
        np.testing.assert_allclose(pressure, [p.pressure for p in points])

    def test_default_performance_metrics(self):
        m = self.engine.performance_metrics()
        self.assertAlmostEqual(m["displacement_volume"], 552.9, delta=0.05)
        self.assertEqual(m["compression_ratio"], 8.0)
        self.assertGreater(m["imep"], 0.0)
        self.assertGreater(m["indicated_power"], 0.0)
        self.assertAlmostEqual(m["thermal_efficiency"], 100 * (1 - 8.0**-0.4), places=9)
        self.assertAlmostEqual(m["thermal_efficiency"], 56.5, delta=0.05)
        self.assertAlmostEqual(m["mean_piston_speed"], 6.81, delta=0.005)
        self.assertEqual(m["peak_pressure_angle"], c.COMBUSTION_PEAK_DEG)

        work = m["indicated_work"]
        self.assertGreater(work, 0.0)  # power loop dominates the pumping loop
        self.assertAlmostEqual(m["imep"], work / self.engine.geometry.displacement_volume / 1e5)
        self.assertAlmostEqual(m["indicated_power"], work * 1857.0 / 120.0 / 1000.0)

    def test_results_are_plain_dicts(self):
        m = self.engine.performance_metrics()
        self.assertIs(type(m), dict)
        self.assertEqual(
            sorted(m),
            sorted([
                "displacement_volume", "compression_ratio", "imep", "indicated_power",
                "thermal_efficiency", "mean_piston_speed", "indicated_work",
                "peak_pressure", "peak_pressure_angle",
            ]),
        )
        work = self.engine.stroke_work()
        self.assertIs(type(work), dict)
        self.assertEqual(list(work), [*c.PHASES, "gross", "pumping", "net"])

    def test_stroke_work_split(self):
        work = self.engine.stroke_work()
        self.assertLess(work["Compression"], 0.0)
        self.assertGreater(work["Power"], 0.0)
        self.assertLess(work["pumping"], 0.0)  # suction below exhaust pressure
        self.assertAlmostEqual(work["net"], self.engine.performance_metrics()["indicated_work"], places=6)

    def test_load_sweep_leaves_model_alone(self):
        sweep = self.engine.load_sweep()
        self.assertEqual([load for load, _ in sweep], list(c.OVERLAY_LOADS_NM))
        self.assertEqual(self.engine.config.load, c.LOAD_NM)
        self.assertTrue(all(len(points) == 361 for _, points in sweep))


# =================================================================
# 7. COLLABORATORS: CSV, DASHBOARD, CLI, DIAGNOSTICS
# =================================================================

class TestCsvExport(BaseEngineTest):

    def test_default_filename(self):
        self.assertEqual(logger.default_filename(self.engine.config), "PV_Diagram_1857rpm_11.1Nm.csv")

    def test_csv_contract(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = logger.export_csv(self.engine, os.path.join(tmp, "cycle.csv"))
            with open(path) as f:
                lines = f.read().splitlines()

        self.assertEqual(lines[0], "Crank_Angle,Volume_cm3,Pressure_bar,Phase")
        self.assertEqual(lines[1], "0,78.99,1.013,Suction")
        data = lines[1:722]
        self.assertEqual(len(data), 721)
        self.assertTrue(data[-1].startswith("720,78.99,"))
        self.assertEqual(data[400].split(",")[3], "Power")
        self.assertEqual(
            lines[722:],
            [
                "",
                "# Engine Parameters",
                "# Bore: 80 mm",
                "# Stroke: 110 mm",
                "# Compression Ratio: 8:1",
                "# RPM: 1857",
                "# Load: 11.1 Nm",
            ],
        )

    def test_logger_close_is_idempotent(self):
        with tempfile.TemporaryDirectory() as tmp:
            log = logger.Logger(self.engine, os.path.join(tmp, "x.csv"))
            log.log(CyclePoint(theta=1.5, volume=80.0, pressure=1.0, phase="Suction"))
            log.close()
            log.close()
            with open(log.path) as f:
                text = f.read()
        self.assertIn("1.5,80.00,1.000,Suction\n", text)
        self.assertEqual(text.count("# Engine Parameters"), 1)


class TestDashboard(BaseEngineTest):

    def tearDown(self):
        plt.close("all")

    def test_build_datasets(self):
        single = dashboard.build_datasets(self.engine)
        self.assertEqual(single[0][0], "11.1 Nm (actual)")
        overlay = dashboard.build_datasets(self.engine, loads=c.OVERLAY_LOADS_NM)
        self.assertEqual([label for label, _ in overlay][0], "Load 1 (2 Nm)")
        self.assertEqual(len(overlay), 5)

    def test_dashboard_markers_follow_angle(self):
        board = dashboard.Dashboard(self.engine, loads=[2.0, 11.0])
        board.update_current_state(400.0 + 720.0)
        self.assertEqual(board.current_angle, 400.0)
        x, y = board.ptheta_marker.get_data()
        self.assertEqual(list(x), [400.0])
        self.assertAlmostEqual(y[0], self.engine.actual_pressure(400.0))
        self.assertIn("POWER", board.ax_engine.get_title())
        board.close()

    def test_animation_advance(self):
        board = dashboard.Dashboard(self.engine)
        board.set_speed(10.0)
        self.assertEqual(board.animation_speed, 5.0)
        board.set_speed(1.0)
        board._last_frame_time = time.perf_counter() - 0.01
        board._advance(0)
        self.assertGreater(board.current_angle, 0.0)
        self.assertLess(board.current_angle, c.THETA_MAX)
        board.close()

    def test_mechanism_draws_whole_cycle(self):
        fig, ax = plt.subplots()
        for theta in range(0, 720, 45):
            dashboard.draw_mechanism(ax, self.engine, float(theta))
            self.assertIn(self.engine.phase(theta).upper(), ax.get_title())
        plt.close(fig)

    def test_export_chart_png(self):
        with tempfile.TemporaryDirectory() as tmp:
            for chart in ("pv", "ptheta"):
                path = dashboard.export_chart_png(self.engine, chart, os.path.join(tmp, f"{chart}.png"))
                self.assertTrue(os.path.getsize(path) > 0)
        with self.assertRaises(ValueError):
            dashboard.export_chart_png(self.engine, "bar")


class TestCommandLine(BaseEngineTest):

    def test_main_prints_metrics(self):
        status, out = self.quietly(main.main, ["--rpm", "2000", "--load", "8"])
        self.assertEqual(status, 0)
        self.assertIn("2000 RPM", out)
        self.assertIn("IMEP", out)

    def test_main_rejects_bad_geometry(self):
        with contextlib.redirect_stderr(io.StringIO()) as err, self.assertRaises(SystemExit) as ctx:
            main.main(["--conrod", "40"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("con_rod_length", err.getvalue())

    def test_main_exports(self):
        with tempfile.TemporaryDirectory() as tmp:
            csv_path = os.path.join(tmp, "out.csv")
            png_path = os.path.join(tmp, "out.png")
            _, out = self.quietly(
                main.main,
                ["--csv", csv_path, "--png", "ptheta", "--png-path", png_path, "--loads", "--model", "theoretical"],
            )
            self.assertTrue(os.path.exists(csv_path))
            self.assertTrue(os.path.exists(png_path))
        self.assertIn("CSV written", out)
        plt.close("all")


class TestDiagnostics(BaseEngineTest):

    def test_reference_check_passes(self):
        report, out = self.quietly(diagnostics.run_reference_check)
        self.assertTrue(all(report.values()), out)

    def test_continuity_audit(self):
        jumps, _ = self.quietly(diagnostics.run_phase_continuity_audit)
        self.assertLess(abs(jumps[c.COMBUSTION_END_DEG]), 1e-4)
        self.assertLess(abs(jumps[720.0]), 1e-4)

    def test_load_sweep_imep_rises(self):
        results, _ = self.quietly(diagnostics.run_load_sweep)
        imeps = [m["imep"] for _, m in results]
        self.assertEqual(imeps, sorted(imeps))

    def test_rpm_sweep_and_comparison(self):
        rpm_results, _ = self.quietly(diagnostics.run_rpm_sweep, 1000, 3000, 1000)
        self.assertEqual([rpm for rpm, _ in rpm_results], [1000.0, 2000.0, 3000.0])
        rows, out = self.quietly(diagnostics.run_model_comparison)
        self.assertEqual(len(rows), 25)
        self.assertIn("actual_wiebe", out)

    def test_pv_work_analysis(self):
        work, out = self.quietly(diagnostics.run_pv_work_analysis)
        self.assertIn("NET", out)
        self.assertAlmostEqual(work["net"], work["gross"] + work["pumping"])


if __name__ == "__main__":
    unittest.main()
