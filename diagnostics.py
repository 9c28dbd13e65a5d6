# diagnostics.py
#
# MIT License
#
# Copyright (c) 2025 Chris Cullin

import argparse

import numpy as np

import constants as c
from engine_model import EngineModel


# Reference values for the default 80 x 110 mm, CR 8 engine
REFERENCE_TARGETS = {
    "clearance_volume_cc": 79.0,
    "displacement_volume_cc": 552.9,
    "total_volume_cc": 631.9,
    "thermal_efficiency": 56.5,
    "mean_piston_speed": 6.81,
}


def run_pv_work_analysis(rpm=c.RPM, load=c.LOAD_NM, model="actual"):
    """Per-stroke P-V work split for one sampled cycle."""
    engine = EngineModel(rpm=rpm, load=load)
    work = engine.stroke_work(model)

    print("=" * 75)
    print(f"P-V WORK ANALYSIS | RPM: {rpm:g} | LOAD: {load:g} Nm | MODEL: {model}")
    print("=" * 75)
    print(f" PHASE          |  WORK (J)    |  DESCRIPTION")
    print("-" * 75)
    print(f" Suction        | {work['Suction']:12.2f} | Intake pumping")
    print(f" Compression    | {work['Compression']:12.2f} | Work done on the charge")
    print(f" Power          | {work['Power']:12.2f} | Expansion work")
    print(f" Exhaust        | {work['Exhaust']:12.2f} | Exhaust pumping")
    print("-" * 75)
    print(f" GROSS          | {work['gross']:12.2f} | (Compression + Power)")
    print(f" PUMPING        | {work['pumping']:12.2f} | (Suction + Exhaust)")
    print(f" NET            | {work['net']:12.2f} |")
    print("=" * 75)
    return work


def run_phase_continuity_audit(rpm=c.RPM, load=c.LOAD_NM, model="actual", eps=1e-6):
    """Pressure jump across each phase boundary of the chosen model."""
    engine = EngineModel(rpm=rpm, load=load)
    boundaries = [180.0, 360.0, c.COMBUSTION_PEAK_DEG, c.COMBUSTION_END_DEG,
                  c.EVO_BLEND_START_DEG, 540.0, c.BLOWDOWN_END_DEG, 720.0]

    print("=" * 60)
    print(f"PHASE CONTINUITY AUDIT | MODEL: {model}")
    print("=" * 60)
    print(f"{'CAD':>7} | {'P- (bar)':>10} | {'P+ (bar)':>10} | {'JUMP':>8}")
    print("-" * 60)

    jumps = {}
    for theta in boundaries:
        p_before = engine.pressure(theta - eps, model)
        p_after = engine.pressure(theta, model)
        jumps[theta] = p_after - p_before
        print(f"{theta:7.1f} | {p_before:10.3f} | {p_after:10.3f} | {jumps[theta]:+8.3f}")
    print("=" * 60)
    return jumps


def run_load_sweep(loads=c.OVERLAY_LOADS_NM, rpm=c.RPM):
    """IMEP and indicated power for each overlay load."""
    engine = EngineModel(rpm=rpm)
    results = []

    print("=" * 60)
    print(f"LOAD SWEEP | RPM: {rpm:g}")
    print("=" * 60)
    print(f"{'LOAD (Nm)':>10} | {'IMEP (bar)':>10} | {'P_ind (kW)':>10} | {'P_max (bar)':>11}")
    print("-" * 60)
    for load in loads:
        m = engine.copy().update_params(load=load).performance_metrics()
        results.append((float(load), m))
        print(f"{load:10.1f} | {m['imep']:10.2f} | {m['indicated_power']:10.2f} | {m['peak_pressure']:11.2f}")
    print("=" * 60)
    return results


def run_rpm_sweep(start_rpm=1000, end_rpm=4000, step_rpm=500, load=c.LOAD_NM):
    engine = EngineModel(load=load)
    results = []

    print("=" * 60)
    print(f"RPM SWEEP | LOAD: {load:g} Nm")
    print("=" * 60)
    print(f"{'RPM':>6} | {'IMEP (bar)':>10} | {'P_ind (kW)':>10} | {'U_p (m/s)':>9}")
    print("-" * 60)
    for rpm in np.arange(start_rpm, end_rpm + step_rpm, step_rpm):
        m = engine.update_params(rpm=rpm).performance_metrics()
        results.append((float(rpm), m))
        print(f"{rpm:6.0f} | {m['imep']:10.2f} | {m['indicated_power']:10.2f} | {m['mean_piston_speed']:9.2f}")
    print("=" * 60)
    return results


def run_model_comparison(rpm=c.RPM, load=c.LOAD_NM, step=30.0):
    """Side-by-side pressures of the three models at coarse crank angles."""
    engine = EngineModel(rpm=rpm, load=load)
    models = ("theoretical", "actual", "actual_wiebe")

    print("=" * 70)
    print(f"MODEL COMPARISON | RPM: {rpm:g} | LOAD: {load:g} Nm")
    print("=" * 70)
    print(f"{'CAD':>5} | {'PHASE':>11} | " + " | ".join(f"{m:>12}" for m in models))
    print("-" * 70)
    rows = []
    for theta in np.arange(0.0, c.THETA_MAX + step, step):
        pressures = [engine.pressure(theta, m) for m in models]
        rows.append((float(theta), pressures))
        print(f"{theta:5.0f} | {engine.phase(theta):>11} | " + " | ".join(f"{p:12.3f}" for p in pressures))
    print("=" * 70)
    return rows


def run_reference_check(tolerance=0.01):
    """Compares the default engine against REFERENCE_TARGETS (relative tolerance)."""
    engine = EngineModel()
    m = engine.performance_metrics()
    measured = {
        "clearance_volume_cc": engine.geometry.clearance_volume_cc,
        "displacement_volume_cc": engine.geometry.displacement_volume_cc,
        "total_volume_cc": engine.geometry.total_volume_cc,
        "thermal_efficiency": m["thermal_efficiency"],
        "mean_piston_speed": m["mean_piston_speed"],
    }

    print("=" * 60)
    print("REFERENCE CHECK | default engine")
    print("=" * 60)
    report = {}
    for key, target in REFERENCE_TARGETS.items():
        ok = abs(measured[key] - target) <= tolerance * abs(target)
        report[key] = ok
        print(f"  [{'PASS' if ok else 'FAIL'}] {key:<24} {measured[key]:10.3f} (target {target})")
    print("=" * 60)
    return report


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--test", choices=["pv", "continuity", "loads", "rpm", "models", "reference"], required=True)
    parser.add_argument("--rpm", type=float, default=c.RPM)
    parser.add_argument("--load", type=float, default=c.LOAD_NM)
    parser.add_argument("--model", choices=["theoretical", "actual", "actual_wiebe"], default="actual")
    parser.add_argument("--range", type=int, nargs=2, default=[1000, 4000])

    args = parser.parse_args()

    if args.test == "pv": run_pv_work_analysis(args.rpm, args.load, args.model)
    elif args.test == "continuity": run_phase_continuity_audit(args.rpm, args.load, args.model)
    elif args.test == "loads": run_load_sweep(rpm=args.rpm)
    elif args.test == "rpm": run_rpm_sweep(args.range[0], args.range[1], load=args.load)
    elif args.test == "models": run_model_comparison(args.rpm, args.load)
    elif args.test == "reference": run_reference_check()
