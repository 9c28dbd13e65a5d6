# main.py
#
# MIT License
#
# Copyright (c) 2025 Chris Cullin

import argparse
import sys

import constants as c
from engine_model import EngineModel, InvalidConfiguration, PRESSURE_MODELS
from logger import export_csv

# flag -> EngineConfiguration field
PARAM_FLAGS = {
    "bore": "bore",
    "stroke": "stroke",
    "conrod": "con_rod_length",
    "cr": "compression_ratio",
    "rpm": "rpm",
    "load": "load",
    "max_load": "max_load",
    "p_amb": "ambient_pressure",
    "t_amb": "ambient_temperature",
    "advance": "ignition_advance",
    "burn": "combustion_duration",
}


def build_parser():
    parser = argparse.ArgumentParser(description="Four-stroke SI engine P-V diagram simulator")
    parser.add_argument("--bore", type=float, default=c.BORE_MM, help="mm")
    parser.add_argument("--stroke", type=float, default=c.STROKE_MM, help="mm")
    parser.add_argument("--conrod", type=float, default=c.LEN_CONROD_MM, help="mm")
    parser.add_argument("--cr", type=float, default=c.COMP_RATIO, help="compression ratio")
    parser.add_argument("--rpm", type=float, default=c.RPM)
    parser.add_argument("--load", type=float, default=c.LOAD_NM, help="Nm")
    parser.add_argument("--max-load", type=float, default=c.MAX_LOAD_NM, help="Nm")
    parser.add_argument("--p-amb", type=float, default=c.P_AMBIENT_BAR, help="bar")
    parser.add_argument("--t-amb", type=float, default=c.T_AMBIENT_K, help="K")
    parser.add_argument("--advance", type=float, default=c.IGNITION_ADVANCE_DEG, help="° BTDC")
    parser.add_argument("--burn", type=float, default=c.COMBUSTION_DURATION_DEG, help="combustion duration, °")

    parser.add_argument("--model", choices=sorted(PRESSURE_MODELS), default="actual")
    parser.add_argument("--loads", type=float, nargs="*", default=None,
                        help="overlay loads in Nm (no values: the default five)")
    parser.add_argument("--csv", nargs="?", const="", default=None, metavar="PATH",
                        help="export the cycle at 1° resolution")
    parser.add_argument("--png", choices=["pv", "ptheta"], default=None)
    parser.add_argument("--png-path", default=None)
    parser.add_argument("--show", action="store_true", help="open the interactive dashboard")
    parser.add_argument("--animate", action="store_true", help="run the mechanism animation (implies --show)")
    parser.add_argument("--speed", type=float, default=1.0, help="animation speed multiplier")
    return parser


def print_metrics(engine):
    m = engine.performance_metrics()
    print("=" * 60)
    print(f"SI ENGINE CYCLE | {engine.config.rpm:g} RPM | {engine.config.load:g} Nm")
    print("=" * 60)
    print(f" Displacement        {m['displacement_volume']:10.1f} cm³")
    print(f" Compression Ratio   {m['compression_ratio']:10.1f} :1")
    print(f" IMEP                {m['imep']:10.2f} bar")
    print(f" Indicated Power     {m['indicated_power']:10.2f} kW")
    print(f" Thermal Efficiency  {m['thermal_efficiency']:10.1f} %")
    print(f" Mean Piston Speed   {m['mean_piston_speed']:10.2f} m/s")
    print(f" Peak Pressure       {m['peak_pressure']:10.2f} bar @ {m['peak_pressure_angle']:.0f}°")
    print("=" * 60)
    return m


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    params = {field: getattr(args, flag) for flag, field in PARAM_FLAGS.items()}
    try:
        engine = EngineModel(**params)
    except InvalidConfiguration as err:
        parser.error(str(err))

    loads = args.loads
    if loads is not None and len(loads) == 0:
        loads = list(c.OVERLAY_LOADS_NM)

    print_metrics(engine)

    if args.csv is not None:
        path = export_csv(engine, args.csv or None, model=args.model)
        print(f"CSV written to {path}")

    if args.png:
        from dashboard import export_chart_png

        path = export_chart_png(engine, args.png, args.png_path, model=args.model, loads=loads)
        print(f"PNG written to {path}")

    if args.show or args.animate:
        from dashboard import Dashboard

        dashboard = Dashboard(engine, model=args.model, loads=loads)
        dashboard.set_speed(args.speed)
        if args.animate:
            dashboard.start_animation()
        try:
            dashboard.show()
        except KeyboardInterrupt:
            print("\nSimulation stopped by user")
        finally:
            dashboard.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
