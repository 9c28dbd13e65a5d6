# logger.py
#
# MIT License
#
# Copyright (c) 2025 Chris Cullin

import csv

import constants as c

HEADER_KEYS = ["Crank_Angle", "Volume_cm3", "Pressure_bar", "Phase"]


def default_filename(config):
    return f"PV_Diagram_{config.rpm:g}rpm_{config.load:g}Nm.csv"


class Logger:
    """
    Writes sampled cycle points as CSV, followed by '#' comment lines echoing
    the engine parameters once the file is closed.
    """

    def __init__(self, engine, path=None):
        self.engine = engine
        self.path = path if path is not None else default_filename(engine.config)
        self.csv_file = open(self.path, "w", newline="")
        self.writer = csv.writer(self.csv_file, lineterminator="\n")
        self.writer.writerow(HEADER_KEYS)

    # ---------------------------------------------------------------------------
    def log(self, point):
        self.writer.writerow([
            f"{point.theta:g}",
            f"{point.volume:.2f}",
            f"{point.pressure:.3f}",
            point.phase,
        ])

    def log_cycle(self, model="actual", step=c.THETA_DELTA_METRICS):
        for point in self.engine.sample_cycle(model, step):
            self.log(point)

    def _write_metadata(self):
        cfg = self.engine.config
        self.csv_file.write(
            "\n# Engine Parameters\n"
            f"# Bore: {cfg.bore:g} mm\n"
            f"# Stroke: {cfg.stroke:g} mm\n"
            f"# Compression Ratio: {cfg.compression_ratio:g}:1\n"
            f"# RPM: {cfg.rpm:g}\n"
            f"# Load: {cfg.load:g} Nm\n"
        )

    def close(self):
        if self.csv_file.closed:
            return
        self._write_metadata()
        self.csv_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def export_csv(engine, path=None, model="actual", step=c.THETA_DELTA_METRICS):
    """Samples one cycle into a CSV file and returns its path."""
    with Logger(engine, path) as logger:
        logger.log_cycle(model, step)
    return logger.path
