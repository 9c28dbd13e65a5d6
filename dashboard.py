# dashboard.py
#
# MIT License
#
# Copyright (c) 2025 Chris Cullin

import time

import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.gridspec import GridSpec
from matplotlib.patches import Circle, FancyBboxPatch, Rectangle
import numpy as np

import constants as c

LOAD_COLORS = ["#374151", "#ec4899", "#10b981", "#f59e0b", "#ef4444"]
PHASE_COLORS = {
    "Suction": "#3b82f6",
    "Compression": "#8b5cf6",
    "Power": "#ef4444",
    "Exhaust": "#6b7280",
}
MARKER_COLOR = "#dc2626"
TICK_LABELS = {0: "0°\n(TDC)", 180: "180°\n(BDC)", 360: "360°\n(TDC)", 540: "540°\n(BDC)", 720: "720°\n(TDC)"}


def build_datasets(engine, model="actual", loads=None, step=c.THETA_DELTA):
    """[(label, points)] for one curve at the current load or one per overlay load."""
    if not loads:
        label = f"{engine.config.load:.1f} Nm ({model})"
        return [(label, engine.sample_cycle(model, step))]
    return [
        (f"Load {i + 1} ({load:g} Nm)", points)
        for i, (load, points) in enumerate(engine.load_sweep(loads, model, step))
    ]


def plot_pv_diagram(ax, datasets):
    for i, (label, points) in enumerate(datasets):
        ax.plot(
            [p.volume for p in points],
            [p.pressure for p in points],
            color=LOAD_COLORS[i % len(LOAD_COLORS)],
            lw=2,
            label=label,
        )
    ax.set_xlabel("Volume (cm³)")
    ax.set_ylabel("Pressure (bar)")
    ax.set_title("P-V Diagram")
    ax.set_ylim(bottom=0)
    ax.grid(alpha=0.3)
    ax.legend(loc="upper right")


def plot_ptheta_diagram(ax, datasets):
    for i, (label, points) in enumerate(datasets):
        ax.plot(
            [p.theta for p in points],
            [p.pressure for p in points],
            color=LOAD_COLORS[i % len(LOAD_COLORS)],
            lw=2,
            label=label,
        )
    for theta in TICK_LABELS:
        ax.axvline(theta, color="black", ls="--", lw=1, alpha=0.3 if theta % 360 == 0 else 0.2)
    ax.set_xlim(c.THETA_MIN, c.THETA_MAX)
    ax.set_xticks(list(TICK_LABELS))
    ax.set_xticklabels(list(TICK_LABELS.values()), fontsize=8)
    ax.set_xlabel("Crank Angle (degrees)")
    ax.set_ylabel("Pressure (bar)")
    ax.set_title("P-θ Diagram")
    ax.set_ylim(bottom=0)
    ax.grid(alpha=0.3)
    ax.legend(loc="upper right")


def draw_mechanism(ax, engine, theta):
    """
    Slider-crank drawn to scale in mm, crank centre at the origin and the
    cylinder axis vertical. Valves are green/red when open, the plug glows
    while the spark fires.
    """
    ax.clear()
    ax.set_aspect("equal")
    ax.axis("off")

    cfg, geom = engine.config, engine.geometry
    R, L, bore = geom.crank_radius, cfg.con_rod_length, cfg.bore
    piston_h = 0.5 * bore
    # clearance height: the clearance volume as a bore-sized cylinder
    clearance_h = geom.clearance_volume_cc * 1000.0 / geom.piston_area

    pin_tdc = R + L
    crown_tdc = pin_tdc + 0.6 * piston_h
    head_y = crown_tdc + clearance_h
    liner_bottom = pin_tdc - 2 * R - 0.4 * piston_h

    # Cylinder liner and head
    wall = 0.08 * bore
    for x0 in (-bore / 2 - wall, bore / 2):
        ax.add_patch(Rectangle((x0, liner_bottom), wall, head_y - liner_bottom, fc="#94a3b8", ec="#475569", lw=2))
    ax.add_patch(
        FancyBboxPatch((-bore / 2 - wall, head_y), bore + 2 * wall, 0.25 * bore,
                       boxstyle="round,pad=0,rounding_size=2", fc="#475569", ec="#334155")
    )

    # Piston
    pin_y = pin_tdc - engine.piston_position(theta)
    crown_y = pin_y + 0.6 * piston_h
    ax.add_patch(
        FancyBboxPatch((-bore / 2 + 1, crown_y - piston_h), bore - 2, piston_h,
                       boxstyle="round,pad=0,rounding_size=2", fc="#64748b", ec="#334155", lw=2)
    )
    for k in range(3):
        ring_y = crown_y - 0.1 * piston_h * (k + 1)
        ax.plot([-bore / 2 + 1, bore / 2 - 1], [ring_y, ring_y], color="#334155", lw=1)

    # Connecting rod and crank
    theta_rad = np.deg2rad(theta)
    crank_x, crank_y = R * np.sin(theta_rad), R * np.cos(theta_rad)
    ax.plot([0, crank_x], [pin_y, crank_y], color="#1e293b", lw=6, solid_capstyle="round")
    ax.plot([0, crank_x], [0, crank_y], color="#f97316", lw=9, solid_capstyle="round")
    ax.add_patch(Circle((0, pin_y), 0.04 * bore, color="#1e293b"))
    ax.add_patch(Circle((0, 0), 0.08 * bore, color="#1e293b"))
    ax.add_patch(Circle((crank_x, crank_y), 0.05 * bore, color="#f97316"))

    # Valves
    valves = engine.valve_states(theta)
    valve_y = head_y + 0.35 * bore
    for x0, name, tag, open_color in ((-0.25 * bore, "intake", "IN", "#22c55e"), (0.25 * bore, "exhaust", "EX", "#ef4444")):
        ax.add_patch(Circle((x0, valve_y), 0.1 * bore, color=open_color if valves[name] else "#94a3b8"))
        ax.text(x0, valve_y + 0.18 * bore, tag, ha="center", fontsize=8, color="#1e293b")

    # Spark plug
    ax.add_patch(Rectangle((-0.025 * bore, head_y), 0.05 * bore, 0.15 * bore, color="#fbbf24"))
    if engine.spark_firing(theta):
        ax.add_patch(Circle((0, head_y - 0.08 * bore), 0.1 * bore, color="#fb923c", alpha=0.6))

    phase = engine.phase(theta)
    ax.set_title(
        f"{phase.upper()}\nθ = {theta % c.THETA_MAX:.0f}°",
        color=PHASE_COLORS[phase],
        fontweight="bold",
    )

    ax.set_xlim(-bore, bore)
    ax.set_ylim(-R - 0.2 * bore, valve_y + 0.3 * bore)


def export_chart_png(engine, chart_type="pv", path=None, model="actual", loads=None):
    """Write a standalone P-V or P-θ chart and return the file name."""
    if chart_type not in ("pv", "ptheta"):
        raise ValueError(f"chart_type must be 'pv' or 'ptheta', got '{chart_type}'")
    if path is None:
        prefix = "PV" if chart_type == "pv" else "P-Theta"
        path = f"{prefix}_Diagram_{engine.config.rpm:g}rpm.png"

    fig, ax = plt.subplots(figsize=(10, 6))
    datasets = build_datasets(engine, model, loads)
    if chart_type == "pv":
        plot_pv_diagram(ax, datasets)
    else:
        plot_ptheta_diagram(ax, datasets)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


class Dashboard:
    """P-V and P-θ charts, metrics panel and the mechanism in one window."""

    def __init__(self, engine, model="actual", loads=None):
        self.engine = engine
        self.model = model
        self.loads = loads
        self.current_angle = 0.0
        self.animation_speed = 1.0
        self.animation = None
        self.is_running = False
        self._last_frame_time = None

        self.fig = plt.figure(figsize=(16, 9))
        self.fig.suptitle("SI ENGINE | P-V DIAGRAM SIMULATION", fontsize=16, fontweight="bold")
        gs = GridSpec(2, 3, figure=self.fig, width_ratios=[3, 3, 2], hspace=0.4, wspace=0.35)

        self.ax_pv = self.fig.add_subplot(gs[0, 0:2])
        self.ax_ptheta = self.fig.add_subplot(gs[1, 0:2])
        self.ax_engine = self.fig.add_subplot(gs[0, 2])
        self.ax_metrics = self.fig.add_subplot(gs[1, 2])

        self.fig.canvas.mpl_connect("key_press_event", self.on_key_press)

        self.pv_marker = None
        self.ptheta_marker = None
        self.update_graphs()

    def on_key_press(self, event):
        if event.key == "q":
            self.close()
        elif event.key == " ":
            self.toggle_animation()

    # ----------------------------------------------------------------------
    def update_graphs(self):
        datasets = build_datasets(self.engine, self.model, self.loads)

        self.ax_pv.clear()
        self.ax_ptheta.clear()
        plot_pv_diagram(self.ax_pv, datasets)
        plot_ptheta_diagram(self.ax_ptheta, datasets)

        (self.pv_marker,) = self.ax_pv.plot([], [], "o", color=MARKER_COLOR, ms=10)
        (self.ptheta_marker,) = self.ax_ptheta.plot([], [], "o", color=MARKER_COLOR, ms=10)

        self.update_metrics()
        self.update_current_state(self.current_angle)

    def update_metrics(self):
        m = self.engine.performance_metrics()
        lines = [
            f"Displacement   {m['displacement_volume']:8.1f} cm³",
            f"Compression    {m['compression_ratio']:8.1f} :1",
            f"IMEP           {m['imep']:8.2f} bar",
            f"Ind. Power     {m['indicated_power']:8.2f} kW",
            f"Otto Eff.      {m['thermal_efficiency']:8.1f} %",
            f"Piston Speed   {m['mean_piston_speed']:8.2f} m/s",
            f"Peak P         {m['peak_pressure']:8.2f} bar @ {m['peak_pressure_angle']:.0f}°",
        ]
        self.ax_metrics.clear()
        self.ax_metrics.axis("off")
        self.ax_metrics.set_title("Performance", fontweight="bold")
        self.ax_metrics.text(0.0, 0.95, "\n".join(lines), va="top", ha="left", family="monospace", fontsize=10)

    def update_current_state(self, theta):
        self.current_angle = theta % c.THETA_MAX
        volume = self.engine.volume(self.current_angle)
        pressure = self.engine.pressure(self.current_angle, self.model)

        self.pv_marker.set_data([volume], [pressure])
        self.ptheta_marker.set_data([self.current_angle], [pressure])
        draw_mechanism(self.ax_engine, self.engine, self.current_angle)

    # ----------------------------------------------------------------------
    def set_speed(self, speed):
        self.animation_speed = float(np.clip(speed, 0.1, 5.0))

    def _advance(self, _frame):
        now = time.perf_counter()
        dt = now - self._last_frame_time if self._last_frame_time is not None else 0.0
        self._last_frame_time = now

        degrees_per_sec = self.engine.config.rpm * 360.0 / 60.0 * self.animation_speed
        self.update_current_state(self.current_angle + degrees_per_sec * dt)
        return self.pv_marker, self.ptheta_marker

    def start_animation(self, interval_ms=30):
        self._last_frame_time = time.perf_counter()
        if self.animation is None:
            self.animation = FuncAnimation(
                self.fig, self._advance, interval=interval_ms, cache_frame_data=False
            )
        else:
            self.animation.resume()
        self.is_running = True
        return self.animation

    def stop_animation(self):
        if self.animation is not None:
            self.animation.pause()
        self.is_running = False

    def toggle_animation(self):
        if self.is_running:
            self.stop_animation()
        else:
            self.start_animation()
        return self.is_running

    def save(self, path):
        self.fig.savefig(path, dpi=120)
        return path

    def show(self):
        plt.show()

    def close(self):
        self.stop_animation()
        plt.close(self.fig)
