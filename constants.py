# constants.py
#
# MIT License
#
# Copyright (c) 2025 Chris Cullin

# =================================== ENGINE GEOMETRY (defaults) ========================
BORE_MM = 80.0
STROKE_MM = 110.0
LEN_CONROD_MM = 220.0
COMP_RATIO = 8.0

# =================================== OPERATING POINT ===================================
RPM = 1857.0
LOAD_NM = 11.1
MAX_LOAD_NM = 20.0

# =================================== ENVIRONMENT =======================================
P_AMBIENT_BAR = 1.013
T_AMBIENT_K = 298.0  # stored only, the pressure models do not use it

# =================================== PHYSICS CONSTANTS ================================
GAMMA_AIR = 1.4
R_SPECIFIC_AIR = 287.0  # J/(kg·K), stored only

# =================================== SPARK & COMBUSTION ================================
IGNITION_ADVANCE_DEG = 15.0  # ° BTDC of the power stroke
COMBUSTION_DURATION_DEG = 50.0
SPARK_WINDOW_DEG = 10.0

# =================================== VALVE WINDOWS =====================================
# intake: open on [0, 180) and after 700; exhaust: open from 540 through 720 and before 20
IVC_DEG = 180.0
IVO_DEG = 700.0
EVO_DEG = 540.0
EVC_DEG = 20.0

# =================================== CYCLE ============================================
THETA_MIN = 0.0
THETA_MAX = 720.0
TDC_COMPRESSION = 360.0
PHASES = ("Suction", "Compression", "Power", "Exhaust")

THETA_DELTA = 2.0  # chart resolution
THETA_DELTA_METRICS = 1.0  # metrics & CSV export resolution

P_FLOOR_BAR = 0.1

# =================================== SIX-PHASE ACTUAL MODEL ============================
# Tuning parameters calibrated against a measured indicator diagram. Do not simplify.
SUCTION_VACUUM_BASE = 0.10
SUCTION_VACUUM_RPM_GAIN = 0.25
RPM_REF = 4000.0

N_COMPRESSION = 1.32
COMPRESSION_START_FACTOR = 0.95

COMBUSTION_PEAK_DEG = 372.0
COMBUSTION_END_DEG = 400.0
PEAK_MULT_BASE = 2.0
PEAK_MULT_LOAD_GAIN = 1.8
RPM_EFF_BASE = 0.85
RPM_EFF_GAIN = 0.15
RPM_OPTIMUM = 2000.0
RPM_EFF_PENALTY = 0.15

N_EXPANSION = 1.28
EVO_BLEND_START_DEG = 500.0
EVO_BLEND_WEIGHT = 0.30
EVO_PRESSURE_FACTOR = 1.5

BLOWDOWN_END_DEG = 600.0
BLOWDOWN_START_FACTOR = 2.0
BLOWDOWN_END_FACTOR = 1.15
BLOWDOWN_EASE_EXP = 2.5

EXHAUST_BACKPRESSURE_BASE = 0.08
EXHAUST_BACKPRESSURE_RPM_GAIN = 0.20

# =================================== THEORETICAL (OTTO) MODEL ==========================
OTTO_LOAD_BASE = 1.5
OTTO_LOAD_GAIN = 2.0

# =================================== WIEBE ACTUAL MODEL ================================
WIEBE_A = 5.0
WIEBE_M = 2.0
WIEBE_GAMMA_DROP = 0.05
WIEBE_EXPANSION_GAMMA_DROP = 0.1
WIEBE_LOAD_BASE = 1.5
WIEBE_LOAD_GAIN = 2.5
WIEBE_RPM_REF = 1500.0
WIEBE_RPM_SPAN = 15000.0
WIEBE_PEAK_REF_DEG = 370.0
WIEBE_PEAK_SMOOTH_END_DEG = 375.0
WIEBE_BLOWDOWN_DEG = 20.0
WIEBE_EXHAUST_FACTOR = 1.1

# =================================== DASHBOARD =========================================
OVERLAY_LOADS_NM = (2.0, 5.0, 8.0, 11.0, 15.0)
