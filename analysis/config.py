from pathlib import Path
import os
from dotenv import load_dotenv

from caseforecast import PipelineConfig

load_dotenv()

# --- PATHS CONFIGURATION ---
PROJECT_ROOT = Path(__file__).resolve().parent.parent

DATA_PATH = Path(os.getenv("CASEFORECAST_DATA", PROJECT_ROOT / "data" / "covid19.csv"))
REFERENCE_PATH = Path(os.getenv("CASEFORECAST_REFERENCE", PROJECT_ROOT / "data" / "provinces.csv"))
OUTPUT_DIR = Path(os.getenv("CASEFORECAST_OUTPUT", PROJECT_ROOT / "analysis" / "output"))
# ---------------------------

# Series
REGION = os.getenv("CASEFORECAST_REGION", "Ontario")
TIME_COL = os.getenv("CASEFORECAST_TIME_COL", "date")
VALUE_COL = os.getenv("CASEFORECAST_VALUE_COL", "numconf")
ENTITY_COL = os.getenv("CASEFORECAST_ENTITY_COL", "prname")
START_DATE = os.getenv("CASEFORECAST_START")   # None = first available day
END_DATE = os.getenv("CASEFORECAST_END")

# Stationarity
ALPHA = float(os.getenv("CASEFORECAST_ALPHA", "0.05"))
MAX_D = int(os.getenv("CASEFORECAST_MAX_D", "2"))

# CV Parameters
P_RANGE = (1, 4)
Q_RANGE = (0, 4)
INIT_WINDOW = int(os.getenv("CASEFORECAST_INIT_WINDOW", "3"))
HOLDOUT = 1
MAX_WORKERS = int(os.getenv("CASEFORECAST_WORKERS", "1"))

# Diagnostics / forecast
LB_LAGS = 10
HORIZON = int(os.getenv("CASEFORECAST_HORIZON", "7"))
LEVEL = float(os.getenv("CASEFORECAST_LEVEL", "0.95"))


def pipeline_config(**overrides) -> PipelineConfig:
    params = dict(
        alpha=ALPHA,
        max_d=MAX_D,
        p_range=P_RANGE,
        q_range=Q_RANGE,
        init_window=INIT_WINDOW,
        holdout=HOLDOUT,
        diagnostic_lags=LB_LAGS,
        horizon=HORIZON,
        level=LEVEL,
        max_workers=MAX_WORKERS,
    )
    params.update({k: v for k, v in overrides.items() if v is not None})
    return PipelineConfig(**params)
