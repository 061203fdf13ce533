"""
Configuration Module

Constants shared by the simulation engine and the Streamlit pages, plus
logging setup for the app entry points.
"""

import logging
import os


# =============================================================================
# ENGINE CONSTANTS
# =============================================================================

DEFAULT_WEIGHT = 0.6

HOURS_PER_DAY = 24.0

# Normalization maxima for the weighted objective never drop below this
NORMALIZATION_FLOOR = 1.0

# Hard fallbacks when neither the edge nor the mode defaults set a field.
# avg_speed_kmph falls back to 1 so travel time never divides by zero.
EDGE_FALLBACKS = {
    "cost_per_km": 0.0,
    "avg_speed_kmph": 1.0,
    "fixed_fee": 0.0,
    "dwell_hours": 0.0,
}

RATE_SOURCE_PRODUCT = "Product rate"
RATE_SOURCE_GROUP = "Group rate"
RATE_SOURCE_DEFAULT = "Default rate"


# =============================================================================
# DATA LOCATION
# =============================================================================

DATA_DIR = os.environ.get(
    "SIMULATOR_DATA_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data"),
)
SEED_FILE = "seed.json"


# =============================================================================
# LOGGING
# =============================================================================

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level=None):
    """Configure root logging once for the app. Engine modules only log."""
    if level is None:
        level = os.environ.get("SIMULATOR_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
