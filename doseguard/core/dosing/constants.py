"""Dosing safety clinical constants.

All clinically significant values are defined here with documented
rationale. These are DEFAULTS -- the process-wide PolicyConfig is built
from them and may override them from the environment at startup.
"""

from typing import Final

# Hypoglycemia threshold (mg/dL). Below this no insulin may be suggested
# or recorded. 70 mg/dL is the ADA level 1 hypoglycemia threshold.
HYPO_THRESHOLD_MGDL: Final[float] = 70.0

# Hyperglycemia threshold (mg/dL) used for glucose status only.
HYPER_THRESHOLD_MGDL: Final[float] = 180.0

# Dose granularity in units. Half-unit pens are the common denominator.
DOSE_ROUNDING_INCREMENT_UNITS: Final[float] = 0.5

# IOB is reported to one decimal place.
IOB_ROUNDING_INCREMENT_UNITS: Final[float] = 0.1

MIN_BOLUS_UNITS: Final[float] = 0.0

# Duration of insulin action (hours) for rapid-acting insulin when the
# profile does not specify one.
DEFAULT_ACTIVE_INSULIN_HOURS: Final[float] = 4.0

# Multiplier applied to the correction term when glucose is falling.
# 0 removes the correction entirely.
TREND_DOWN_CORRECTION_MULTIPLIER: Final[float] = 0.0

# Input validation bounds. Glucose outside 20-600 mg/dL is outside the
# measuring range of consumer meters; 500 g carbohydrate per meal is a
# generous upper bound for data-entry mistakes.
MIN_GLUCOSE_MGDL: Final[float] = 20.0
MAX_GLUCOSE_MGDL: Final[float] = 600.0
MIN_CARBS_GRAMS: Final[float] = 0.0
MAX_CARBS_GRAMS: Final[float] = 500.0

# Profile defaults applied per missing field.
DEFAULT_ICR_GRAMS_PER_UNIT: Final[float] = 10.0
DEFAULT_ISF_MGDL_PER_UNIT: Final[float] = 30.0
DEFAULT_TARGET_LOW_MGDL: Final[float] = 70.0
DEFAULT_TARGET_HIGH_MGDL: Final[float] = 140.0
DEFAULT_MAX_BOLUS_UNITS: Final[float] = 15.0

# Hypoglycemia treatment: the "rule of 15" -- 15-20 g fast carbohydrate,
# recheck after 15 minutes, repeat while still low.
HYPO_FAST_CARBS_GRAMS_MIN: Final[int] = 15
HYPO_FAST_CARBS_GRAMS_MAX: Final[int] = 20
HYPO_RECHECK_MINUTES: Final[int] = 15

CALCULATOR_ENTRY_REASON: Final[str] = "meal_and_correction"
CALCULATOR_ENTRY_NOTE: Final[str] = "Recorded from dose calculator"
