"""
Engine constants.

These are the fixed conventions of the calculation contract. Functions take
them as keyword defaults, so a caller can pass alternatives explicitly.
"""

from datetime import date
from types import MappingProxyType

# Solar time: China Standard Time is based on the 120°E meridian (UTC+8)
REFERENCE_MERIDIAN = 120.0

# Sexagenary anchors
YEAR_EPOCH = 1984               # Jia Zi year: stem 0, branch 0
DAY_EPOCH = date(1900, 1, 1)
DAY_EPOCH_STEM_INDEX = 6
DAY_EPOCH_BRANCH_INDEX = 10

# Decade periods
DAYUN_COUNT = 8
DAYUN_SPAN_YEARS = 10
DAYUN_START_AGE = MappingProxyType({"male": 8, "female": 7})

# Compatibility weights
OVERALL_WEIGHTS = MappingProxyType({
    "wuxing": 0.30,
    "ganzhi": 0.25,
    "yongshen": 0.25,
    "dayun": 0.20,
})

CATEGORY_BASELINE = 60
CATEGORY_WEIGHTS = MappingProxyType({
    "love": 0.6,
    "career": 0.4,
    "wealth": 0.5,
    "health": 0.3,
    "family": 0.7,
})

DAYUN_BASELINE_SCORE = 50
