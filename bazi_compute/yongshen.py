"""
Favorable element (用神 Yongshen) resolution.

The resolver is a two-branch heuristic, not the full classical method:
- Day master element count below the mean (total / 5) → weak day master →
  the favorable element is the one that generates it.
- Otherwise → strong day master → the favorable element is the one it
  generates, channelling the excess outward.

Also provides the month-command strength score, the month-command
pattern (格局) and the lucky-element tables keyed by favorable element.
"""

from collections import Counter
from types import MappingProxyType
import logging

from bazi_compute.bazi import BaziChart
from bazi_compute.errors import InvalidDayMaster, InvalidSymbol
from bazi_compute.symbols import (
    ELEMENT_ORDER, PRODUCED_BY, PRODUCTION_CYCLE, Element, Stem, element_relationship, generates,
    parse_element, restrains,
)
from bazi_compute.wuxing import WuXingAnalysis

logger = logging.getLogger(__name__)


def _day_master_element(day_master) -> Element:
    try:
        return Stem.parse(day_master).element
    except InvalidSymbol:
        raise InvalidDayMaster(f"Invalid day master: {day_master!r}") from None


def is_strong_day_master(analysis: WuXingAnalysis, day_master) -> bool:
    """True when the day master's element count is at or above the five-element mean."""
    element = _day_master_element(day_master)
    average_strength = analysis.total / 5
    return analysis.counts[element] >= average_strength


def determine_yongshen(analysis: WuXingAnalysis, day_master) -> Element:
    """
    Resolve the favorable element for a day master.

    Args:
        analysis: element profile of the chart
        day_master: the day stem (Stem or its Chinese character)

    Raises:
        InvalidDayMaster
    """
    element = _day_master_element(day_master)
    if is_strong_day_master(analysis, day_master):
        yongshen = PRODUCTION_CYCLE[element]
    else:
        yongshen = PRODUCED_BY[element]
    logger.debug("Yongshen for %s day master: %s", element.value, yongshen.value)
    return yongshen


# ============================================================
# DAY MASTER STRENGTH (日主旺衰)
# ============================================================

def rizhu_strength(chart: BaziChart) -> str:
    """
    Score the day master against the month command and its supporters.

    - Month branch: +50 same element, +30 generates the DM, -30 restrains it
    - Day branch: +20 when same element or generating
    - Year/month/hour stems and branches: +5 per supporter, -5 per restrainer

    Returns:
        "strong" (score >= 30), "weak" (score <= -10) or "neutral"
    """
    chart.validate()
    dm = chart.day_master.element

    def supports(e: Element) -> bool:
        return e is dm or generates(e, dm)

    score = 0
    month_element = chart.month.branch.element
    if month_element is dm:
        score += 50
    elif generates(month_element, dm):
        score += 30
    elif restrains(month_element, dm):
        score -= 30

    if supports(chart.day.branch.element):
        score += 20

    help_count = harm_count = 0
    for pillar in (chart.year, chart.month, chart.hour):
        for e in (pillar.stem.element, pillar.branch.element):
            if supports(e):
                help_count += 1
            elif restrains(e, dm):
                harm_count += 1
    score += (help_count - harm_count) * 5

    if score >= 30:
        return "strong"
    if score <= -10:
        return "weak"
    return "neutral"


# ============================================================
# PATTERN (格局 Ge Ju)
# ============================================================

PATTERNS = {
    # (relationship of month command to DM, DM is yang): pattern
    ("produces_me", True): "Indirect Resource Pattern (偏印格)",
    ("produces_me", False): "Direct Resource Pattern (正印格)",
    ("i_produce", True): "Eating God Pattern (食神格)",
    ("i_produce", False): "Hurting Officer Pattern (伤官格)",
    ("controls_me", True): "7 Killings Pattern (七杀格)",
    ("controls_me", False): "Direct Officer Pattern (正官格)",
}

DIRECT_WEALTH_PATTERN = "Direct Wealth Pattern (正财格)"
INDIRECT_WEALTH_PATTERN = "Indirect Wealth Pattern (偏财格)"
COMPANION_PATTERN = "Companion Pattern (比肩格)"

SPECIAL_PATTERNS = MappingProxyType({
    Element.WOOD: "Straight and Bent (曲直格 Qu Zhi)",
    Element.FIRE: "Blazing Up (炎上格 Yan Shang)",
    Element.EARTH: "Sowing and Reaping (稼穑格 Jia Se)",
    Element.METAL: "Following Reform (从革格 Cong Ge)",
    Element.WATER: "Flowing Down (润下格 Run Xia)",
})


def pattern(chart: BaziChart) -> str:
    """
    Classify the chart by the month branch's main qi against the day master.

    - DM controls it → wealth; Direct when that element shows on the year,
      month or hour stem, Indirect otherwise
    - it controls / produces / is produced by the DM → officer, resource
      or output pattern, split by the DM's polarity (the month element is
      taken as its yang stem)
    - same element → Companion
    """
    chart.validate()
    dm = chart.day_master
    month_qi = chart.month.branch.element
    relationship = element_relationship(dm.element, month_qi)

    if relationship == "i_control":
        visible = (chart.year.stem, chart.month.stem, chart.hour.stem)
        if any(s.element is month_qi for s in visible):
            return DIRECT_WEALTH_PATTERN
        return INDIRECT_WEALTH_PATTERN
    if relationship == "same":
        return COMPANION_PATTERN
    return PATTERNS[(relationship, dm.is_yang)]


def special_patterns(chart: BaziChart) -> list:
    """Special patterns: three or more of the four stems share one element."""
    counts = Counter(s.element for s in chart.validate().stems)
    return [SPECIAL_PATTERNS[e] for e in ELEMENT_ORDER if counts[e] >= 3]


# ============================================================
# LUCKY ELEMENTS
# ============================================================

ELEMENT_ADVICE = MappingProxyType({
    Element.WOOD: {
        "colors": ("green", "cyan", "jade"),
        "numbers": (1, 2, 3, 8),
        "directions": ("east", "southeast"),
        "seasons": ("spring",),
    },
    Element.FIRE: {
        "colors": ("red", "purple", "pink"),
        "numbers": (2, 7, 9),
        "directions": ("south",),
        "seasons": ("summer",),
    },
    Element.EARTH: {
        "colors": ("yellow", "brown", "ochre"),
        "numbers": (5, 6, 10),
        "directions": ("center", "southwest", "northeast"),
        "seasons": ("last month of each season",),
    },
    Element.METAL: {
        "colors": ("white", "gold", "silver"),
        "numbers": (4, 7, 8, 9),
        "directions": ("west", "northwest"),
        "seasons": ("autumn",),
    },
    Element.WATER: {
        "colors": ("black", "blue", "dark tones"),
        "numbers": (1, 6, 10),
        "directions": ("north",),
        "seasons": ("winter",),
    },
})

LUCKY_LIMITS = {"colors": 4, "numbers": 6, "directions": 3, "seasons": 2}


def lucky_elements(yongshen, day_master_element) -> dict:
    """
    Colors, numbers, directions and seasons for a chart.

    Favorable-element entries come first, then the day master's element,
    duplicates dropped, each list truncated to its limit.
    """
    primary = ELEMENT_ADVICE[parse_element(yongshen)]
    personal = ELEMENT_ADVICE[parse_element(day_master_element)]

    lucky = {}
    for key, limit in LUCKY_LIMITS.items():
        merged = list(dict.fromkeys(primary[key] + personal[key]))
        lucky[key] = merged[:limit]
    return lucky
