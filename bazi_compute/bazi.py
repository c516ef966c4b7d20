"""
BaZi (Four Pillars of Destiny) computation engine.

Handles:
- Apparent-solar-time to BaZi pillar conversion
- Ten Gods relationship mapping (visible and hidden stems)
- Annual pillar of a calendar year

Calendar simplifications (part of the calculation contract):
- The year pillar changes on 1 January, not at Li Chun (Start of Spring).
- The month pillar follows the calendar month (month 1 = Tiger), not the
  Jie solar terms.

Design principle: This module COMPUTES and FLAGS. It does not interpret.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union
import logging

from bazi_compute.astro_calendar import days_between, parse_timestamp
from bazi_compute.errors import InvalidSymbol, InvalidTimestamp
from bazi_compute.settings import (
    DAY_EPOCH, DAY_EPOCH_BRANCH_INDEX, DAY_EPOCH_STEM_INDEX, YEAR_EPOCH,
)
from bazi_compute.symbols import (
    Branch, GanZhi, Stem, element_relationship,
)

logger = logging.getLogger(__name__)

POSITIONS = ("year", "month", "day", "hour")


# ============================================================
# CHART
# ============================================================

@dataclass(frozen=True)
class BaziChart:
    year: GanZhi
    month: GanZhi
    day: GanZhi
    hour: GanZhi

    def __str__(self):
        return " ".join(str(p) for p in self.pillars)

    @property
    def pillars(self) -> tuple:
        return (self.year, self.month, self.day, self.hour)

    @property
    def day_master(self) -> Stem:
        return self.day.stem

    @property
    def stems(self) -> tuple:
        return tuple(p.stem for p in self.pillars)

    @property
    def branches(self) -> tuple:
        return tuple(p.branch for p in self.pillars)

    @classmethod
    def from_strings(cls, year: str, month: str, day: str, hour: str) -> "BaziChart":
        """Build a chart from four two-character pillars, e.g. ("庚午", "壬午", "甲子", "丙寅")."""
        return cls(*(GanZhi.parse(text) for text in (year, month, day, hour)))

    def validate(self) -> "BaziChart":
        """
        Check every pillar against the closed stem/branch sets.

        Raises:
            InvalidSymbol
        """
        for position, pillar in zip(POSITIONS, self.pillars):
            if not isinstance(pillar, GanZhi):
                raise InvalidSymbol(f"{position} pillar is not a GanZhi: {pillar!r}")
            if not isinstance(pillar.stem, Stem):
                raise InvalidSymbol(f"{position} stem is not a heavenly stem: {pillar.stem!r}")
            if not isinstance(pillar.branch, Branch):
                raise InvalidSymbol(f"{position} branch is not an earthly branch: {pillar.branch!r}")
        return self

    def to_dict(self) -> dict:
        return {
            "year_ganzhi": str(self.year),
            "month_ganzhi": str(self.month),
            "day_ganzhi": str(self.day),
            "hour_ganzhi": str(self.hour),
            "day_master": self.day_master.to_dict(),
            "pillars": {pos: p.to_dict() for pos, p in zip(POSITIONS, self.pillars)},
        }


# ============================================================
# PILLAR COMPUTATION
# ============================================================

def year_pillar(year: int, epoch_year: int = YEAR_EPOCH) -> GanZhi:
    """
    Compute the Year Pillar on the calendar year.

    The epoch year (1984) is a Jia Zi year, stem 0 / branch 0.
    """
    offset = year - epoch_year
    return GanZhi(Stem.at(offset % 10), Branch.at(offset % 12))


def month_branch_index(month: int) -> int:
    """Calendar month 1 is the Tiger month (branch index 2)."""
    return (month + 1) % 12


def month_pillar(year_stem_index: int, month_branch_index: int) -> GanZhi:
    """
    Compute the Month Pillar using the Five Tigers Escape (Wu Hu Dun) formula:
    the year stem fixes the stem of the Tiger month, and each later month
    advances one stem.

    Args:
        year_stem_index: index of the year's heavenly stem (0-9)
        month_branch_index: index of the month's earthly branch (0-11)
            Note: month 1 (Tiger/Yin) has branch_index 2
    """
    tiger_start_stems = {
        0: 2, 5: 2,   # Jia/Ji year → Bing Tiger
        1: 4, 6: 4,   # Yi/Geng year → Wu Tiger
        2: 6, 7: 6,   # Bing/Xin year → Geng Tiger
        3: 8, 8: 8,   # Ding/Ren year → Ren Tiger
        4: 0, 9: 0,   # Wu/Gui year → Jia Tiger
    }

    start_stem = tiger_start_stems[year_stem_index]
    months_from_tiger = (month_branch_index - 2) % 12

    return GanZhi(Stem.at(start_stem + months_from_tiger), Branch.at(month_branch_index))


def day_pillar(d: date, epoch: date = DAY_EPOCH,
               epoch_stem_index: int = DAY_EPOCH_STEM_INDEX,
               epoch_branch_index: int = DAY_EPOCH_BRANCH_INDEX) -> GanZhi:
    """
    Compute the Day Pillar as an offset from a fixed epoch day.

    The day count comes from Julian Day numbers; Python's floor modulo keeps
    dates before the epoch on the cycle.
    """
    offset = days_between(epoch, d)
    return GanZhi(Stem.at(epoch_stem_index + offset), Branch.at(epoch_branch_index + offset))


def hour_branch_index(hour: int) -> int:
    """
    Map a 24h hour to its double-hour (shi chen) branch.

    23:00-00:59 = Zi (Rat)      = branch 0
    01:00-02:59 = Chou (Ox)     = branch 1
    03:00-04:59 = Yin (Tiger)   = branch 2
    ...
    21:00-22:59 = Hai (Pig)     = branch 11
    """
    if not 0 <= hour <= 23:
        raise InvalidTimestamp(f"Hour {hour} outside 0-23")
    if hour == 23 or hour == 0:
        return 0
    return ((hour + 1) // 2) % 12


def hour_pillar(day_stem_index: int, hour: int) -> GanZhi:
    """
    Compute the Hour Pillar using Five Rats Escape (Wu Shu Dun) formula.

    Use apparent solar time, not clock time. The Zi hour starting at 23:00
    stays on the current day's stem.

    Args:
        day_stem_index: index of the day's heavenly stem (0-9)
        hour: hour in 24h format
    """
    branch_index = hour_branch_index(hour)

    # Five Rats Escape: starting stem for Zi hour based on day stem
    zi_start_stems = {
        0: 0, 5: 0,   # Jia/Ji day → Jia Zi hour
        1: 2, 6: 2,   # Yi/Geng day → Bing Zi hour
        2: 4, 7: 4,   # Bing/Xin day → Wu Zi hour
        3: 6, 8: 6,   # Ding/Ren day → Geng Zi hour
        4: 8, 9: 8,   # Wu/Gui day → Ren Zi hour
    }

    start_stem = zi_start_stems[day_stem_index]
    return GanZhi(Stem.at(start_stem + branch_index), Branch.at(branch_index))


def annual_pillar(year: int) -> GanZhi:
    """Compute the annual (liu nian) pillar for a given year."""
    return year_pillar(year)


def generate_bazi(solar_time: Union[datetime, str]) -> BaziChart:
    """
    Compute the four pillars from apparent solar time.

    Args:
        solar_time: output of astro_calendar.solar_time(), or any naive
            datetime / ISO string already expressed in solar time

    Raises:
        InvalidTimestamp
    """
    moment = parse_timestamp(solar_time)

    yp = year_pillar(moment.year)
    mp = month_pillar(yp.stem.index, month_branch_index(moment.month))
    dp = day_pillar(moment.date())
    hp = hour_pillar(dp.stem.index, moment.hour)

    chart = BaziChart(year=yp, month=mp, day=dp, hour=hp)
    logger.debug("Chart for %s: %s", moment.isoformat(), chart)
    return chart


# ============================================================
# TEN GODS (十神) RELATIONSHIP MAPPING
# ============================================================

TEN_GODS = {
    # (relationship, same_polarity): god_name
    ("same", True): "Companion (比肩 Bi Jian)",
    ("same", False): "Rob Wealth (劫财 Jie Cai)",
    ("produces_me", True): "Indirect Resource (偏印 Pian Yin)",
    ("produces_me", False): "Direct Resource (正印 Zheng Yin)",
    ("i_produce", True): "Eating God (食神 Shi Shen)",
    ("i_produce", False): "Hurting Officer (伤官 Shang Guan)",
    ("i_control", True): "Indirect Wealth (偏财 Pian Cai)",
    ("i_control", False): "Direct Wealth (正财 Zheng Cai)",
    ("controls_me", True): "7 Killings (七杀 Qi Sha)",
    ("controls_me", False): "Direct Officer (正官 Zheng Guan)",
}

COMPANION = TEN_GODS[("same", True)]


def ten_god(day_master: Stem, other: Stem) -> str:
    """Determine the Ten God relationship between the Day Master and another stem."""
    relationship = element_relationship(day_master.element, other.element)
    same_polarity = (day_master.polarity == other.polarity)
    return TEN_GODS[(relationship, same_polarity)]


def map_ten_gods(chart: BaziChart) -> list:
    """
    Map Ten Gods for all visible stems in the chart,
    including the hidden stems within each branch.
    """
    day_master = chart.validate().day_master
    results = []
    for position, pillar in zip(POSITIONS, chart.pillars):
        god = "Self (Day Master)" if position == "day" else ten_god(day_master, pillar.stem)
        hidden_gods = [
            {
                "stem": hidden.value,
                "element": hidden.element.value,
                "polarity": hidden.polarity.value,
                "ten_god": ten_god(day_master, hidden),
            }
            for hidden in pillar.branch.hidden_stems
        ]
        results.append({
            "position": position,
            "stem": pillar.stem.value,
            "ten_god": god,
            "branch": pillar.branch.value,
            "branch_animal": pillar.branch.animal,
            "hidden_stem_gods": hidden_gods,
        })
    return results


def main_ten_gods(chart: BaziChart, limit: int = 3) -> list:
    """The most frequent gods among the year, month and hour stems, Companion excluded."""
    day_master = chart.validate().day_master
    gods = [ten_god(day_master, s) for s in (chart.year.stem, chart.month.stem, chart.hour.stem)]
    counts = Counter(g for g in gods if g != COMPANION)
    # most_common keeps first-seen order among equal counts
    return [god for god, _ in counts.most_common(limit)]
