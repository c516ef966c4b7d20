"""
Two-chart compatibility (合盘 He Pan) engine.

Combines two independently computed profiles into:
- four sub-scores: element, stem/branch, favorable-element and decade-period
  compatibility
- an overall weighted score
- five category scores (love, career, wealth, health, family)
- threshold-selected strengths / challenges / suggestions
- the list of cross-chart combinations and clashes that were detected

Every score lies in [0, 100] and is symmetric in the two people.
The category scores are a coarse model: a fixed baseline plus a weighted
delta of the element score, one weight per category.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional, Union
import logging
import math

from bazi_compute.astro_calendar import parse_timestamp
from bazi_compute.bazi import POSITIONS, BaziChart
from bazi_compute.dayun import DayunPeriod, current_period
from bazi_compute.errors import NoCurrentPeriod
from bazi_compute.profile import BaziProfile, BirthInput, compute_profile
from bazi_compute.settings import (
    CATEGORY_BASELINE, CATEGORY_WEIGHTS, DAYUN_BASELINE_SCORE, OVERALL_WEIGHTS,
)
from bazi_compute.symbols import (
    ELEMENT_ORDER, PRODUCTION_CYCLE, Element, branch_combination, branches_clash,
    branches_combine, generates, parse_element, restrains, stem_combination, stems_combine,
)
from bazi_compute.wuxing import WuXingAnalysis

logger = logging.getLogger(__name__)

# Stem/branch points (out of GANZHI_MAX_POINTS)
DAY_STEM_COMBINATION = 25
DAY_BRANCH_COMBINATION = 20
YEAR_STEM_COMBINATION = 15
MONTH_BRANCH_COMBINATION = 15
GANZHI_MAX_POINTS = 75
CLASH_PENALTY = 10

# Favorable-element bands
YONGSHEN_SAME = 90
YONGSHEN_GENERATING = 75
YONGSHEN_RESTRAINING = 30
YONGSHEN_OTHER = 60

# Decade-period points around the baseline
DAYUN_STEM_COMBINATION = 30
DAYUN_BRANCH_COMBINATION = 30
DAYUN_CLASH_PENALTY = 20

# Element generation term
GENERATION_STRONG_ABOVE = 2
GENERATION_WEAK_BELOW = 2
GENERATION_BONUS = 0.3


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class CompatibilityScores:
    overall_score: int
    wuxing_compatibility: int
    ganzhi_compatibility: int
    yongshen_compatibility: int
    dayun_compatibility: int


@dataclass(frozen=True)
class DetailedScores:
    love_score: int
    career_score: int
    wealth_score: int
    health_score: int
    family_score: int


@dataclass(frozen=True)
class CompatibilityAnalysis:
    strengths: tuple
    challenges: tuple
    suggestions: tuple


@dataclass(frozen=True)
class CompatibilityResult:
    person_a: BaziProfile
    person_b: BaziProfile
    compatibility: CompatibilityScores
    detailed_scores: DetailedScores
    analysis: CompatibilityAnalysis
    interactions: tuple

    @property
    def overall_score(self) -> int:
        return self.compatibility.overall_score

    def to_dict(self) -> dict:
        return {
            "person_a": _person_summary(self.person_a),
            "person_b": _person_summary(self.person_b),
            "compatibility": asdict(self.compatibility),
            "detailed_scores": asdict(self.detailed_scores),
            "analysis": {
                "strengths": list(self.analysis.strengths),
                "challenges": list(self.analysis.challenges),
                "suggestions": list(self.analysis.suggestions),
            },
            "interactions": list(self.interactions),
        }


def _person_summary(profile: BaziProfile) -> dict:
    return {
        "name": profile.name,
        "bazi": profile.chart.to_dict(),
        "wuxing": profile.wuxing.to_dict(),
        "yongshen": profile.yongshen.value,
    }


# ============================================================
# ELEMENT COMPATIBILITY
# ============================================================

def _complement_score(strength_a: int, strength_b: int) -> float:
    if strength_a + strength_b == 0:
        return 0.5
    return 1 - abs(strength_a - strength_b) / max(strength_a + strength_b, 1)


def _generation_score(element: Element, a: WuXingAnalysis, b: WuXingAnalysis) -> float:
    """One person strong in an element while the other is weak in what it generates."""
    generated = PRODUCTION_CYCLE[element]
    score = 0.0
    if a.counts[element] > GENERATION_STRONG_ABOVE and b.counts[generated] < GENERATION_WEAK_BELOW:
        score += GENERATION_BONUS
    if b.counts[element] > GENERATION_STRONG_ABOVE and a.counts[generated] < GENERATION_WEAK_BELOW:
        score += GENERATION_BONUS
    return score


def wuxing_compatibility(a: WuXingAnalysis, b: WuXingAnalysis) -> int:
    total = 0.0
    for element in ELEMENT_ORDER:
        complement = _complement_score(a.counts[element], b.counts[element])
        generation = _generation_score(element, a, b)
        total += (complement + generation) / 2
    return clamp_score(total / len(ELEMENT_ORDER) * 100)


# ============================================================
# STEM / BRANCH COMPATIBILITY
# ============================================================

def count_branch_clashes(a: BaziChart, b: BaziChart) -> int:
    """Clashing pairs across every branch of one chart against every branch of the other."""
    return sum(1 for x in a.branches for y in b.branches if branches_clash(x, y))


def ganzhi_compatibility(a: BaziChart, b: BaziChart) -> int:
    points = 0
    if stems_combine(a.day.stem, b.day.stem):
        points += DAY_STEM_COMBINATION
    if branches_combine(a.day.branch, b.day.branch):
        points += DAY_BRANCH_COMBINATION
    if stems_combine(a.year.stem, b.year.stem):
        points += YEAR_STEM_COMBINATION
    if branches_combine(a.month.branch, b.month.branch):
        points += MONTH_BRANCH_COMBINATION

    points -= count_branch_clashes(a, b) * CLASH_PENALTY
    return clamp_score(points / GANZHI_MAX_POINTS * 100)


# ============================================================
# FAVORABLE ELEMENT COMPATIBILITY
# ============================================================

def yongshen_compatibility(a, b) -> int:
    """
    Four discrete bands: same, generating, restraining, other.

    Raises:
        InvalidSymbol: for anything that is not an element
    """
    a, b = parse_element(a), parse_element(b)
    if a is b:
        return YONGSHEN_SAME
    if generates(a, b) or generates(b, a):
        return YONGSHEN_GENERATING
    if restrains(a, b) or restrains(b, a):
        return YONGSHEN_RESTRAINING
    return YONGSHEN_OTHER


# ============================================================
# DECADE PERIOD COMPATIBILITY
# ============================================================

def _current_dayun(profile: BaziProfile, reference_date) -> DayunPeriod:
    if not profile.dayun:
        raise NoCurrentPeriod(f"No decade periods for {profile.name or 'person'}")
    if reference_date is None:
        return profile.dayun[0]
    return current_period(profile.dayun, profile.solar_time, reference_date)


def dayun_pair_score(a: DayunPeriod, b: DayunPeriod) -> int:
    points = 0
    if stems_combine(a.ganzhi.stem, b.ganzhi.stem):
        points += DAYUN_STEM_COMBINATION
    if branches_combine(a.ganzhi.branch, b.ganzhi.branch):
        points += DAYUN_BRANCH_COMBINATION
    if branches_clash(a.ganzhi.branch, b.ganzhi.branch):
        points -= DAYUN_CLASH_PENALTY
    return clamp_score(points + DAYUN_BASELINE_SCORE)


def dayun_compatibility(a: BaziProfile, b: BaziProfile,
                        reference_date: Optional[Union[date, datetime, str]] = None) -> int:
    """
    Compare the current decade periods of both people.

    Without a reference date the first period of each person is used.
    When either current period cannot be determined the baseline score is
    returned instead of an error.

    Raises:
        InvalidTimestamp: for an unparseable reference date
    """
    if reference_date is not None:
        reference_date = parse_timestamp(reference_date)
    try:
        period_a = _current_dayun(a, reference_date)
        period_b = _current_dayun(b, reference_date)
    except NoCurrentPeriod as e:
        logger.warning("Decade compatibility falls back to baseline %d: %s",
                       DAYUN_BASELINE_SCORE, e)
        return DAYUN_BASELINE_SCORE
    return dayun_pair_score(period_a, period_b)


# ============================================================
# OVERALL, CATEGORIES, NARRATIVE
# ============================================================

def overall_score(wuxing: int, ganzhi: int, yongshen: int, dayun: int,
                  weights=OVERALL_WEIGHTS) -> int:
    return clamp_score(
        wuxing * weights["wuxing"]
        + ganzhi * weights["ganzhi"]
        + yongshen * weights["yongshen"]
        + dayun * weights["dayun"]
    )


def detailed_scores(wuxing_score: int, baseline: int = CATEGORY_BASELINE,
                    weights=CATEGORY_WEIGHTS) -> DetailedScores:
    def category(name):
        return clamp_score(baseline + (wuxing_score - baseline) * weights[name])

    return DetailedScores(
        love_score=category("love"),
        career_score=category("career"),
        wealth_score=category("wealth"),
        health_score=category("health"),
        family_score=category("family"),
    )


def generate_analysis(overall: int, wuxing: int, ganzhi: int, yongshen: int) -> CompatibilityAnalysis:
    strengths = []
    challenges = []
    suggestions = []

    if overall >= 80:
        strengths.append("The two charts are highly compatible, a natural match")
        strengths.append("Complementary personalities that support each other")
    elif overall >= 60:
        strengths.append("The two charts are fairly compatible and the relationship is harmonious")
        strengths.append("Shared language and an easy way of getting along")

    if wuxing >= 70:
        strengths.append("Complementary five-element configuration with balanced energy")
    if ganzhi >= 70:
        strengths.append("Stems and branches match well")
    if yongshen >= 70:
        strengths.append("Favorable elements support each other and lift fortune")

    if overall < 50:
        challenges.append("The pairing carries some challenges")
        challenges.append("More understanding and tolerance will be needed")
    if wuxing < 50:
        challenges.append("The five-element configuration needs balancing")
    if ganzhi < 50:
        challenges.append("Some periods may bring friction")

    suggestions.append("Keep communicating openly to deepen mutual understanding")
    suggestions.append("Consult each other on important decisions")
    if wuxing < 60:
        suggestions.append("Adjust the living environment to balance the five elements")
    if overall < 70:
        suggestions.append("Choose favorable periods for important activities")
        suggestions.append("Stay patient and tolerant")

    return CompatibilityAnalysis(tuple(strengths), tuple(challenges), tuple(suggestions))


def find_cross_interactions(a: BaziChart, b: BaziChart) -> list:
    """
    Stem combinations, branch combinations and branch clashes between
    every position of one chart and every position of the other.
    """
    interactions = []
    for pos_a, pillar_a in zip(POSITIONS, a.pillars):
        for pos_b, pillar_b in zip(POSITIONS, b.pillars):
            combined = stem_combination(pillar_a.stem, pillar_b.stem)
            if combined is not None:
                interactions.append({
                    "type": "Stem Combination (天干五合)",
                    "between": [f"a.{pos_a}:{pillar_a.stem}", f"b.{pos_b}:{pillar_b.stem}"],
                    "result_element": combined.value,
                })

    for pos_a, pillar_a in zip(POSITIONS, a.pillars):
        for pos_b, pillar_b in zip(POSITIONS, b.pillars):
            x, y = pillar_a.branch, pillar_b.branch
            between = [f"a.{pos_a}:{x}({x.animal})", f"b.{pos_b}:{y}({y.animal})"]
            combined = branch_combination(x, y)
            if combined is not None:
                interactions.append({
                    "type": "Six Combination (六合)",
                    "between": between,
                    "result_element": combined.value,
                })
            if branches_clash(x, y):
                interactions.append({
                    "type": "Six Clash (六冲)",
                    "between": between,
                    "note": "Direct opposition. Disruption, conflict, forced movement.",
                })
    return interactions


def analyze_compatibility(person_a: BaziProfile, person_b: BaziProfile,
                          reference_date: Optional[Union[date, datetime, str]] = None
                          ) -> CompatibilityResult:
    """
    Score two independently computed profiles.

    Args:
        person_a, person_b: profiles from compute_profile(); never modified
        reference_date: date used to pick each person's current decade
            period; None uses the first period

    Raises:
        InvalidSymbol: when either chart holds symbols outside the fixed sets
        InvalidTimestamp: for an unparseable reference date
    """
    if reference_date is not None:
        reference_date = parse_timestamp(reference_date)
    person_a.chart.validate()
    person_b.chart.validate()

    wx = wuxing_compatibility(person_a.wuxing, person_b.wuxing)
    gz = ganzhi_compatibility(person_a.chart, person_b.chart)
    ys = yongshen_compatibility(person_a.yongshen, person_b.yongshen)
    dy = dayun_compatibility(person_a, person_b, reference_date)
    overall = overall_score(wx, gz, ys, dy)

    logger.debug("Hepan %s / %s: overall=%d wuxing=%d ganzhi=%d yongshen=%d dayun=%d",
                 person_a.chart, person_b.chart, overall, wx, gz, ys, dy)

    return CompatibilityResult(
        person_a=person_a,
        person_b=person_b,
        compatibility=CompatibilityScores(
            overall_score=overall,
            wuxing_compatibility=wx,
            ganzhi_compatibility=gz,
            yongshen_compatibility=ys,
            dayun_compatibility=dy,
        ),
        detailed_scores=detailed_scores(wx),
        analysis=generate_analysis(overall, wx, gz, ys),
        interactions=tuple(find_cross_interactions(person_a.chart, person_b.chart)),
    )


def calculate_hepan(input_a: BirthInput, input_b: BirthInput,
                    reference_date: Optional[Union[date, datetime, str]] = None
                    ) -> CompatibilityResult:
    """Run both single-person pipelines and score the pair."""
    if reference_date is not None:
        reference_date = parse_timestamp(reference_date)
    return analyze_compatibility(compute_profile(input_a), compute_profile(input_b),
                                 reference_date=reference_date)
