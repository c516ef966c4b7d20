"""Two-chart compatibility scoring."""

import itertools
import json
import logging

import pytest

from bazi_compute.dayun import DayunPeriod
from bazi_compute.errors import InvalidSymbol, InvalidTimestamp
from bazi_compute.hepan import (
    analyze_compatibility, calculate_hepan, clamp_score, count_branch_clashes, dayun_compatibility,
    dayun_pair_score, detailed_scores, find_cross_interactions, ganzhi_compatibility,
    generate_analysis, overall_score, round_half_up, wuxing_compatibility, yongshen_compatibility,
)
from bazi_compute.profile import BirthInput, compute_profile
from bazi_compute.symbols import Element, GanZhi
from bazi_compute.wuxing import WuXingAnalysis

from conftest import GOLDEN_PILLARS

BASE = ("甲子", "丙寅", "甲子", "甲子")
COMBINING = ("甲子", "丙寅", "己丑", "甲子")
CLASHING = ("甲子", "丙寅", "庚午", "甲子")

BIRTHS = [
    BirthInput("1990-06-15T14:30:00", 116.4074, "male", name="A"),
    BirthInput("1992-03-20T08:00:00", 121.4737, "female", name="B"),
    BirthInput("1985-11-02T23:40:00", 104.0665, "male", name="C"),
    BirthInput("2001-01-01T00:10:00", 113.2644, "female", name="D"),
]


@pytest.fixture(scope="module")
def profiles():
    return [compute_profile(b) for b in BIRTHS]


def _period(text):
    return DayunPeriod(1, 8, 17, GanZhi.parse(text), 1998, 2007)


class TestRounding:
    @pytest.mark.parametrize("value,expected", [(52.5, 53), (49.5, 50), (0.49, 0), (-0.5, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_clamp(self):
        assert clamp_score(-12) == 0
        assert clamp_score(140) == 100


class TestWuxingCompatibility:
    def test_identical_golden_profiles(self, make_profile):
        a = make_profile(GOLDEN_PILLARS)
        assert wuxing_compatibility(a.wuxing, a.wuxing) == 45

    def test_generation_bonus(self):
        counts = WuXingAnalysis.from_counts({"wood": 4, "fire": 1, "earth": 1, "metal": 1, "water": 1})
        assert wuxing_compatibility(counts, counts) == 56

    def test_disjoint_profiles(self):
        a = WuXingAnalysis.from_counts({"wood": 8})
        b = WuXingAnalysis.from_counts({"metal": 8})
        assert wuxing_compatibility(a, b) == 21
        assert wuxing_compatibility(b, a) == 21


class TestGanzhiCompatibility:
    def test_combination_beats_clash(self, make_profile):
        base = make_profile(BASE).chart
        combining = make_profile(COMBINING).chart
        clashing = make_profile(CLASHING).chart
        assert ganzhi_compatibility(base, combining) == 60
        assert ganzhi_compatibility(base, clashing) == 0
        assert count_branch_clashes(base, clashing) == 3

    def test_all_clashing_floors_at_zero(self, make_profile):
        a = make_profile(("甲子",) * 4).chart
        b = make_profile(("庚午",) * 4).chart
        assert count_branch_clashes(a, b) == 16
        assert ganzhi_compatibility(a, b) == 0

    def test_full_combination(self, make_profile):
        a = make_profile(BASE).chart
        # day stems, day branches, year stems and month branches all combine
        b = make_profile(("己巳", "丁亥", "己丑", "辛未")).chart
        assert ganzhi_compatibility(a, b) == 100


class TestYongshenCompatibility:
    @pytest.mark.parametrize("a,b,expected", [
        (Element.WOOD, Element.WOOD, 90),
        (Element.WOOD, Element.FIRE, 75),
        (Element.FIRE, Element.WOOD, 75),
        (Element.WOOD, Element.EARTH, 30),
        (Element.EARTH, Element.WOOD, 30),
    ])
    def test_bands(self, a, b, expected):
        assert yongshen_compatibility(a, b) == expected

    def test_only_three_bands_occur(self):
        seen = {yongshen_compatibility(a, b) for a in Element for b in Element}
        assert seen == {90, 75, 30}

    def test_accepts_names_and_characters(self):
        assert yongshen_compatibility("木", "火") == 75
        assert yongshen_compatibility("water", Element.WATER) == 90

    @pytest.mark.parametrize("bad", ["plasma", "", None, 3])
    def test_rejects_non_elements(self, bad):
        with pytest.raises(InvalidSymbol):
            yongshen_compatibility(bad, Element.WOOD)


class TestDayunCompatibility:
    def test_combining_periods(self):
        assert dayun_pair_score(_period("甲子"), _period("己丑")) == 100

    def test_clashing_periods(self):
        assert dayun_pair_score(_period("甲子"), _period("庚午")) == 30

    def test_neutral_periods(self):
        assert dayun_pair_score(_period("甲子"), _period("甲寅")) == 50

    def test_first_period_without_reference_date(self, make_profile):
        a = make_profile(BASE)
        b = make_profile(COMBINING)
        assert dayun_compatibility(a, b) == dayun_pair_score(a.dayun[0], b.dayun[0])

    def test_reference_date_picks_current_period(self, make_profile):
        a = make_profile(BASE, birth_time="1990-01-01T12:00:00")
        b = make_profile(COMBINING, birth_time="1990-01-01T12:00:00")
        score = dayun_compatibility(a, b, "2010-06-01")
        assert score == dayun_pair_score(a.dayun[1], b.dayun[1])

    def test_no_current_period_falls_back_to_baseline(self, make_profile, caplog):
        a = make_profile(BASE)
        b = make_profile(COMBINING)
        with caplog.at_level(logging.WARNING, logger="bazi_compute.hepan"):
            assert dayun_compatibility(a, b, "2200-01-01") == 50
        assert "baseline" in caplog.text

    def test_unparseable_reference_date_raises(self, make_profile):
        a = make_profile(BASE)
        b = make_profile(COMBINING)
        with pytest.raises(InvalidTimestamp):
            dayun_compatibility(a, b, "not-a-date")
        with pytest.raises(InvalidTimestamp):
            analyze_compatibility(a, b, reference_date="not-a-date")


class TestAggregates:
    def test_overall_weights(self):
        assert overall_score(45, 60, 90, 50) == 61
        assert overall_score(100, 100, 100, 100) == 100
        assert overall_score(0, 0, 0, 0) == 0

    def test_category_scores(self):
        scores = detailed_scores(45)
        assert (scores.love_score, scores.career_score, scores.wealth_score,
                scores.health_score, scores.family_score) == (51, 54, 53, 56, 50)

    def test_categories_at_baseline(self):
        scores = detailed_scores(60)
        assert {scores.love_score, scores.career_score, scores.wealth_score,
                scores.health_score, scores.family_score} == {60}

    def test_categories_above_baseline(self):
        scores = detailed_scores(80)
        assert (scores.love_score, scores.career_score, scores.wealth_score,
                scores.health_score, scores.family_score) == (72, 68, 70, 66, 74)


class TestAnalysis:
    def test_high_scores(self):
        analysis = generate_analysis(85, 75, 75, 75)
        assert len(analysis.strengths) == 5
        assert analysis.challenges == ()
        assert len(analysis.suggestions) == 2

    def test_low_scores(self):
        analysis = generate_analysis(40, 40, 40, 30)
        assert analysis.strengths == ()
        assert len(analysis.challenges) == 4
        assert len(analysis.suggestions) == 5

    def test_middle_scores(self):
        analysis = generate_analysis(65, 55, 55, 75)
        assert len(analysis.strengths) == 3
        assert analysis.challenges == ()
        assert len(analysis.suggestions) == 5


class TestInteractions:
    def test_combinations_listed(self, make_profile):
        found = find_cross_interactions(make_profile(BASE).chart, make_profile(COMBINING).chart)
        types = [i["type"] for i in found]
        assert types.count("Stem Combination (天干五合)") == 3
        assert types.count("Six Combination (六合)") == 3
        assert "Six Clash (六冲)" not in types
        assert all(i["result_element"] == "earth" for i in found)

    def test_clashes_listed(self, make_profile):
        found = find_cross_interactions(make_profile(BASE).chart, make_profile(CLASHING).chart)
        clashes = [i for i in found if i["type"] == "Six Clash (六冲)"]
        assert len(clashes) == 3
        assert clashes[0]["between"][1] == "b.day:午(Horse)"


class TestAnalyzeCompatibility:
    def test_scores_are_symmetric(self, profiles):
        for a, b in itertools.combinations(profiles, 2):
            ab = analyze_compatibility(a, b)
            ba = analyze_compatibility(b, a)
            assert ab.compatibility == ba.compatibility
            assert ab.detailed_scores == ba.detailed_scores
            ab = analyze_compatibility(a, b, reference_date="2015-01-01")
            ba = analyze_compatibility(b, a, reference_date="2015-01-01")
            assert ab.compatibility == ba.compatibility

    def test_scores_in_range(self, profiles, make_profile):
        pairs = list(itertools.product(profiles, repeat=2))
        pairs.append((make_profile(("甲子",) * 4), make_profile(("庚午",) * 4)))
        for a, b in pairs:
            result = analyze_compatibility(a, b)
            for value in list(vars(result.compatibility).values()) + list(vars(result.detailed_scores).values()):
                assert 0 <= value <= 100

    def test_inputs_untouched(self, profiles):
        a, b = profiles[0], profiles[1]
        before = (a.to_dict(), b.to_dict())
        analyze_compatibility(a, b)
        assert (a.to_dict(), b.to_dict()) == before

    def test_overall_property(self, profiles):
        result = analyze_compatibility(profiles[0], profiles[1])
        assert result.overall_score == result.compatibility.overall_score


class TestCalculateHepan:
    def test_unparseable_reference_date_raises(self):
        with pytest.raises(InvalidTimestamp):
            calculate_hepan(BIRTHS[0], BIRTHS[1], reference_date="not-a-date")

    def test_end_to_end(self):
        result = calculate_hepan(BIRTHS[0], BIRTHS[1])
        data = json.loads(json.dumps(result.to_dict(), ensure_ascii=False))
        assert data["person_a"]["bazi"]["year_ganzhi"] == "庚午"
        assert data["person_a"]["name"] == "A"
        assert set(data["compatibility"]) == {
            "overall_score", "wuxing_compatibility", "ganzhi_compatibility",
            "yongshen_compatibility", "dayun_compatibility",
        }
        assert set(data["detailed_scores"]) == {
            "love_score", "career_score", "wealth_score", "health_score", "family_score",
        }
        assert len(data["analysis"]["suggestions"]) >= 2
