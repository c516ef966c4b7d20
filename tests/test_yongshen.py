"""Favorable element, day master strength and lucky elements."""

import pytest

from bazi_compute.bazi import BaziChart
from bazi_compute.errors import InvalidDayMaster
from bazi_compute.symbols import Element, Stem
from bazi_compute.wuxing import WuXingAnalysis
from bazi_compute.yongshen import (
    determine_yongshen, is_strong_day_master, lucky_elements, pattern, rizhu_strength,
    special_patterns,
)

WOOD_HEAVY = {"wood": 4, "fire": 1, "earth": 1, "metal": 1, "water": 1}
WOOD_LIGHT = {"wood": 1, "fire": 2, "earth": 3, "metal": 2, "water": 0}


class TestDetermineYongshen:
    def test_wood_heavy_profile(self):
        analysis = WuXingAnalysis.from_counts(WOOD_HEAVY)
        assert analysis.strongest is Element.WOOD
        assert is_strong_day_master(analysis, "甲")

    def test_wood_light_profile(self):
        assert not is_strong_day_master(WuXingAnalysis.from_counts(WOOD_LIGHT), "甲")

    def test_strong_day_master_drains_to_generated_element(self):
        assert determine_yongshen(WuXingAnalysis.from_counts(WOOD_HEAVY), "甲") is Element.FIRE

    def test_weak_day_master_draws_on_generating_element(self):
        assert determine_yongshen(WuXingAnalysis.from_counts(WOOD_LIGHT), "甲") is Element.WATER

    def test_count_at_mean_is_strong(self):
        even = WuXingAnalysis.from_counts({"wood": 2, "fire": 2, "earth": 2, "metal": 2, "water": 2})
        assert is_strong_day_master(even, Stem.YI)
        assert determine_yongshen(even, Stem.YI) is Element.FIRE

    @pytest.mark.parametrize("day_master,strong,weak", [
        ("丙", Element.EARTH, Element.WOOD),
        ("戊", Element.METAL, Element.FIRE),
        ("庚", Element.WATER, Element.EARTH),
        ("壬", Element.WOOD, Element.METAL),
    ])
    def test_each_element(self, day_master, strong, weak):
        element = Stem.parse(day_master).element.value
        heavy = WuXingAnalysis.from_counts({element: 8})
        light = WuXingAnalysis.from_counts({element: 0, "wood" if element != "wood" else "fire": 8})
        assert determine_yongshen(heavy, day_master) is strong
        assert determine_yongshen(light, day_master) is weak

    @pytest.mark.parametrize("bad", ["子", "X", "", None])
    def test_rejects_bad_day_master(self, bad):
        with pytest.raises(InvalidDayMaster):
            determine_yongshen(WuXingAnalysis.from_counts(WOOD_HEAVY), bad)


class TestRizhuStrength:
    def test_strong(self):
        assert rizhu_strength(BaziChart.from_strings("甲寅", "乙卯", "甲寅", "乙卯")) == "strong"

    def test_weak(self):
        assert rizhu_strength(BaziChart.from_strings("庚申", "庚申", "甲申", "庚申")) == "weak"

    def test_neutral(self):
        assert rizhu_strength(BaziChart.from_strings("丙午", "丙午", "甲午", "丙午")) == "neutral"


class TestLuckyElements:
    def test_favorable_element_first(self):
        lucky = lucky_elements(Element.EARTH, Element.FIRE)
        assert lucky["colors"] == ["yellow", "brown", "ochre", "red"]
        assert lucky["numbers"] == [5, 6, 10, 2, 7, 9]
        assert lucky["directions"] == ["center", "southwest", "northeast"]
        assert lucky["seasons"] == ["last month of each season", "summer"]

    def test_duplicates_dropped(self):
        lucky = lucky_elements("wood", "wood")
        assert lucky["numbers"] == [1, 2, 3, 8]
        assert lucky["seasons"] == ["spring"]


class TestPattern:
    @pytest.mark.parametrize("pillars,expected", [
        (("戊辰", "丙辰", "甲子", "丙寅"), "Direct Wealth Pattern (正财格)"),
        (("丙寅", "壬辰", "甲子", "丙寅"), "Indirect Wealth Pattern (偏财格)"),
        (("甲子", "壬申", "甲子", "甲子"), "7 Killings Pattern (七杀格)"),
        (("甲子", "壬申", "乙丑", "甲子"), "Direct Officer Pattern (正官格)"),
        (("甲子", "丙子", "甲子", "甲子"), "Indirect Resource Pattern (偏印格)"),
        (("甲子", "丙子", "乙丑", "甲子"), "Direct Resource Pattern (正印格)"),
        (("甲子", "庚午", "甲子", "甲子"), "Eating God Pattern (食神格)"),
        (("甲子", "庚午", "乙丑", "甲子"), "Hurting Officer Pattern (伤官格)"),
        (("甲子", "丙寅", "甲子", "甲子"), "Companion Pattern (比肩格)"),
    ])
    def test_month_command_patterns(self, pillars, expected):
        assert pattern(BaziChart.from_strings(*pillars)) == expected

    def test_golden_chart(self):
        assert pattern(BaziChart.from_strings("庚午", "癸未", "丁亥", "丁未")) == "Hurting Officer Pattern (伤官格)"

    @pytest.mark.parametrize("pillars,expected", [
        (("甲寅", "甲寅", "甲子", "丙寅"), "Straight and Bent (曲直格 Qu Zhi)"),
        (("丙午", "丁巳", "丙子", "甲午"), "Blazing Up (炎上格 Yan Shang)"),
        (("戊辰", "己未", "戊子", "甲辰"), "Sowing and Reaping (稼穑格 Jia Se)"),
        (("庚申", "庚辰", "庚子", "甲申"), "Following Reform (从革格 Cong Ge)"),
        (("壬子", "癸亥", "壬子", "甲子"), "Flowing Down (润下格 Run Xia)"),
    ])
    def test_special_patterns(self, pillars, expected):
        assert special_patterns(BaziChart.from_strings(*pillars)) == [expected]

    def test_no_special_pattern(self):
        assert special_patterns(BaziChart.from_strings("庚午", "癸未", "丁亥", "丁未")) == []
