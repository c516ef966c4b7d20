"""
Five-element (WuXing) distribution analysis.

Counts the element of each of the eight chart symbols (four stems, four
branches). Hidden stems are not counted. Ties for strongest/weakest resolve
in the fixed order Wood, Fire, Earth, Metal, Water: the first tied element
wins.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping
import logging

from bazi_compute.bazi import BaziChart
from bazi_compute.errors import InvalidSymbol
from bazi_compute.symbols import ELEMENT_ORDER, Element, parse_element

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WuXingAnalysis:
    counts: Mapping[Element, int]
    percentages: Mapping[Element, float]
    strongest: Element
    weakest: Element

    def __getitem__(self, element) -> int:
        return self.counts[parse_element(element)]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def wood(self) -> int:
        return self.counts[Element.WOOD]

    @property
    def fire(self) -> int:
        return self.counts[Element.FIRE]

    @property
    def earth(self) -> int:
        return self.counts[Element.EARTH]

    @property
    def metal(self) -> int:
        return self.counts[Element.METAL]

    @property
    def water(self) -> int:
        return self.counts[Element.WATER]

    @classmethod
    def from_counts(cls, counts: Mapping) -> "WuXingAnalysis":
        """
        Build a profile from raw counts, e.g. {"wood": 4, "fire": 1, ...}.
        Missing elements count as zero.
        """
        normalized = {e: 0 for e in ELEMENT_ORDER}
        for key, value in counts.items():
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise InvalidSymbol(f"Element count for {key!r} must be a non-negative int")
            normalized[parse_element(key)] = value
        return _build(normalized)

    def to_dict(self) -> dict:
        data = {e.value: self.counts[e] for e in ELEMENT_ORDER}
        data.update({
            "strongest": self.strongest.value,
            "weakest": self.weakest.value,
            "percentages": {e.value: self.percentages[e] for e in ELEMENT_ORDER},
        })
        return data


def _build(counts: dict) -> WuXingAnalysis:
    total = sum(counts.values())
    percentages = {
        e: round(counts[e] / total * 100, 1) if total else 0.0
        for e in ELEMENT_ORDER
    }
    # max()/min() return the first maximal/minimal item, so ELEMENT_ORDER is the tie-break
    strongest = max(ELEMENT_ORDER, key=lambda e: counts[e])
    weakest = min(ELEMENT_ORDER, key=lambda e: counts[e])
    return WuXingAnalysis(
        counts=MappingProxyType(dict(counts)),
        percentages=MappingProxyType(percentages),
        strongest=strongest,
        weakest=weakest,
    )


def analyze_wuxing(chart: BaziChart) -> WuXingAnalysis:
    """
    Tally the elements of the chart's eight symbols.

    Raises:
        InvalidSymbol: if any pillar holds something outside the stem/branch sets
    """
    if not isinstance(chart, BaziChart):
        raise InvalidSymbol(f"Expected a BaziChart, got {type(chart).__name__}")
    chart.validate()

    counts = {e: 0 for e in ELEMENT_ORDER}
    for pillar in chart.pillars:
        counts[pillar.stem.element] += 1
        counts[pillar.branch.element] += 1

    analysis = _build(counts)
    logger.debug("WuXing for %s: %s", chart, analysis.to_dict())
    return analysis
