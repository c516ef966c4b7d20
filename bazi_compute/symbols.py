"""
Symbol tables for the sexagenary calendar.

Handles:
- The closed sets of 10 Heavenly Stems, 12 Earthly Branches and 5 Elements
- Pillar (GanZhi) value type and parsing from two-character text
- Element generation / restraint cycles
- Stem combinations, branch combinations and branch clashes

Everything here is immutable, module-level data. The analyzer, the resolver,
the decade sequencer and the compatibility engine all read the same tables.
"""

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from types import MappingProxyType
from typing import Optional

from bazi_compute.errors import InvalidSymbol


# ============================================================
# ELEMENTS AND POLARITY
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"

    @property
    def chinese(self) -> str:
        return ELEMENT_CHINESE[self]


# Fixed priority order for every tie-break (strongest/weakest, reports).
ELEMENT_ORDER = (Element.WOOD, Element.FIRE, Element.EARTH, Element.METAL, Element.WATER)

ELEMENT_CHINESE = MappingProxyType({
    Element.WOOD: "木",
    Element.FIRE: "火",
    Element.EARTH: "土",
    Element.METAL: "金",
    Element.WATER: "水",
})

ELEMENT_BY_CHINESE = MappingProxyType({v: k for k, v in ELEMENT_CHINESE.items()})


def parse_element(value) -> Element:
    """Accept an Element, its English name or its Chinese character."""
    if isinstance(value, Element):
        return value
    if isinstance(value, str):
        if value in ELEMENT_BY_CHINESE:
            return ELEMENT_BY_CHINESE[value]
        try:
            return Element(value.lower())
        except ValueError:
            pass
    raise InvalidSymbol(f"Unknown element: {value!r}")


# ============================================================
# STEMS AND BRANCHES
# ============================================================

@total_ordering
class Stem(Enum):
    """Heavenly Stem. The enum value is the Chinese character."""

    JIA = ("甲", "Jia", Element.WOOD, Polarity.YANG)
    YI = ("乙", "Yi", Element.WOOD, Polarity.YIN)
    BING = ("丙", "Bing", Element.FIRE, Polarity.YANG)
    DING = ("丁", "Ding", Element.FIRE, Polarity.YIN)
    WU = ("戊", "Wu", Element.EARTH, Polarity.YANG)
    JI = ("己", "Ji", Element.EARTH, Polarity.YIN)
    GENG = ("庚", "Geng", Element.METAL, Polarity.YANG)
    XIN = ("辛", "Xin", Element.METAL, Polarity.YIN)
    REN = ("壬", "Ren", Element.WATER, Polarity.YANG)
    GUI = ("癸", "Gui", Element.WATER, Polarity.YIN)

    def __new__(cls, chinese, pinyin, element, polarity):
        obj = object.__new__(cls)
        obj._value_ = chinese
        obj.pinyin = pinyin
        obj.element = element
        obj.polarity = polarity
        obj.index = len(cls.__members__)  # 0-9 in the cycle
        return obj

    def __lt__(self, other):
        if not isinstance(other, Stem):
            return NotImplemented
        return self.index < other.index

    def __str__(self):
        return self.value

    @property
    def is_yang(self) -> bool:
        return self.polarity is Polarity.YANG

    @classmethod
    def at(cls, index: int) -> "Stem":
        return HEAVENLY_STEMS[index % 10]

    @classmethod
    def parse(cls, value) -> "Stem":
        if isinstance(value, Stem):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidSymbol(f"Not a heavenly stem: {value!r}") from None

    def to_dict(self) -> dict:
        return {
            "chinese": self.value,
            "pinyin": self.pinyin,
            "element": self.element.value,
            "polarity": self.polarity.value,
        }


@total_ordering
class Branch(Enum):
    """Earthly Branch. The enum value is the Chinese character."""

    ZI = ("子", "Zi", "Rat", Element.WATER, Polarity.YANG, (Stem.GUI,))
    CHOU = ("丑", "Chou", "Ox", Element.EARTH, Polarity.YIN, (Stem.JI, Stem.GUI, Stem.XIN))
    YIN = ("寅", "Yin", "Tiger", Element.WOOD, Polarity.YANG, (Stem.JIA, Stem.BING, Stem.WU))
    MAO = ("卯", "Mao", "Rabbit", Element.WOOD, Polarity.YIN, (Stem.YI,))
    CHEN = ("辰", "Chen", "Dragon", Element.EARTH, Polarity.YANG, (Stem.WU, Stem.YI, Stem.GUI))
    SI = ("巳", "Si", "Snake", Element.FIRE, Polarity.YIN, (Stem.BING, Stem.WU, Stem.GENG))
    WU = ("午", "Wu", "Horse", Element.FIRE, Polarity.YANG, (Stem.DING, Stem.JI))
    WEI = ("未", "Wei", "Goat", Element.EARTH, Polarity.YIN, (Stem.JI, Stem.DING, Stem.YI))
    SHEN = ("申", "Shen", "Monkey", Element.METAL, Polarity.YANG, (Stem.GENG, Stem.REN, Stem.WU))
    YOU = ("酉", "You", "Rooster", Element.METAL, Polarity.YIN, (Stem.XIN,))
    XU = ("戌", "Xu", "Dog", Element.EARTH, Polarity.YANG, (Stem.WU, Stem.XIN, Stem.DING))
    HAI = ("亥", "Hai", "Pig", Element.WATER, Polarity.YIN, (Stem.REN, Stem.JIA))

    def __new__(cls, chinese, pinyin, animal, element, polarity, hidden_stems):
        obj = object.__new__(cls)
        obj._value_ = chinese
        obj.pinyin = pinyin
        obj.animal = animal
        obj.element = element  # primary/season element
        obj.polarity = polarity
        obj.hidden_stems = hidden_stems  # [main_qi, middle_qi, residual_qi]
        obj.index = len(cls.__members__)  # 0-11 in the cycle
        return obj

    def __lt__(self, other):
        if not isinstance(other, Branch):
            return NotImplemented
        return self.index < other.index

    def __str__(self):
        return self.value

    @classmethod
    def at(cls, index: int) -> "Branch":
        return EARTHLY_BRANCHES[index % 12]

    @classmethod
    def parse(cls, value) -> "Branch":
        if isinstance(value, Branch):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidSymbol(f"Not an earthly branch: {value!r}") from None

    def to_dict(self) -> dict:
        return {
            "chinese": self.value,
            "pinyin": self.pinyin,
            "animal": self.animal,
            "element": self.element.value,
            "polarity": self.polarity.value,
            "hidden_stems": [s.value for s in self.hidden_stems],
        }


HEAVENLY_STEMS = tuple(Stem)
EARTHLY_BRANCHES = tuple(Branch)


@dataclass(frozen=True)
class GanZhi:
    """A pillar: one stem paired with one branch, e.g. 甲子."""

    stem: Stem
    branch: Branch

    def __str__(self):
        return f"{self.stem.value}{self.branch.value}"

    @classmethod
    def parse(cls, text) -> "GanZhi":
        if isinstance(text, GanZhi):
            return text
        if not isinstance(text, str) or len(text) != 2:
            raise InvalidSymbol(f"Invalid ganzhi: {text!r}")
        return cls(Stem.parse(text[0]), Branch.parse(text[1]))

    def step(self, n: int) -> "GanZhi":
        """Move n places along the cycle (negative n steps backward)."""
        return GanZhi(Stem.at(self.stem.index + n), Branch.at(self.branch.index + n))

    @property
    def pinyin(self) -> str:
        return f"{self.stem.pinyin} {self.branch.pinyin}"

    def to_dict(self) -> dict:
        return {
            "ganzhi": str(self),
            "stem": self.stem.to_dict(),
            "branch": self.branch.to_dict(),
            "combined": self.pinyin,
        }


# ============================================================
# ELEMENT CYCLES
# ============================================================

# Production cycle: Wood → Fire → Earth → Metal → Water → Wood
PRODUCTION_CYCLE = MappingProxyType({
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
})

# Control cycle: Wood → Earth → Water → Fire → Metal → Wood
CONTROL_CYCLE = MappingProxyType({
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
})

PRODUCED_BY = MappingProxyType({v: k for k, v in PRODUCTION_CYCLE.items()})


def generates(a: Element, b: Element) -> bool:
    return PRODUCTION_CYCLE[a] is b


def restrains(a: Element, b: Element) -> bool:
    return CONTROL_CYCLE[a] is b


def element_relationship(day_master_element: Element, other_element: Element) -> str:
    """Determine the elemental relationship from DM's perspective."""
    if day_master_element == other_element:
        return "same"
    elif PRODUCTION_CYCLE[other_element] == day_master_element:
        return "produces_me"
    elif PRODUCTION_CYCLE[day_master_element] == other_element:
        return "i_produce"
    elif CONTROL_CYCLE[day_master_element] == other_element:
        return "i_control"
    return "controls_me"


# ============================================================
# COMBINATIONS AND CLASHES
# ============================================================

# Five Stem Combinations (天干五合)
STEM_COMBINATIONS = MappingProxyType({
    frozenset((Stem.JIA, Stem.JI)): Element.EARTH,
    frozenset((Stem.YI, Stem.GENG)): Element.METAL,
    frozenset((Stem.BING, Stem.XIN)): Element.WATER,
    frozenset((Stem.DING, Stem.REN)): Element.WOOD,
    frozenset((Stem.WU, Stem.GUI)): Element.FIRE,
})

# Six Combinations (六合)
SIX_COMBINATIONS = MappingProxyType({
    frozenset((Branch.ZI, Branch.CHOU)): Element.EARTH,
    frozenset((Branch.YIN, Branch.HAI)): Element.WOOD,
    frozenset((Branch.MAO, Branch.XU)): Element.FIRE,
    frozenset((Branch.CHEN, Branch.YOU)): Element.METAL,
    frozenset((Branch.SI, Branch.SHEN)): Element.WATER,
    frozenset((Branch.WU, Branch.WEI)): Element.FIRE,  # or Earth, debated
})

# Six Clashes (六冲)
SIX_CLASHES = frozenset({
    frozenset((Branch.ZI, Branch.WU)),     # Rat-Horse
    frozenset((Branch.CHOU, Branch.WEI)),  # Ox-Goat
    frozenset((Branch.YIN, Branch.SHEN)),  # Tiger-Monkey
    frozenset((Branch.MAO, Branch.YOU)),   # Rabbit-Rooster
    frozenset((Branch.CHEN, Branch.XU)),   # Dragon-Dog
    frozenset((Branch.SI, Branch.HAI)),    # Snake-Pig
})


def stem_combination(a: Stem, b: Stem) -> Optional[Element]:
    return STEM_COMBINATIONS.get(frozenset((a, b)))


def branch_combination(a: Branch, b: Branch) -> Optional[Element]:
    return SIX_COMBINATIONS.get(frozenset((a, b)))


def stems_combine(a: Stem, b: Stem) -> bool:
    return stem_combination(a, b) is not None


def branches_combine(a: Branch, b: Branch) -> bool:
    return branch_combination(a, b) is not None


def branches_clash(a: Branch, b: Branch) -> bool:
    return frozenset((a, b)) in SIX_CLASHES
