"""
Single-person BaZi profile.

Runs the full pipeline for one birth: timezone resolution (optional),
solar time, four pillars, element profile, favorable element, pattern,
ten gods and decade periods.

Usage from Python:
    from bazi_compute.profile import BirthInput, compute_profile
    profile = compute_profile(BirthInput(
        timestamp="1990-06-15T14:30:00", longitude=116.4074, gender="male",
    ))
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union
import logging

from bazi_compute.astro_calendar import localize_birth_time, parse_timestamp, solar_time
from bazi_compute.bazi import (
    POSITIONS, BaziChart, annual_pillar, generate_bazi, main_ten_gods, map_ten_gods, ten_god,
)
from bazi_compute.dayun import DayunPeriod, Gender, calculate_dayun, current_period
from bazi_compute.settings import REFERENCE_MERIDIAN
from bazi_compute.symbols import Element, branch_combination, branches_clash
from bazi_compute.wuxing import WuXingAnalysis, analyze_wuxing
from bazi_compute.yongshen import (
    determine_yongshen, is_strong_day_master, lucky_elements, pattern, rizhu_strength,
    special_patterns,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BirthInput:
    timestamp: Union[datetime, str]
    longitude: float
    gender: Union[Gender, str]
    latitude: Optional[float] = None  # enables timezone lookup for naive timestamps
    name: Optional[str] = None


@dataclass(frozen=True)
class BaziProfile:
    name: Optional[str]
    gender: Gender
    birth_time: datetime        # civil time, aware when a timezone was resolved
    timezone: Optional[str]
    dst_detected: bool
    solar_time: datetime
    chart: BaziChart
    wuxing: WuXingAnalysis
    yongshen: Element
    day_master_strong: bool
    rizhu_strength: str
    pattern: str
    special_patterns: tuple
    ten_gods: tuple
    main_ten_gods: tuple
    dayun: tuple
    lucky_elements: dict

    def current_dayun(self, on: Union[date, datetime, str]) -> DayunPeriod:
        return current_period(self.dayun, self.solar_time, on)

    def annual_context(self, year: int) -> dict:
        """The annual pillar of a year and how it meets the natal chart."""
        ap = annual_pillar(year)
        interactions = []
        for position, branch in zip(POSITIONS, self.chart.branches):
            combined = branch_combination(ap.branch, branch)
            if combined is not None:
                interactions.append({
                    "type": "Six Combination (六合)",
                    "branches": [f"annual:{ap.branch}", f"{position}:{branch}"],
                    "result_element": combined.value,
                })
            if branches_clash(ap.branch, branch):
                interactions.append({
                    "type": "Six Clash (六冲)",
                    "branches": [f"annual:{ap.branch}", f"{position}:{branch}"],
                })
        return {
            "year": year,
            "annual_pillar": ap.to_dict(),
            "annual_ten_god": ten_god(self.chart.day_master, ap.stem),
            "annual_interactions_with_natal": interactions,
        }

    def to_dict(self) -> dict:
        return {
            "user": {
                "name": self.name,
                "gender": self.gender.value,
                "birth_time_clock": self.birth_time.isoformat(),
                "birth_time_solar": self.solar_time.isoformat(),
                "timezone": self.timezone,
                "dst_detected": self.dst_detected,
            },
            "bazi_chart": self.chart.to_dict(),
            "wuxing_analysis": self.wuxing.to_dict(),
            "yongshen": self.yongshen.value,
            "yongshen_chinese": self.yongshen.chinese,
            "day_master_strong": self.day_master_strong,
            "rizhu_strength": self.rizhu_strength,
            "pattern": self.pattern,
            "special_patterns": list(self.special_patterns),
            "ten_gods": list(self.ten_gods),
            "main_ten_gods": list(self.main_ten_gods),
            "dayun_periods": [p.to_dict() for p in self.dayun],
            "lucky_elements": self.lucky_elements,
        }


def profile_from_chart(chart: BaziChart, gender, birth_time: Union[datetime, str],
                       name: Optional[str] = None, solar: Optional[datetime] = None,
                       timezone: Optional[str] = None,
                       dst_detected: bool = False) -> BaziProfile:
    """
    Build a profile around an existing chart.

    Args:
        chart: four pillars, validated against the symbol sets
        gender: "male" / "female" or a Gender
        birth_time: civil birth time
        solar: apparent solar time of birth; defaults to birth_time read
            on the reference meridian (an aware birth_time is converted)

    Raises:
        InvalidSymbol, InvalidGender, InvalidTimestamp
    """
    chart.validate()
    gender = Gender.parse(gender)
    birth_time = parse_timestamp(birth_time)
    if solar is None:
        solar = solar_time(birth_time, REFERENCE_MERIDIAN)

    wuxing = analyze_wuxing(chart)
    yongshen = determine_yongshen(wuxing, chart.day_master)
    dayun = calculate_dayun(chart, solar, gender)

    logger.debug("Profile %s: %s, yongshen %s", name or "(unnamed)", chart, yongshen.value)

    return BaziProfile(
        name=name,
        gender=gender,
        birth_time=birth_time,
        timezone=timezone,
        dst_detected=dst_detected,
        solar_time=solar,
        chart=chart,
        wuxing=wuxing,
        yongshen=yongshen,
        day_master_strong=is_strong_day_master(wuxing, chart.day_master),
        rizhu_strength=rizhu_strength(chart),
        pattern=pattern(chart),
        special_patterns=tuple(special_patterns(chart)),
        ten_gods=tuple(map_ten_gods(chart)),
        main_ten_gods=tuple(main_ten_gods(chart)),
        dayun=dayun,
        lucky_elements=lucky_elements(yongshen, chart.day_master.element),
    )


def compute_profile(birth: BirthInput) -> BaziProfile:
    """
    Compute a full single-person profile.

    A naive timestamp with a latitude is localized to the timezone in force
    at the coordinates; a naive timestamp without one is read as UTC+8 wall
    clock time (see astro_calendar.solar_time).

    Raises:
        InvalidTimestamp, InvalidLongitude, InvalidLatitude, InvalidGender
    """
    gender = Gender.parse(birth.gender)
    clock_time = parse_timestamp(birth.timestamp)

    tz_name = None
    dst_detected = False
    if birth.latitude is not None and clock_time.tzinfo is None:
        clock_time, tz_name, dst_detected = localize_birth_time(
            clock_time, birth.latitude, birth.longitude
        )
    elif clock_time.tzinfo is not None:
        tz_name = clock_time.tzname()

    solar = solar_time(clock_time, birth.longitude)
    chart = generate_bazi(solar)
    return profile_from_chart(chart, gender, clock_time, name=birth.name, solar=solar,
                              timezone=tz_name, dst_detected=dst_detected)
