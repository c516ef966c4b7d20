"""
Decade fortune periods (大运 Da Yun).

Direction of count depends on gender + year stem polarity:
- Yang stem year + Male OR Yin stem year + Female → count FORWARD
- Yang stem year + Female OR Yin stem year + Male → count BACKWARD

Periods step from the month pillar, one place per period.

Simplification: the starting age is fixed per gender (8 male, 7 female)
instead of being derived from the distance to the nearest Jie solar term.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Sequence, Union
import logging

from bazi_compute.astro_calendar import age_on, parse_timestamp
from bazi_compute.bazi import BaziChart
from bazi_compute.errors import InvalidGender, NoCurrentPeriod
from bazi_compute.settings import DAYUN_COUNT, DAYUN_SPAN_YEARS, DAYUN_START_AGE
from bazi_compute.symbols import GanZhi, Stem

logger = logging.getLogger(__name__)


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, value) -> "Gender":
        if isinstance(value, Gender):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidGender(f"Gender must be 'male' or 'female', got {value!r}") from None


@dataclass(frozen=True)
class DayunPeriod:
    sequence: int       # 1-8
    start_age: int
    end_age: int        # start_age + 9
    ganzhi: GanZhi
    start_year: int
    end_year: int

    @property
    def description(self) -> str:
        return (f"Dayun {self.sequence}: {self.ganzhi} ({self.ganzhi.pinyin}, "
                f"{self.ganzhi.branch.animal}) ages {self.start_age}-{self.end_age}")

    def covers_age(self, age: int) -> bool:
        return self.start_age <= age <= self.end_age

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "start_age": self.start_age,
            "end_age": self.end_age,
            "ganzhi": str(self.ganzhi),
            "stem_element": self.ganzhi.stem.element.value,
            "branch_element": self.ganzhi.branch.element.value,
            "start_year": self.start_year,
            "end_year": self.end_year,
            "description": self.description,
        }


def is_forward(year_stem: Stem, gender) -> bool:
    gender = Gender.parse(gender)
    return year_stem.is_yang == (gender is Gender.MALE)


def calculate_dayun(chart: BaziChart, birth_date: Union[date, datetime, str], gender,
                    start_age: Optional[int] = None,
                    num_periods: int = DAYUN_COUNT) -> tuple:
    """
    Compute the decade periods of a chart.

    Args:
        chart: natal chart
        birth_date: date of birth; fixes the calendar years of each period
        gender: "male" / "female" or a Gender
        start_age: overrides the per-gender starting age
        num_periods: how many periods to compute

    Returns:
        Tuple of DayunPeriod, contiguous and ten years wide each
    """
    chart.validate()
    gender = Gender.parse(gender)
    birth_year = parse_timestamp(birth_date).year

    forward = is_forward(chart.year.stem, gender)
    step = 1 if forward else -1
    age = DAYUN_START_AGE[gender.value] if start_age is None else start_age

    periods = []
    for i in range(num_periods):
        age_start = age + i * DAYUN_SPAN_YEARS
        age_end = age_start + DAYUN_SPAN_YEARS - 1
        periods.append(DayunPeriod(
            sequence=i + 1,
            start_age=age_start,
            end_age=age_end,
            ganzhi=chart.month.step(step * (i + 1)),
            start_year=birth_year + age_start,
            end_year=birth_year + age_end,
        ))

    logger.debug("Dayun (%s, %s): %s", gender.value, "forward" if forward else "backward",
                 " ".join(str(p.ganzhi) for p in periods))
    return tuple(periods)


def current_period(periods: Sequence[DayunPeriod], birth_date, on) -> DayunPeriod:
    """
    The period covering the age reached on a given date.

    Raises:
        NoCurrentPeriod: before the first period starts or after the last ends
    """
    born = parse_timestamp(birth_date).date()
    age = age_on(born, parse_timestamp(on).date())
    for period in periods:
        if period.covers_age(age):
            return period
    raise NoCurrentPeriod(f"No decade period covers age {age}")
