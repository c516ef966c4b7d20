"""
Calendar utilities for BaZi calculations.
Handles timestamp parsing, apparent solar time (longitude correction),
timezone resolution from coordinates and day counting via Julian Day.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Union
import logging
import math

import swisseph as swe
from timezonefinder import TimezoneFinder
from zoneinfo import ZoneInfo

from bazi_compute.errors import InvalidLatitude, InvalidLongitude, InvalidTimestamp
from bazi_compute.settings import REFERENCE_MERIDIAN

logger = logging.getLogger(__name__)

_tf = TimezoneFinder()


def parse_timestamp(value: Union[datetime, str]) -> datetime:
    """
    Accept a datetime or an ISO 8601 string.

    Raises:
        InvalidTimestamp: for anything else, or an unparseable string
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidTimestamp(f"Unparseable timestamp {value!r}: {e}") from None
    raise InvalidTimestamp(f"Unsupported timestamp type: {type(value).__name__}")


def validate_longitude(longitude) -> float:
    try:
        longitude = float(longitude)
    except (TypeError, ValueError):
        raise InvalidLongitude(f"Longitude is not a number: {longitude!r}") from None
    if not math.isfinite(longitude) or not -180.0 <= longitude <= 180.0:
        raise InvalidLongitude(f"Longitude {longitude} outside [-180, 180]")
    return longitude


def validate_latitude(latitude) -> float:
    try:
        latitude = float(latitude)
    except (TypeError, ValueError):
        raise InvalidLatitude(f"Latitude is not a number: {latitude!r}") from None
    if not math.isfinite(latitude) or not -90.0 <= latitude <= 90.0:
        raise InvalidLatitude(f"Latitude {latitude} outside [-90, 90]")
    return latitude


def lmt_correction(longitude: float, standard_meridian: float = REFERENCE_MERIDIAN) -> float:
    """
    Calculate Local Mean Time correction in minutes.

    China uses a single timezone based on 120°E. For locations
    west of this (like Beijing at 116.41°E), the clock time runs
    ahead of solar time.

    Args:
        longitude: birth location longitude in degrees (east positive)
        standard_meridian: timezone standard meridian (120.0 for China/CST)

    Returns:
        Correction in minutes (negative = subtract from clock time)

    Example:
        Beijing (116.4074°E): correction = (116.4074 - 120.0) * 4 = -14.37 min
    """
    longitude = validate_longitude(longitude)
    return (longitude - standard_meridian) * 4.0


def solar_time(timestamp: Union[datetime, str], longitude: float,
               reference_meridian: float = REFERENCE_MERIDIAN) -> datetime:
    """
    Convert a civil timestamp to apparent solar time by applying the
    Local Mean Time correction (4 minutes per degree from the meridian).

    A naive timestamp is taken as wall-clock time on the reference
    meridian (UTC+8 for 120°E). An aware timestamp is first converted to
    that zone, so any timezone resolves to the same solar moment.

    Returns:
        naive datetime in apparent solar time

    Raises:
        InvalidTimestamp, InvalidLongitude
    """
    clock_time = parse_timestamp(timestamp)
    correction = lmt_correction(longitude, reference_meridian)

    try:
        if clock_time.tzinfo is not None and clock_time.utcoffset() is not None:
            reference_zone = timezone(timedelta(hours=reference_meridian / 15))
            clock_time = clock_time.astimezone(reference_zone).replace(tzinfo=None)
        else:
            clock_time = clock_time.replace(tzinfo=None)
        return clock_time + timedelta(minutes=correction)
    except OverflowError:
        raise InvalidTimestamp(f"Timestamp {timestamp!r} out of representable range") from None


def localize_birth_time(clock_time: datetime, latitude: float, longitude: float):
    """
    Attach the IANA timezone in force at the birth coordinates.
    Detects historical DST (e.g., China 1986-1991).

    Returns:
        (aware_datetime, timezone_name, dst_detected)

    Raises:
        InvalidTimestamp: when no timezone is known for the coordinates
    """
    latitude = validate_latitude(latitude)
    longitude = validate_longitude(longitude)

    tz_name = _tf.timezone_at(lat=latitude, lng=longitude)
    if tz_name is None:
        raise InvalidTimestamp(f"Could not determine timezone for ({latitude}, {longitude})")

    local_dt = clock_time.replace(tzinfo=ZoneInfo(tz_name))
    dst = local_dt.dst()
    dst_detected = dst is not None and dst.total_seconds() > 0
    logger.debug("Resolved %s at (%s, %s) to %s (dst=%s)",
                 clock_time, latitude, longitude, tz_name, dst_detected)
    return local_dt, tz_name, dst_detected


# ============================================================
# DAY COUNTING
# ============================================================

def julian_day(d: date) -> float:
    """Julian Day at 0h UT of a Gregorian date (always ends in .5)."""
    return swe.julday(d.year, d.month, d.day, 0.0)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end; negative when end precedes start."""
    return int(round(julian_day(end) - julian_day(start)))


def age_on(birth_date: date, on: date) -> int:
    """Age in completed years."""
    return on.year - birth_date.year - (
        1 if (on.month, on.day) < (birth_date.month, birth_date.day) else 0
    )
