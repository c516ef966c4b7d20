"""Exceptions raised by the BaZi engine. All of them are ValueErrors."""


class BaziError(ValueError):
    """Base class for invalid input reaching the engine."""


class InvalidTimestamp(BaziError):
    """Date/time input that cannot be parsed or represented."""


class InvalidLongitude(BaziError):
    """Longitude outside [-180, 180] or not a number."""


class InvalidSymbol(BaziError):
    """A stem, branch or element outside the fixed symbol sets."""


class InvalidDayMaster(BaziError):
    """A day master that cannot be mapped to an element."""


class InvalidGender(BaziError):
    """Gender other than male/female."""


class NoCurrentPeriod(BaziError):
    """No decade period covers the requested age."""


class InvalidLatitude(BaziError):
    """Latitude outside [-90, 90] or not a number."""
