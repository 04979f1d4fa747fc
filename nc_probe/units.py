import datetime
import re
from typing import *

import attrs
import dateutil.parser
import numpy as np
import pint as _pint

from .errors import InvalidFormat

ureg = _pint.UnitRegistry()
_SECOND = ureg.Unit("second")

_SINCE_RE = re.compile(r"^\s*(?P<unit>\w+)\s+since\s+(?P<origin>.+?)\s*$", re.IGNORECASE)

# Storage tick of decoded times.
TICK = "us"


def _parse_date(text: str, what: str = "reference date") -> datetime.datetime:
    """Date given as text, as a naive UTC datetime."""
    try:
        dt = dateutil.parser.parse(text, yearfirst=True)
    except (dateutil.parser.ParserError, OverflowError) as e:
        raise InvalidFormat(f"Invalid {what} '{text}': {e}")
    if dt.tzinfo is not None:
        dt = dt.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return dt


@attrs.define(frozen=True)
class TimeUnits:
    """
    Units of a time coordinate in the form '<unit> since <reference date>',
    e.g. 'days since 2000-01-01' or 'seconds since 1970-01-01 00:00:00 UTC'.
    """
    unit: _pint.Unit
    origin: datetime.datetime

    @classmethod
    def parse(cls, units: str) -> "TimeUnits":
        m = _SINCE_RE.match(units or "")
        if m is None:
            raise InvalidFormat(f"Time units '{units}' are not of the form '<unit> since <date>'")
        try:
            unit = ureg.Unit(m.group("unit").lower())
        except (_pint.UndefinedUnitError, ValueError) as e:
            raise InvalidFormat(f"Unknown time unit in '{units}': {e}")
        if unit.dimensionality != _SECOND.dimensionality:
            raise InvalidFormat(f"Unit '{unit}' in '{units}' is not a time unit")
        return cls(unit, _parse_date(m.group("origin")))

    @property
    def seconds_per_unit(self) -> float:
        return ureg.Quantity(1.0, self.unit).to(_SECOND).magnitude

    def decode(self, values: Iterable[float]) -> np.ndarray:
        """Convert offsets from the origin to datetime64 values, NaN offsets become NaT."""
        offsets = np.asarray(values, dtype=np.float64).ravel()
        valid = np.isfinite(offsets)
        ticks = np.zeros(offsets.shape, dtype=np.int64)
        ticks[valid] = np.round(offsets[valid] * self.seconds_per_unit * 1e6).astype(np.int64)

        origin = np.datetime64(self.origin, TICK)
        times = origin + ticks.astype(f"timedelta64[{TICK}]")
        times[~valid] = np.datetime64("NaT", TICK)
        return times


def decode_times(values: Iterable[float], units: str) -> np.ndarray:
    return TimeUnits.parse(units).decode(values)


def to_iso(times: np.ndarray) -> List[str]:
    return np.datetime_as_string(np.asarray(times), unit="s").tolist()


def to_datetime64(value: Union[str, datetime.datetime, np.datetime64]) -> np.datetime64:
    """Single time as datetime64, text is parsed as a date."""
    if isinstance(value, str):
        value = _parse_date(value, what="date")
    elif isinstance(value, datetime.datetime) and value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return np.datetime64(value, TICK)
