"""
Heuristic detection of the time, latitude and longitude coordinate variables.

Each category is an ordered list of rules. For every variable, in the order
of declaration, the rules are tried in the order standard_name, name, units;
the first variable matching any rule wins.
"""
from typing import *

import attrs

from .models import CoordinateInfo, FileMetadata, Variable


@attrs.define(frozen=True)
class Rule:
    source: str     # 'standard_name', 'name' or 'units'
    test: Callable[[str], bool]

    def value(self, var: Variable) -> Optional[str]:
        if self.source == "name":
            return var.name
        return var.attributes.get(self.source, None)

    def matches(self, var: Variable) -> bool:
        value = self.value(var)
        return value is not None and self.test(value)


def _lower_in(choices: Iterable[str]) -> Callable[[str], bool]:
    choices = frozenset(choices)
    return lambda s: s.lower() in choices


def _lower_contains(parts: Iterable[str]) -> Callable[[str], bool]:
    parts = tuple(parts)
    return lambda s: any(p in s.lower() for p in parts)


TIME_RULES = [
    Rule("standard_name", lambda s: "time" in s),
    Rule("name", _lower_in(["time", "time_counter", "t"])),
    Rule("units", _lower_contains(["since", "seconds", "days", "hours"])),
]

LAT_RULES = [
    Rule("standard_name", lambda s: s == "latitude"),
    Rule("name", _lower_in(["latitude", "lat", "y", "nav_lat"])),
    Rule("units", _lower_in(["degrees_north", "degree_north", "degree_n", "degrees_n"])),
]

LON_RULES = [
    Rule("standard_name", lambda s: s == "longitude"),
    Rule("name", _lower_in(["longitude", "lon", "x", "nav_lon"])),
    Rule("units", _lower_in(["degrees_east", "degree_east", "degree_e", "degrees_e"])),
]


def first_match(variables: Sequence[Variable], rules: Sequence[Rule]) -> Optional[Variable]:
    for var in variables:
        if any(rule.matches(var) for rule in rules):
            return var
    return None


def _name(var: Optional[Variable]) -> Optional[str]:
    return None if var is None else var.name


def detect_time(metadata: FileMetadata) -> Optional[str]:
    return _name(first_match(metadata.variables, TIME_RULES))


def detect_latitude(metadata: FileMetadata) -> Optional[str]:
    return _name(first_match(metadata.variables, LAT_RULES))


def detect_longitude(metadata: FileMetadata) -> Optional[str]:
    return _name(first_match(metadata.variables, LON_RULES))


def detect_time_units(metadata: FileMetadata) -> Optional[str]:
    time_var = first_match(metadata.variables, TIME_RULES)
    if time_var is None:
        return None
    return time_var.attributes.get("units", None)


def detect_coordinates(metadata: FileMetadata) -> CoordinateInfo:
    return CoordinateInfo(
        time_var=detect_time(metadata),
        lat_var=detect_latitude(metadata),
        lon_var=detect_longitude(metadata),
        time_units=detect_time_units(metadata),
    )
