"""
Options of the nc_probe boundary layer.

Keyword arguments are overwritten by the values of a YAML option file, which
are overwritten by the environment variables named 'NCP_<KEY>'.
"""
import logging
import os
from pathlib import Path
from typing import *

import attrs
import yaml

from .errors import IoError

log = logging.getLogger(__name__)

FILL_TOLERANCE = 1e-10
ENV_PREFIX = "NCP_"


class OptionError(Exception):
    pass


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
    raise OptionError(f"Invalid boolean value: {value!r}")


def to_tolerance(value: Any) -> float:
    try:
        tol = float(value)
    except (TypeError, ValueError):
        raise OptionError(f"Invalid tolerance value: {value!r}")
    if tol < 0:
        raise OptionError(f"Tolerance must be non-negative, got {tol}")
    return tol


def to_level(value: Any) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise OptionError(f"Invalid log level: {value!r}")
    return level


@attrs.define
class Options:
    strict_bounds: bool = attrs.field(default=True, converter=to_bool)
    fill_tolerance: float = attrs.field(default=FILL_TOLERANCE, converter=to_tolerance)
    cache_metadata: bool = attrs.field(default=False, converter=to_bool)
    log_level: str = attrs.field(default="WARNING", converter=to_level)

    @classmethod
    def keys(cls) -> List[str]:
        return [a.name.upper() for a in attrs.fields(cls)]

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> "Options":
        return cls(**{k.lower(): v for k, v in options.items()})


def read_option_file(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f) or {}
    except OSError as e:
        raise IoError.from_os_error(e)
    except yaml.YAMLError as e:
        raise OptionError(f"Invalid option file {path}: {e}")
    if not isinstance(content, dict):
        raise OptionError(f"Option file {path} must contain a mapping, got {type(content).__name__}.")
    return content


def load_options(config: Union[str, Path, None] = None, **kwargs) -> Options:
    """
    Prepare options:
    - get kwargs
    - overwrite by the option file if provided
    - overwrite by environment variables
    """
    known = set(Options.keys())
    options = {}
    for key, value in kwargs.items():
        if key.upper() not in known:
            raise OptionError(f"Unknown option '{key}'.")
        options[key.upper()] = value

    if config is not None:
        for key, value in read_option_file(config).items():
            if str(key).upper() not in known:
                log.warning("Ignoring unknown option '%s' in %s.", key, config)
                continue
            options[str(key).upper()] = value

    e_key = lambda key: f"{ENV_PREFIX}{key}"
    env_options = {key: os.environ[e_key(key)] for key in known if e_key(key) in os.environ}
    options.update(env_options)
    return Options.from_dict(options)
