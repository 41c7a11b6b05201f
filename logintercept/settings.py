"""Settings controlling how long interception waits and what it captures.

Settings can be built directly, from a mapping using the hyphenated keys
familiar from configuration files, or from environment variables:

>>> InterceptSettings.from_mapping({"filter-leeway": "250ms", "timefactor": 2})
InterceptSettings(filter_leeway=0.25, timefactor=2.0, capture_level=<Level.TRACE: 5>)

Durations accept plain numbers (seconds) or strings with an ``ms``, ``s``
or ``m`` suffix.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import os
import re
import typing as typ

from .errors import SettingsError
from .levels import Level

Mapping = cabc.Mapping
cast = typ.cast

DEFAULT_FILTER_LEEWAY: typ.Final = 3.0
DEFAULT_TIMEFACTOR: typ.Final = 1.0

ENV_PREFIX: typ.Final = "LOGINTERCEPT_"

_KEYS: typ.Final[dict[str, str]] = {
    "filter-leeway": "filter_leeway",
    "timefactor": "timefactor",
    "capture-level": "capture_level",
}

_DURATION_RE = re.compile(r"^\s*(?P<amount>\d+(?:\.\d*)?|\.\d+)\s*(?P<unit>ms|s|m)?\s*$")
_UNIT_SECONDS: typ.Final[dict[str, float]] = {"ms": 0.001, "s": 1.0, "m": 60.0}


def parse_duration(value: object, name: str = "duration") -> float:
    """Return ``value`` as a number of seconds.

    Raises
    ------
    SettingsError
        If ``value`` is not a non-negative number or a duration string.

    """
    if isinstance(value, bool):
        msg = f"{name} must be a number or duration string, got {value!r}"
        raise SettingsError(msg)
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        match = _DURATION_RE.match(value)
        if match is None:
            msg = f"invalid {name}: {value!r}"
            raise SettingsError(msg)
        unit = match.group("unit") or "s"
        seconds = float(match.group("amount")) * _UNIT_SECONDS[unit]
    else:
        msg = f"{name} must be a number or duration string, got {type(value).__name__}"
        raise SettingsError(msg)
    if seconds < 0:
        msg = f"{name} must not be negative"
        raise SettingsError(msg)
    return seconds


def _parse_timefactor(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        msg = f"timefactor must be a number, got {value!r}"
        raise SettingsError(msg)
    try:
        factor = float(value)
    except ValueError as exc:
        msg = f"invalid timefactor: {value!r}"
        raise SettingsError(msg) from exc
    if factor <= 0:
        msg = "timefactor must be greater than zero"
        raise SettingsError(msg)
    return factor


def _parse_level(value: object) -> Level:
    try:
        return Level.parse(cast("str | int | Level", value))
    except (TypeError, ValueError) as exc:
        msg = f"invalid capture-level: {value!r}"
        raise SettingsError(msg) from exc


@dataclasses.dataclass(frozen=True, slots=True)
class InterceptSettings:
    """Timing and capture settings shared by interception sessions.

    Attributes
    ----------
    filter_leeway
        Seconds to wait after a code block for asynchronously delivered
        events before verification fails.
    timefactor
        Multiplier applied by :meth:`dilated`, for slow environments.
    capture_level
        Lowest level the capture handler makes sure is enabled on its
        attach-point logger.

    """

    filter_leeway: float = DEFAULT_FILTER_LEEWAY
    timefactor: float = DEFAULT_TIMEFACTOR
    capture_level: Level = Level.TRACE

    def __post_init__(self) -> None:
        """Validate and normalise field values."""
        object.__setattr__(
            self, "filter_leeway", parse_duration(self.filter_leeway, "filter-leeway")
        )
        object.__setattr__(self, "timefactor", _parse_timefactor(self.timefactor))
        object.__setattr__(self, "capture_level", _parse_level(self.capture_level))

    def dilated(self, seconds: float) -> float:
        """Scale ``seconds`` by :attr:`timefactor`."""
        return seconds * self.timefactor

    @property
    def effective_leeway(self) -> float:
        """Return the dilated filter leeway in seconds."""
        return self.dilated(self.filter_leeway)

    def replace(self, **changes: object) -> InterceptSettings:
        """Return a copy with ``changes`` applied and re-validated."""
        return dataclasses.replace(self, **changes)  # type: ignore[arg-type]

    @classmethod
    def from_mapping(cls, config: Mapping[object, object]) -> InterceptSettings:
        """Build settings from a mapping keyed by hyphenated setting names.

        Parameters
        ----------
        config
            A mapping with any of ``filter-leeway``, ``timefactor`` and
            ``capture-level``. Underscored spellings are accepted too.

        Raises
        ------
        TypeError
            If ``config`` is not a mapping or has non-string keys.
        SettingsError
            If a key is unknown or a value is invalid.

        """
        if isinstance(config, (bytes, bytearray)) or not isinstance(config, Mapping):
            msg = "settings must be a mapping"
            raise TypeError(msg)
        kwargs: dict[str, object] = {}
        for key, value in config.items():
            if not isinstance(key, str):
                msg = "settings keys must be strings"
                raise TypeError(msg)
            field = _KEYS.get(key.replace("_", "-"))
            if field is None:
                msg = f"unsupported settings key: {key!r}"
                raise SettingsError(msg)
            kwargs[field] = value
        return cls(**kwargs)  # type: ignore[arg-type]

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> InterceptSettings:
        """Build settings from ``LOGINTERCEPT_*`` environment variables.

        ``LOGINTERCEPT_FILTER_LEEWAY``, ``LOGINTERCEPT_TIMEFACTOR`` and
        ``LOGINTERCEPT_CAPTURE_LEVEL`` are consulted; unset variables keep
        their defaults.
        """
        env = os.environ if environ is None else environ
        config: dict[object, object] = {}
        for key in _KEYS:
            var = ENV_PREFIX + key.replace("-", "_").upper()
            if var in env:
                config[key] = env[var]
        return cls.from_mapping(config)


__all__ = [
    "DEFAULT_FILTER_LEEWAY",
    "DEFAULT_TIMEFACTOR",
    "InterceptSettings",
    "parse_duration",
]
