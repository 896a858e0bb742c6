"""
Remember-me duration policy.

A duration is armed with ``remember()`` before ``login`` and consumed exactly
once by the guard through ``take_and_reset()``.
"""

import re
from datetime import timedelta
from typing import Optional, Union

from gatehouse.core.exceptions import InvalidRememberDuration

RememberRequest = Union[bool, int, float, str, timedelta, None]

# Five years, counted in julian years (365.25 days) like duration strings.
DEFAULT_REMEMBER_DURATION = timedelta(days=5 * 365.25)

_DURATION_PATTERN = re.compile(
    r"^(?P<value>-?(?:\d+)?\.?\d+)\s*(?P<unit>"
    r"milliseconds?|msecs?|ms|seconds?|secs?|s|minutes?|mins?|m|"
    r"hours?|hrs?|h|days?|d|weeks?|w|years?|yrs?|y)?$",
    re.IGNORECASE,
)

_UNIT_MILLISECONDS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
    "y": 365.25 * 24 * 60 * 60 * 1000,
}


def _unit_key(unit: Optional[str]) -> str:
    if not unit:
        return "ms"
    unit = unit.lower()
    if unit.startswith("ms") or unit.startswith("msec") or unit.startswith("milli"):
        return "ms"
    if unit.startswith("mi") or unit == "m":
        return "m"
    return unit[0]


def parse_duration(text: str) -> timedelta:
    """
    Parse a human duration string such as ``"2 days"`` or ``"1.5h"``.

    A bare number is read as milliseconds.

    Raises:
        InvalidRememberDuration: If the string is not a known duration
    """
    match = _DURATION_PATTERN.match(text.strip())
    if not match:
        raise InvalidRememberDuration(f"Invalid remember duration '{text}'")

    value = float(match.group("value"))
    milliseconds = value * _UNIT_MILLISECONDS[_unit_key(match.group("unit"))]
    return timedelta(milliseconds=milliseconds)


def is_disabled(request: RememberRequest) -> bool:
    """Whether a remember request means "do not remember"."""
    if request is None or request is False:
        return True
    if isinstance(request, (int, float)) and not isinstance(request, bool):
        return request <= 0
    return False


def compute_duration(request: RememberRequest) -> Optional[timedelta]:
    """
    Convert a remember-me request into a token lifetime.

    Args:
        request: ``True``/``1`` for the five year default, a duration string,
            a number of milliseconds or a ``timedelta``

    Returns:
        The lifetime, or None when no remember token should be issued
    """
    if is_disabled(request):
        return None

    if request is True or (
        isinstance(request, (int, float)) and not isinstance(request, bool) and request == 1
    ):
        return DEFAULT_REMEMBER_DURATION

    if isinstance(request, timedelta):
        return request if request > timedelta(0) else None

    if isinstance(request, str):
        duration = parse_duration(request)
    else:
        duration = timedelta(milliseconds=request)

    return duration if duration > timedelta(0) else None


class RememberPolicy:
    """Holds at most one pending remember duration for the next login."""

    def __init__(self):
        self._duration: Optional[timedelta] = None

    @property
    def pending(self) -> Optional[timedelta]:
        """The armed duration, without consuming it."""
        return self._duration

    def compute_duration(self, request: RememberRequest) -> Optional[timedelta]:
        return compute_duration(request)

    def remember(self, request: RememberRequest = True) -> Optional[timedelta]:
        """
        Arm the policy for the next login.

        A "no remember" request (``0`` or a negative number, ``False``, ``None``) leaves any
        previously armed value untouched. Any other request overwrites it.
        """
        if is_disabled(request):
            return self._duration

        self._duration = self.compute_duration(request)
        return self._duration

    def take_and_reset(self) -> Optional[timedelta]:
        """Return the pending duration and reset it to None."""
        duration, self._duration = self._duration, None
        return duration

    def clear(self) -> None:
        self._duration = None
