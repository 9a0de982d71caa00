# Positional-argument heuristics — pull a duration and an emoji out of
# free-form status text such as "5m :coffee: Getting coffee" or
# ":dancing: Dancing for 1h".
# Created: 2026-10-18

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import timedelta

# Nanoseconds per unit, matching the duration literals accepted by --duration
_UNIT_NS: dict[str, int] = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # micro sign
    "μs": 1_000,  # greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_COMPONENT = r"(\d*\.?\d*)(ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"(?:{_COMPONENT})+")
_COMPONENT_RE = re.compile(_COMPONENT)

# Largest duration representable as signed 64-bit nanoseconds
_MAX_DURATION_NS = 2**63 - 1


def parse_duration(text: str) -> timedelta:
    """Parse a duration literal like ``"5m"``, ``"1h30m"`` or ``"1.5h"``.

    A literal is an optional sign followed by one or more decimal numbers,
    each with a unit suffix (ns, us, ms, s, m, h). The bare string ``"0"``
    is also accepted.

    Raises:
        ValueError: If ``text`` is not a valid duration.
    """
    body = text
    negative = False
    if body[:1] in ("-", "+"):
        negative = body[0] == "-"
        body = body[1:]

    if body == "0":
        return timedelta(0)
    if not body or not _DURATION_RE.fullmatch(body):
        raise ValueError(f"invalid duration {text!r}")

    total_ns = 0.0
    for number, unit in _COMPONENT_RE.findall(body):
        if not any(ch.isdigit() for ch in number):
            raise ValueError(f"invalid duration {text!r}")
        total_ns += float(number) * _UNIT_NS[unit]
        if total_ns > _MAX_DURATION_NS:
            raise ValueError(f"invalid duration {text!r}")

    if negative:
        total_ns = -total_ns
    return timedelta(microseconds=total_ns / 1_000)


def _try_parse_duration(text: str) -> timedelta | None:
    try:
        return parse_duration(text)
    except ValueError:
        return None


def read_duration_args(args: list[str]) -> tuple[list[str], timedelta | None]:
    """Find a duration at the start or end of the positional args.

    Looks for a prefixed duration (``5m :cowboy: Howdy y'all``) first and
    then for a trailing ``for <duration>`` expression (``:dancing: Dancing
    for 1h``). A duration in the middle of the text is left alone.

    Returns the remaining args and the duration, or the input unchanged and
    None.
    """
    if not args:
        return args, None

    duration = _try_parse_duration(args[0])
    if duration is not None:
        return args[1:], duration

    # Need at least "for" and a value
    if len(args) < 2:
        return args, None

    if args[-2].lower() == "for":
        duration = _try_parse_duration(args[-1])
        if duration is not None:
            return args[:-2], duration

    return args, None


def read_emoji_arg(args: list[str]) -> tuple[list[str], str]:
    """Consume a leading ``:emoji:`` token if there is one."""
    if args:
        first = args[0]
        if len(first) >= 2 and first[0] == ":" and first[-1] == ":":
            return args[1:], first
    return args, ""


@dataclass
class StatusRequest:
    """Status fields parsed from the command line."""

    status_text: str = ""
    emoji: str = ""
    duration: timedelta | None = None
    snooze: bool = False

    def expiration(self, now: float | None = None) -> int:
        """Epoch seconds at which the status should expire, 0 for never."""
        if not self.duration:
            return 0
        if now is None:
            now = time.time()
        return int(now + self.duration.total_seconds())

    @property
    def snooze_minutes(self) -> int:
        if not self.duration:
            return 0
        return int(self.duration.total_seconds() / 60)


def build_status_request(
    args: list[str],
    *,
    duration: timedelta | None = None,
    emoji: str = "",
    snooze: bool = False,
) -> StatusRequest:
    """Combine explicit flag values with whatever the positional args imply.

    Positional heuristics only run for fields the flags left unset, and the
    emoji check runs on what is left after the duration is removed.
    """
    remaining = list(args)

    if not duration:
        remaining, parsed = read_duration_args(remaining)
        if parsed is not None:
            duration = parsed

    if not emoji:
        remaining, emoji = read_emoji_arg(remaining)

    return StatusRequest(
        status_text=" ".join(remaining),
        emoji=emoji,
        duration=duration,
        snooze=snooze,
    )
