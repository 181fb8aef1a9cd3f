"""
Organizational timezone resolution and instant normalization.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Protocol

import pendulum
from pendulum import DateTime

from .exceptions import DataFetchError

logger = logging.getLogger(__name__)

UTC = "UTC"


class TimezoneSettingSource(Protocol):
    """Anything able to report the organization's default timezone."""

    async def fetch_timezone_setting(self) -> Optional[str]:
        """Return an IANA timezone identifier, or None when unset."""


def is_valid_timezone(name: object) -> bool:
    """Check whether ``name`` is a known IANA timezone identifier."""
    if not isinstance(name, str) or not name.strip():
        return False
    try:
        pendulum.timezone(name.strip())
    except (ValueError, KeyError):
        return False
    return True


def resolve_timezone(name: Optional[str], fallback: str = UTC) -> str:
    """
    Return ``name`` when it is a valid timezone, otherwise ``fallback``.

    The fallback itself must be valid; UTC is used as a last resort.
    """
    if is_valid_timezone(name):
        return name.strip()

    if name:
        logger.warning("Unknown timezone '%s', falling back to %s", name, fallback)

    return fallback if is_valid_timezone(fallback) else UTC


class TimezoneNormalizer:
    """
    Converts stored UTC instants into the organizational timezone.

    Every slot-versus-appointment comparison goes through ``to_org`` so that
    neither UTC nor the caller's local zone leaks into the conflict rules.
    """

    def __init__(self, timezone: str = UTC):
        self.timezone = resolve_timezone(timezone)

    @classmethod
    async def from_settings(
        cls,
        source: TimezoneSettingSource,
        fallback: str = UTC,
    ) -> "TimezoneNormalizer":
        """
        Build a normalizer from the timezone setting collaborator.

        A failed fetch or an unknown identifier never blocks availability
        computation: the fallback zone is used instead.
        """
        try:
            name = await source.fetch_timezone_setting()
        except DataFetchError as exc:
            logger.warning("Timezone setting unavailable, using %s: %s", fallback, exc)
            name = None

        if not name:
            logger.debug("No organizational timezone configured, using %s", fallback)

        return cls(resolve_timezone(name, fallback))

    def to_org(self, instant: datetime) -> DateTime:
        """Convert an aware instant to the organizational timezone."""
        if not isinstance(instant, DateTime):
            instant = pendulum.instance(instant)
        return instant.in_timezone(self.timezone)

    def __repr__(self) -> str:
        return f"TimezoneNormalizer({self.timezone!r})"
