"""Playback-rate derivation for the background video.

Stretches a short clip over the whole session, e.g. a 7 second video
over a 5 minute sit plays at 7 / 300 ~= 0.0233x.
"""

import math
from numbers import Real


class InvalidDurationError(ValueError):
    """Duration is not a finite positive number."""

    pass


def _check_duration(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidDurationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidDurationError(f"{name} must be finite and positive, got {value!r}")


def compute_rate(asset_duration_seconds: float, session_duration_seconds: float) -> float:
    """Compute the playback-rate multiplier for a media asset.

    No clamping is applied; callers may clamp to what the device supports.

    Args:
        asset_duration_seconds: Natural length of the asset
        session_duration_seconds: Length the asset should span

    Returns:
        asset_duration_seconds / session_duration_seconds

    Raises:
        InvalidDurationError: If either argument is <= 0 or not finite
    """
    _check_duration("asset_duration_seconds", asset_duration_seconds)
    _check_duration("session_duration_seconds", session_duration_seconds)
    return asset_duration_seconds / session_duration_seconds
