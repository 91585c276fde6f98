"""Non-fatal configuration checks."""

import warnings
from typing import List

from .duration import format_duration
from .models import AppConfig


def check_for_warnings(config: AppConfig) -> List[str]:
    """
    Look for settings that are legal but probably unintended.

    Args:
        config: Validated application configuration

    Returns:
        List of warning messages
    """
    messages = []

    prefs = config.preferences
    if prefs.good_threshold >= prefs.bad_threshold:
        messages.append(
            f"preferences.good_threshold ({prefs.good_threshold:g}) is not below "
            f"bad_threshold ({prefs.bad_threshold:g}); readings matching both "
            "will send the good-air alert"
        )

    if prefs.cooldown_ms == 0:
        messages.append("preferences.cooldown is zero; every qualifying reading sends an alert")

    if config.delivery.pacing_interval_ms == 0:
        messages.append(
            "delivery.pacing_interval is zero; sends will not be spaced out and "
            "may exceed the mail provider's rate limits"
        )
    elif config.delivery.pacing_interval_ms > 60_000:
        messages.append(
            f"delivery.pacing_interval is {format_duration(config.delivery.pacing_interval_ms)}; "
            "queued messages may take a long time to go out"
        )

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message as a UserWarning."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
