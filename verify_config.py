#!/usr/bin/env python3
"""Simple script to verify config.example.yaml structure without importing the package."""

import sys
from pathlib import Path

import yaml

KNOWN_SECTIONS = {
    "delivery": {"pacing_interval", "max_pending", "max_messages_per_connection"},
    "preferences": {
        "email_enabled",
        "good_alert_enabled",
        "bad_alert_enabled",
        "good_threshold",
        "bad_threshold",
        "cooldown",
    },
    "email": {"use_tls", "verify_on_startup", "timeout"},
    "logging": {"level", "format"},
}


def verify_config_structure(config_file: Path = Path("config.example.yaml")) -> bool:
    """Verify the example config only uses known sections and keys."""
    if not config_file.exists():
        print(f"✗ {config_file} not found")
        return False

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"✗ Failed to parse {config_file}: {e}")
        return False

    if not isinstance(config, dict):
        print(f"✗ {config_file} must contain a mapping at the top level")
        return False

    errors = []

    for section, value in config.items():
        if section not in KNOWN_SECTIONS:
            errors.append(f"Unknown section: {section}")
            continue
        if value is None:
            continue
        if not isinstance(value, dict):
            errors.append(f"'{section}' must be a mapping")
            continue
        for key in value:
            if key not in KNOWN_SECTIONS[section]:
                errors.append(f"Unknown key in '{section}': {key}")

    prefs = config.get("preferences") or {}
    good, bad = prefs.get("good_threshold"), prefs.get("bad_threshold")
    if isinstance(good, (int, float)) and isinstance(bad, (int, float)) and good >= bad:
        errors.append(f"good_threshold ({good}) should be below bad_threshold ({bad})")

    if errors:
        print(f"✗ {config_file} validation failed:")
        for error in errors:
            print(f"  - {error}")
        return False

    delivery = config.get("delivery") or {}
    print(f"✓ {config_file} structure is valid")
    print(f"  - Pacing interval: {delivery.get('pacing_interval', 'default')}")
    print(f"  - Alert cooldown: {prefs.get('cooldown', 'default')}")
    print(f"  - Thresholds: good <= {good if good is not None else 'default'}, "
          f"bad >= {bad if bad is not None else 'default'}")
    return True


if __name__ == "__main__":
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("config.example.yaml")
    sys.exit(0 if verify_config_structure(path) else 1)
