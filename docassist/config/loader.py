"""YAML configuration loader.

# ─── CONFIGURATION SOURCES (Junior Developer Guide) ───────────────────
#
#   1. Environment vars / .env  - every scalar setting, read by Settings
#   2. config/config.yaml       - list-valued escalation policy
#                                 (low-confidence phrases, ticket reason)
#
# load_config() returns the YAML document with the escalation values
# Settings owns (admin email, notification switch) filled in, so the
# escalation section is complete in one place.  Scalars are never read
# from YAML; Settings is the only source for them.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from docassist.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load the YAML config and fill in the escalation values from Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
            only the Settings-derived values.
        settings: Already-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Configuration dictionary with an ``escalation`` section.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "escalation": {
            "admin_email": settings.admin_email,
            "notifications_enabled": settings.escalation_notifications_enabled,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
