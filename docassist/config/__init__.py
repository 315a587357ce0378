"""Runtime configuration: environment-backed ``Settings`` and the YAML loader."""

from docassist.config.loader import load_config
from docassist.config.settings import Settings

__all__ = ["Settings", "load_config"]
