"""Regulator configuration"""

from .config import RegulatorConfig, load_config

__all__ = ["RegulatorConfig", "load_config"]
