"""Configuration module: exports Settings, the loaders, and a module-level singleton."""

from emergency_kb.config.loader import apply_config, load_config, load_source_manifest
from emergency_kb.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "apply_config", "load_config", "load_source_manifest", "settings"]
