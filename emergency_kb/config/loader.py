"""YAML configuration and source-manifest loading.

Configuration is layered (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo
  2. .env file           -- local overrides (not committed)
  3. Environment vars    -- set at deploy time

:func:`load_config` reads the YAML file and deep-merges the explicitly set
:class:`Settings` values on top.  :func:`apply_config` maps the merged dict
back onto a :class:`Settings` copy for the composition root.

:func:`load_source_manifest` reads ``config/sources.yaml``, the ordered list
of documents ingested at bootstrap::

    sources:
      - path: data/initial_knowledge_base.json
        format: json
        source: Initial Knowledge Base
        category: general
        priority: 3
        optional: true

Relative paths resolve against the manifest's own directory.
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from emergency_kb.config.settings import Settings
from emergency_kb.models.knowledge import DocumentMetadata
from emergency_kb.services.ingestion.document_source import DocumentSource
from emergency_kb.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


# Settings field -> key path in the merged config dict.
_CONFIG_KEYS: dict[str, tuple[str, ...]] = {
    "app_env": ("app", "env"),
    "log_level": ("logging", "level"),
    "knowledge_store": ("storage", "backend"),
    "knowledge_db_path": ("storage", "knowledge_db_path"),
    "state_db_path": ("storage", "state_db_path"),
    "embedding_provider": ("embedding", "provider"),
    "embedding_model": ("embedding", "model"),
    "embedding_max_text_length": ("embedding", "max_text_length"),
    "embed_concurrency": ("embedding", "concurrency"),
    "schema_version": ("versioning", "schema_version"),
    "staleness_days": ("versioning", "staleness_days"),
    "chunk_size": ("chunking", "chunk_size"),
    "chunk_overlap": ("chunking", "chunk_overlap"),
    "sentences_per_chunk": ("chunking", "sentences_per_chunk"),
    "search_default_limit": ("search", "default_limit"),
    "search_default_priority_threshold": ("search", "default_priority_threshold"),
    "similarity_threshold": ("search", "similarity_threshold"),
    "similarity_weight": ("search", "weights", "similarity"),
    "priority_weight": ("search", "weights", "priority"),
    "field_weight": ("search", "weights", "field"),
    "sources_manifest_path": ("sources", "manifest"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Only settings that were explicitly provided (environment, ``.env`` or
    constructor arguments) override YAML values; field defaults never do.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
            the explicitly set values only.
        settings: Settings to merge; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the file exists but is not a YAML mapping.
    """
    yaml_config = _read_yaml(Path(path)) if Path(path).exists() else {}
    if yaml_config is None:
        yaml_config = {}
    if not isinstance(yaml_config, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")

    settings = settings or Settings()
    env_overrides: dict = {}
    for field, key_path in _CONFIG_KEYS.items():
        if field in settings.model_fields_set:
            _set_path(env_overrides, key_path, getattr(settings, field))

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def apply_config(settings: Settings, config: dict) -> Settings:
    """Return a copy of *settings* with every value present in *config* applied."""
    updates = {}
    for field, key_path in _CONFIG_KEYS.items():
        found, value = _get_path(config, key_path)
        if found and value is not None:
            updates[field] = value
    if updates:
        logger.debug("config_applied", fields=sorted(updates))
    # Re-validate so a bad YAML value fails here, not deep in a service.
    try:
        return type(settings)(**{**settings.model_dump(), **updates})
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid configuration value: {exc}") from exc


def load_source_manifest(path: str | Path) -> list[DocumentSource]:
    """Read the ordered source manifest into :class:`DocumentSource` objects.

    A missing manifest means "no configured sources" (bootstrap then falls
    back to the built-in seed set).  Each record's ``path`` is required;
    the remaining keys map onto :class:`DocumentMetadata`, with ``source``
    defaulting to the file name.

    Raises:
        ConfigurationError: If the manifest is unreadable or malformed.
    """
    manifest_path = Path(path)
    if not manifest_path.exists():
        logger.info("source_manifest_missing", path=str(manifest_path))
        return []

    raw = _read_yaml(manifest_path) or {}
    records = raw.get("sources", []) if isinstance(raw, dict) else raw
    if not isinstance(records, list):
        raise ConfigurationError(f"{manifest_path}: 'sources' must be a list")

    sources: list[DocumentSource] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict) or not record.get("path"):
            raise ConfigurationError(f"{manifest_path}: source {index} needs a 'path'")

        file_path = Path(record["path"])
        if not file_path.is_absolute():
            file_path = manifest_path.parent / file_path

        fields = {k: v for k, v in record.items() if k not in ("path", "optional")}
        fields.setdefault("source", file_path.name)
        try:
            metadata = DocumentMetadata(**fields)
        except PydanticValidationError as exc:
            raise ConfigurationError(
                f"{manifest_path}: source {index} is invalid: {exc}"
            ) from exc

        if not record.get("optional", True) and not file_path.exists():
            raise ConfigurationError(f"{manifest_path}: required source {file_path} not found")
        sources.append(DocumentSource.from_path(file_path, metadata))

    logger.info("source_manifest_loaded", path=str(manifest_path), sources=len(sources))
    return sources


def _read_yaml(path: Path) -> object:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _set_path(target: dict, key_path: tuple[str, ...], value: object) -> None:
    for key in key_path[:-1]:
        target = target.setdefault(key, {})
    target[key_path[-1]] = value


def _get_path(source: dict, key_path: tuple[str, ...]) -> tuple[bool, object]:
    node: object = source
    for key in key_path:
        if not isinstance(node, dict) or key not in node:
            return False, None
        node = node[key]
    return True, node
