"""Application settings loaded from environment variables via pydantic-settings.

Values are resolved in priority order:

  1. Environment variables, e.g. ``EMBEDDING_PROVIDER=sentence_transformer``
  2. The ``.env`` file in the working directory
  3. The defaults below

Field ``knowledge_db_path`` maps to env var ``KNOWLEDGE_DB_PATH`` and so on.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Emergency knowledge-base settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Storage ===
    knowledge_store: Literal["sqlite", "memory"] = "sqlite"
    knowledge_db_path: str = "data/knowledge.db"
    state_db_path: str = "data/kb_state.db"

    # === Config files ===
    config_path: str = "config/config.yaml"
    sources_manifest_path: str = "config/sources.yaml"

    # === Embeddings ===
    # Both backends run locally; the model downloads on first use.
    embedding_provider: Literal["fastembed", "sentence_transformer"] = "fastembed"
    embedding_model: str = ""  # empty = the provider's default model
    embedding_max_text_length: int = 1000
    embed_concurrency: int = 1  # 1 = strictly sequential

    # === Versioning ===
    # Bump schema_version to wipe and rebuild existing installations.
    schema_version: int = 2
    staleness_days: int = 30

    # === Chunking ===
    chunk_size: int = 500
    chunk_overlap: int = 50
    sentences_per_chunk: int = 5

    # === Search ===
    search_default_limit: int = 5
    search_default_priority_threshold: int = 5
    similarity_threshold: float = 0.6
    similarity_weight: float = 0.7
    priority_weight: float = 0.2
    field_weight: float = 0.1

    # === App ===
    app_env: str = "development"
    log_level: str = "INFO"
