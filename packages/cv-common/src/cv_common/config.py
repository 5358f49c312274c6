"""
Environment-based configuration management for CorporaViewer.

Uses pydantic-settings to load configuration values from environment
variables and .env files. All services import their settings from this
module to ensure consistent configuration handling.

All environment variables are prefixed with ``CV_`` to avoid collisions.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from ``CV_``-prefixed environment variables.

    Attributes:
        es_hosts: Comma-separated Elasticsearch node URLs.
        words_index: Index holding one document per transcript word.
        sentences_index: Index holding one document per sentence with
            nested translations.
        pit_keep_alive: Keep-alive passed when opening and extending
            point-in-time cursors.
        chunk_size: Hits requested from each index per streamed chunk.
        follow_up_size: Size limit of non-paginated follow-up lookups.
        loose_fuzziness: Elasticsearch fuzziness used for loose search.
        speaker_fuzziness: Elasticsearch fuzziness for speaker names.
        api_host: Bind address for the highlights service.
        api_port: Bind port for the highlights service.
        cors_origins: Comma-separated allowed CORS origins.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_json: Render logs as JSON (disable for local development).
    """

    model_config = SettingsConfigDict(
        env_prefix="CV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Elasticsearch ──
    es_hosts: str = Field(
        default="http://localhost:9200",
        description="Comma-separated Elasticsearch node URLs.",
    )
    words_index: str = Field(default="words-index", description="Word-level index name.")
    sentences_index: str = Field(
        default="sentences-index",
        description="Sentence-level index name.",
    )
    pit_keep_alive: str = Field(default="5m", description="Point-in-time keep-alive.")

    # ── Highlight engine ──
    chunk_size: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Hits requested from each index per streamed chunk.",
    )
    follow_up_size: int = Field(
        default=10000,
        ge=1,
        le=10000,
        description="Size limit of non-paginated follow-up lookups.",
    )
    loose_fuzziness: str = Field(default="AUTO:5,10", description="Fuzziness for loose search.")
    speaker_fuzziness: str = Field(default="2", description="Fuzziness for speaker names.")

    # ── API ──
    api_host: str = Field(default="0.0.0.0", description="Service bind address.")
    api_port: int = Field(default=3000, ge=1, le=65535, description="Service bind port.")
    cors_origins: str = Field(default="*", description="Comma-separated CORS origins.")

    # ── Logging ──
    log_level: str = Field(default="INFO", description="Logging level.")
    log_json: bool = Field(default=True, description="Render logs as JSON.")

    @property
    def es_nodes(self) -> list[str]:
        """Elasticsearch node URLs split out of ``es_hosts``."""
        return [h.strip() for h in self.es_hosts.split(",") if h.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Returns:
        The global ``Settings`` instance.
    """
    return Settings()
