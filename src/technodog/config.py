"""Application settings loaded from YAML with environment variable overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class ChatSettings(BaseModel):
    endpoint_url: str = "http://localhost:54321/functions/v1/rag-chat"
    api_key: str = ""
    timeout: float = 60.0
    max_buffer_chars: int = 1_048_576


class ChunkingSettings(BaseModel):
    chunk_size: int = 1500
    overlap: int = 200


class StorageSettings(BaseModel):
    backend: str = "memory"
    supabase_url: str = ""
    supabase_key: str = ""
    table: str = "documents"


class EmbeddingSettings(BaseModel):
    enabled: bool = False
    provider: str = "openai"
    model: str = "text-embedding-3-small"
    dimension: int = 768
    api_key: str | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    chat: ChatSettings = Field(default_factory=ChatSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)


# env var -> (section, field)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "TECHNODOG_CHAT_URL": ("chat", "endpoint_url"),
    "TECHNODOG_CHAT_KEY": ("chat", "api_key"),
    "SUPABASE_URL": ("storage", "supabase_url"),
    "SUPABASE_SERVICE_ROLE_KEY": ("storage", "supabase_key"),
    "OPENAI_API_KEY": ("embedding", "api_key"),
}


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("TECHNODOG_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def _apply_env_overrides(raw: dict) -> dict:
    for env_var, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            raw[section] = {**(raw.get(section) or {}), key: value}
    return raw


def load_settings() -> Settings:
    """Load settings from YAML file, falling back to defaults.

    Environment variables in ``_ENV_OVERRIDES`` win over the file.
    """
    raw: dict = {}
    path = _find_settings_file()
    if path is not None:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

    return Settings(**_apply_env_overrides(raw))
