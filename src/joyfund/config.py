from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_CONFIG_PATH = Path("config.yml")

URI_ENV_VARS = ("MONGO_URI", "MONGODB_URI")
MISSING_URI_MESSAGE = "Missing MONGO_URI (set it in the environment, .env or store.uri)"


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


class StoreConfig(BaseModel):
    uri: Optional[str] = None
    db_name: str = "joyfund"
    server_selection_timeout_ms: int = Field(default=10000, gt=0)


class MergeConfig(BaseModel):
    canonical: str = "waitlist"
    keyword: str = "waitlist"
    sources: Optional[List[str]] = None

    @field_validator("canonical", "keyword")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must be a non-empty string")
        return v.strip()

    @field_validator("sources")
    @classmethod
    def _clean_sources(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        cleaned = [s.strip() for s in v if s and s.strip()]
        return cleaned or None


class ImportConfig(BaseModel):
    folder: str = "sheet_exports"


class AppConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    merge: MergeConfig = Field(default_factory=MergeConfig)
    imports: ImportConfig = Field(default_factory=ImportConfig)

    @property
    def mongo_uri(self) -> str:
        if not self.store.uri:
            raise ConfigError(MISSING_URI_MESSAGE)
        return self.store.uri


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {config_path}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping: {config_path}")
    return data


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    require_uri: bool = True,
) -> AppConfig:
    """
    Load YAML config (optional), then apply environment overrides.

    Environment:
      - MONGO_URI / MONGODB_URI -> store.uri
      - DB_NAME -> store.db_name

    An explicit path that does not exist is an error; the default
    config.yml may be absent.
    """
    env = os.environ if env is None else env

    data: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found at: {config_path}")
        data = _read_yaml(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        data = _read_yaml(DEFAULT_CONFIG_PATH)

    try:
        cfg = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config: {e}") from e

    for var in URI_ENV_VARS:
        if env.get(var):
            cfg.store.uri = env[var]
            break
    if env.get("DB_NAME"):
        cfg.store.db_name = env["DB_NAME"]

    if require_uri and not cfg.store.uri:
        raise ConfigError(MISSING_URI_MESSAGE)

    return cfg
