"""Configuration management for emo."""

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Dict, Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigIoError

APP_NAME = "emo"
CONFIG_FILENAME = "config.json"

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_REGISTRY_URL = "https://huggingface.co"


def config_dir() -> Path:
    """Return the per-platform base config directory.

    ``XDG_CONFIG_HOME`` wins everywhere so tests and custom setups can
    redirect it.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata)
        return Path.home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return Path.home() / ".config"


def app_dir() -> Path:
    return config_dir() / APP_NAME


def config_path() -> Path:
    return app_dir() / CONFIG_FILENAME


def models_dir() -> Path:
    return app_dir() / "models"


class Config(BaseModel):
    """Saved memos plus the AI model identifier."""

    mappings: Dict[str, str] = Field(default_factory=dict)
    model: Optional[str] = None

    @field_validator("model")
    @classmethod
    def blank_model_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("mappings")
    @classmethod
    def validate_mappings(cls, v: Dict[str, str]) -> Dict[str, str]:
        for term, glyph in v.items():
            if not term or not glyph:
                raise ValueError("mappings must not contain empty terms or emojis")
        return v

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load configuration from JSON, falling back to defaults when absent."""
        path = path or config_path()
        if not path.exists():
            logger.debug(f"No config at {path}, using defaults")
            return cls()

        logger.debug(f"Loading config from: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigIoError(f"Cannot read config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigIoError(f"Config {path} must contain a JSON object")
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigIoError(f"Invalid config {path}: {e}") from e

    def save(self, path: Optional[Path] = None) -> None:
        """Write configuration atomically: temp file in the same dir, then rename."""
        path = path or config_path()
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.model_dump(), f, indent=2, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise ConfigIoError(f"Cannot write config {path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug(f"Saved config to: {path}")


class AiSettings(BaseModel):
    """Settings for the Ollama backend and the model registry."""

    ollama_url: str = DEFAULT_OLLAMA_URL
    registry_url: str = DEFAULT_REGISTRY_URL
    temperature: float = 0.2
    seed: int = 1234
    max_tokens: int = 20
    timeout: float = 120.0
    max_attempts: int = 3

    @field_validator("ollama_url", "registry_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.rstrip("/")
        if "://" not in v:
            v = f"http://{v}"
        return v

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if v < 0:
            raise ValueError("temperature must not be negative")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v

    @classmethod
    def from_env(cls) -> "AiSettings":
        """Build settings, honouring ``EMO_OLLAMA_URL`` then ``OLLAMA_HOST``."""
        data = {}
        url = os.environ.get("EMO_OLLAMA_URL") or os.environ.get("OLLAMA_HOST")
        if url:
            data["ollama_url"] = url
        registry = os.environ.get("EMO_REGISTRY_URL")
        if registry:
            data["registry_url"] = registry
        return cls(**data)
