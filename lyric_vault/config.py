"""User configuration stored under ``~/.lyric-vault``."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from lyric_vault.utils.observability import get_logger

HOME_ENV = "LYRIC_VAULT_HOME"
MODEL_ENV = "LYRIC_VAULT_MODEL"
OLLAMA_URL_ENV = "LYRIC_VAULT_OLLAMA_URL"
DATABASE_ENV = "LYRIC_VAULT_DB"

_logger = get_logger(__name__).bind(component="config")


def get_config_dir() -> Path:
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".lyric-vault"


def get_config_path() -> Path:
    return get_config_dir() / "config.json"


def _default_database_path() -> str:
    return str(get_config_dir() / "lyrics.db")


@dataclass
class VaultConfig:
    ollama_model: str = "llama3.2"
    ollama_url: str = "http://localhost:11434"
    database_path: str = field(default_factory=_default_database_path)
    request_timeout: float = 60.0

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "VaultConfig":
        known = {item.name for item in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def get_default_config() -> VaultConfig:
    return VaultConfig()


def _apply_environment(config: VaultConfig) -> VaultConfig:
    model = os.environ.get(MODEL_ENV)
    if model:
        config.ollama_model = model
    url = os.environ.get(OLLAMA_URL_ENV)
    if url:
        config.ollama_url = url
    database = os.environ.get(DATABASE_ENV)
    if database:
        config.database_path = database
    return config


def load_config(path: Optional[Path] = None) -> VaultConfig:
    """Load the saved configuration, falling back to defaults.

    A missing file is normal on first run.  An unreadable or malformed file is
    logged and ignored rather than aborting the command.  Environment
    variables take precedence over both.
    """

    config_path = Path(path) if path is not None else get_config_path()
    config = get_default_config()

    if config_path.exists():
        try:
            loaded = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            _logger.warning(
                "Ignoring unreadable configuration file",
                context={"path": str(config_path), "error": str(exc)},
            )
        else:
            if isinstance(loaded, dict):
                merged = config.as_dict()
                merged.update(loaded)
                config = VaultConfig.from_mapping(merged)
            else:
                _logger.warning(
                    "Configuration file does not contain an object",
                    context={"path": str(config_path)},
                )

    return _apply_environment(config)


def save_config(config: VaultConfig, path: Optional[Path] = None) -> Path:
    config_path = Path(path) if path is not None else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config.as_dict(), indent=2), encoding="utf-8")
    _logger.info("Configuration saved", context={"path": str(config_path)})
    return config_path


__all__ = [
    "VaultConfig",
    "get_config_dir",
    "get_config_path",
    "get_default_config",
    "load_config",
    "save_config",
]
