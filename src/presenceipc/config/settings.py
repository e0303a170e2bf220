"""Unified settings — init kwargs, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — passed by the application
  2. Env vars     — ``PRESENCEIPC_*`` prefix, ``__`` for nested sections
  3. TOML file    — explicit path, or ``PRESENCEIPC_CONFIG``
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

CONFIG_ENV_VAR = "PRESENCEIPC_CONFIG"


class ProtocolConfig(BaseModel):
    """[protocol] section."""

    model_config = {"frozen": True}

    version: int = 1
    # None means the current process id.
    pid: int | None = None


class ConnectionConfig(BaseModel):
    """[connection] section."""

    model_config = {"frozen": True}

    join_timeout: float = 5.0
    thread_name: str = "presenceipc-recv"


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a TOML file, if one was given."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ValueError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class IpcSettings(BaseSettings):
    """Settings for a connection and the logging around it."""

    model_config = {
        "frozen": True,
        "env_prefix": "PRESENCEIPC_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None
    verbose: bool = False
    log_json: bool = False

    protocol: ProtocolConfig = Field(default_factory=ProtocolConfig)
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)

    @property
    def pid(self) -> int:
        """Process id reported with activity updates."""
        return self.protocol.pid if self.protocol.pid is not None else os.getpid()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(cls, *, config_path: str | Path | None = None, **overrides: Any) -> IpcSettings:
        """Construct settings, reading TOML from *config_path* or ``PRESENCEIPC_CONFIG``."""
        raw_path = config_path if config_path is not None else os.environ.get(CONFIG_ENV_VAR)
        toml_path = Path(raw_path) if raw_path else None
        if toml_path is not None and not toml_path.is_file():
            toml_path = None

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None
