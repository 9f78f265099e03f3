"""Service configuration loaded from YAML files."""

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, TextIO, Type

import yaml

SYSTEM_CONFIG_DIR = Path("/etc/.config")

_PORT_MAX = 65535


class ConfigError(Exception):
    """Raised when a configuration cannot be found or is not valid."""


@dataclass(frozen=True)
class AuthConfig:
    pk: str


@dataclass(frozen=True)
class ServerConfig:
    port: int


@dataclass(frozen=True)
class UserStatServerConfig(ServerConfig):
    db_url: str


@dataclass(frozen=True)
class CrmServerConfig(ServerConfig):
    sender_email: str
    metadata: str
    user_stats: str
    notification: str


def _build(kind: Type[Any], data: Any, section: str) -> Any:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{section}: expected a mapping")
    values = {}
    for spec in dataclasses.fields(kind):
        if spec.name not in data:
            raise ConfigError(f"{section}: missing field `{spec.name}`")
        value = data[spec.name]
        if isinstance(value, bool) or not isinstance(value, spec.type):
            raise ConfigError(
                f"{section}.{spec.name}: expected {spec.type.__name__}, got {value!r}"
            )
        if spec.name == "port" and not 0 <= value <= _PORT_MAX:
            raise ConfigError(f"{section}.port: {value} is out of range")
        values[spec.name] = value
    return kind(**values)


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig
    auth: AuthConfig

    @classmethod
    def from_mapping(
        cls, data: Any, server_type: Type[ServerConfig] = ServerConfig
    ) -> "AppConfig":
        """Build a configuration from parsed YAML data."""
        if not isinstance(data, Mapping):
            raise ConfigError("config: expected a mapping")
        for section in ("server", "auth"):
            if section not in data:
                raise ConfigError(f"config: missing field `{section}`")
        return cls(
            server=_build(server_type, data["server"], "server"),
            auth=_build(AuthConfig, data["auth"], "auth"),
        )


def _parse(stream: TextIO, server_type: Type[ServerConfig], origin: Path) -> AppConfig:
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{origin}: invalid YAML: {exc}") from exc
    return AppConfig.from_mapping(data, server_type)


def _open_first(paths: list) -> Optional[tuple]:
    for path in paths:
        try:
            return path, path.open(encoding="utf-8")
        except OSError:
            continue
    return None


def load_config(
    filename: str, env_var: str, server_type: Type[ServerConfig] = ServerConfig
) -> AppConfig:
    """Load a config from the working directory, the system directory or an env var path."""
    found = _open_first([Path(filename), SYSTEM_CONFIG_DIR / filename])
    if found is not None:
        path, stream = found
        with stream:
            return _parse(stream, server_type, path)

    env_path = os.environ.get(env_var)
    if env_path is None:
        raise ConfigError("config file not found")
    path = Path(env_path)
    try:
        stream = path.open(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot open config file {path}: {exc}") from exc
    with stream:
        return _parse(stream, server_type, path)


def load_metadata_config() -> AppConfig:
    return load_config("meta_data.yml", "META_DATA_CONFIG", ServerConfig)


def load_send_config() -> AppConfig:
    return load_config("crm_send.yml", "CRM_SEND_CONFIG", ServerConfig)


def load_user_stat_config() -> AppConfig:
    return load_config("user_stat.yml", "USER_STAT_CONFIG", UserStatServerConfig)


def load_crm_config() -> AppConfig:
    return load_config("crm.yml", "CRM_CONFIG", CrmServerConfig)