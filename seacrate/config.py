"""Loading and validating the YAML configuration file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

SUPPORTED_ALGORITHMS = ("aes",)


class ConfigError(ValueError):
    """The configuration could not be read or is not valid."""


@dataclass(frozen=True)
class DatabaseConfiguration:
    """Connection settings for the database."""

    database: str = ""
    host: str = ""
    port: int = 0
    username: str = ""
    password: str = ""


@dataclass(frozen=True)
class EncryptionConfiguration:
    """Which encryption algorithm protects stored secrets."""

    algorithm: str = ""


@dataclass(frozen=True)
class Config:
    """The whole application configuration."""

    dev: bool = False
    encryption: EncryptionConfiguration = field(default_factory=EncryptionConfiguration)
    database: DatabaseConfiguration = field(default_factory=DatabaseConfiguration)


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"section '{name}' must be a mapping")
    return value


def _string(section: dict, name: str) -> str:
    value: Any = section.get(name)
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ConfigError(f"field '{name}' must be a string")
    return str(value)


def _integer(section: dict, name: str) -> int:
    value: Any = section.get(name)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"field '{name}' must be an integer")
    return value


def _boolean(section: dict, name: str) -> bool:
    value: Any = section.get(name)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"field '{name}' must be a boolean")
    return value


def parse_config(data: str | bytes) -> Config:
    """Build a validated Config from YAML text."""
    try:
        raw = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("configuration must be a mapping")

    encryption_section = _section(raw, "encryption")
    database_section = _section(raw, "database")

    config = Config(
        dev=_boolean(raw, "dev"),
        encryption=EncryptionConfiguration(
            algorithm=_string(encryption_section, "algorithm"),
        ),
        database=DatabaseConfiguration(
            database=_string(database_section, "database"),
            host=_string(database_section, "host"),
            port=_integer(database_section, "port"),
            username=_string(database_section, "username"),
            password=_string(database_section, "password"),
        ),
    )

    if config.encryption.algorithm not in SUPPORTED_ALGORITHMS:
        raise ConfigError(
            "Key: 'Config.Encryption.EncryptionAlgorithm' Error:Field validation "
            "for 'EncryptionAlgorithm' failed on the 'oneof' tag"
        )
    return config


def load_config(path: str | Path) -> Config:
    """Read and validate the configuration file at ``path``."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ConfigError(f"could not read configuration file: {exc}") from exc
    return parse_config(data)