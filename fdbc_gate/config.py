"""Configuration for loading the C client and choosing an API version."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .exceptions import C_INT_MAX, ConfigError

# FDB_API_VERSION the binding is written against.
DEFAULT_API_VERSION = 600
# Newest version the bundled fdb_c.h knows about.
HEADER_VERSION = 730
# Oldest version any C client still accepts.
MIN_API_VERSION = 13

ENV_API_VERSION = "FDBC_API_VERSION"
ENV_HEADER_VERSION = "FDBC_HEADER_VERSION"
ENV_LIBRARY_PATH = "FDBC_LIBRARY_PATH"


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer", exc, context={"name": name, "value": raw}) from exc
    if not 0 < value <= C_INT_MAX:
        raise ConfigError(f"{name} must be a positive C int", context={"name": name, "value": raw})
    return value


@dataclass
class LibraryConfig:
    """Where to find libfdb_c."""

    path: str | None = None
    name: str = "fdb_c"


@dataclass
class VersionConfig:
    """API version settings."""

    api_version: int = DEFAULT_API_VERSION
    header_version: int = HEADER_VERSION


@dataclass
class AppConfig:
    """Top level configuration container."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    version: VersionConfig = field(default_factory=VersionConfig)

    @classmethod
    def create_default(cls) -> "AppConfig":
        """Create a default configuration instance."""

        return cls()

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a configuration from ``FDBC_*`` environment variables."""

        env = os.environ if env is None else env
        config = cls.create_default()
        config.version.api_version = _int_from_env(env, ENV_API_VERSION, DEFAULT_API_VERSION)
        config.version.header_version = _int_from_env(env, ENV_HEADER_VERSION, HEADER_VERSION)
        path = env.get(ENV_LIBRARY_PATH)
        if path:
            config.library.path = path
        return config
