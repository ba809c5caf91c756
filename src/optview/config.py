"""TOML config loading for optview.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from optview.errors import ConfigError
from optview.recognizer import (
    AUTOGENERATED,
    PathPolicy,
    fold_case_path,
    identity_path,
    platform_path_policy,
)

CONFIG_NAME = "optview.toml"
DEFAULT_HTTP = ":8080"


@dataclass
class IndexConfig:
    base_dir: str = "."
    fold_case: bool | None = None  # None: decide from the platform
    sentinel: str = AUTOGENERATED

    def path_policy(self) -> PathPolicy:
        if self.fold_case is None:
            return platform_path_policy()
        return fold_case_path if self.fold_case else identity_path


@dataclass
class ServerConfig:
    http: str = DEFAULT_HTTP


@dataclass
class OptviewConfig:
    index: IndexConfig = field(default_factory=IndexConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find optview.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def _parse_fold_case(value: object) -> bool | None:
    if value == "auto":
        return None
    if isinstance(value, bool):
        return value
    raise ConfigError(f"index.fold_case must be true, false or \"auto\", got {value!r}")


def load_config(path: Path) -> OptviewConfig:
    """Parse an optview.toml file into an OptviewConfig.

    A relative ``index.base_dir`` is taken relative to the config file; when
    it is not set, the base directory stays the current directory.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = OptviewConfig()

    if "index" in data:
        idx = data["index"]
        base_dir = IndexConfig.base_dir
        if "base_dir" in idx:
            resolved = Path(idx["base_dir"])
            if not resolved.is_absolute():
                resolved = path.parent / resolved
            base_dir = str(resolved.resolve())
        config.index = IndexConfig(
            base_dir=base_dir,
            fold_case=_parse_fold_case(idx.get("fold_case", "auto")),
            sentinel=idx.get("sentinel", AUTOGENERATED),
        )

    if "server" in data:
        srv = data["server"]
        http = srv.get("http", DEFAULT_HTTP)
        parse_address(http)
        config.server = ServerConfig(http=http)

    return config


def parse_address(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (host may be empty) into a bind address."""
    host, sep, port = addr.rpartition(":")
    if not sep:
        host, port = "", addr
    host = host.strip("[]")
    try:
        number = int(port)
    except ValueError:
        raise ConfigError(f"invalid listen address {addr!r}") from None
    if not 0 <= number <= 65535:
        raise ConfigError(f"port out of range in {addr!r}")
    return host, number
