"""Typed configuration loading and access.

The release flow works out of the box for the TruthDB repos; an optional
``orchestrator.toml`` in the repos root (or ``--config``) can override the
GitHub owner, the polling knobs and the ordered repo/asset manifest:

    [release]
    owner = "Truthdb"
    poll_interval_secs = 10
    timeout_secs = 2700
    stable_polls = 2

    [[repos]]
    name = "installer-kernel"
    assets = ["BOOTX64.EFI"]

Asset entries are shell-style globs; ``{version}`` and ``{tag}`` are replaced
with the release version (``1.2.3``) and tag (``v1.2.3``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_int,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "Config",
    "ConfigError",
    "RepoConfig",
    "CONFIG_FILE_NAME",
    "DEFAULT_OWNER",
    "DEFAULT_POLL_INTERVAL_SECS",
    "DEFAULT_REPOS",
    "DEFAULT_STABLE_POLLS",
    "DEFAULT_TIMEOUT_SECS",
    "load_config",
    "load_config_if_present",
]

CONFIG_FILE_NAME = "orchestrator.toml"

DEFAULT_OWNER = "Truthdb"

# The timeout applies per repo.
DEFAULT_POLL_INTERVAL_SECS = 10
DEFAULT_TIMEOUT_SECS = 45 * 60

# Number of consecutive identical observations of a complete asset set
# required before the release counts as published.
DEFAULT_STABLE_POLLS = 2


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class RepoConfig:
    """One entry of the ordered release manifest."""

    name: str
    assets: tuple[str, ...] = ()


# Order encodes build dependencies: the ISO bundles the kernel, the installer
# and the database binaries, so it must be tagged last.
DEFAULT_REPOS: tuple[RepoConfig, ...] = (
    RepoConfig(name="installer-kernel", assets=("BOOTX64.EFI",)),
    RepoConfig(
        name="installer",
        assets=(
            "truthdb-installer-v{version}-x86_64-linux-musl.tar.gz",
            "truthdb-installer-v{version}-x86_64-linux-musl.sha256",
        ),
    ),
    RepoConfig(
        name="truthdb",
        assets=(
            "truthdb-v{version}-x86_64-linux-gnu.tar.gz",
            "truthdb-v{version}-x86_64-linux-gnu.sha256",
        ),
    ),
    RepoConfig(
        name="installer-iso",
        assets=(
            "truthdb-installer-v{version}.iso",
            "truthdb-installer-v{version}.iso.sha256",
        ),
    ),
)


def _default_repos() -> tuple[RepoConfig, ...]:
    return DEFAULT_REPOS


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    owner: str = DEFAULT_OWNER
    poll_interval_secs: int = DEFAULT_POLL_INTERVAL_SECS
    timeout_secs: int = DEFAULT_TIMEOUT_SECS
    stable_polls: int = DEFAULT_STABLE_POLLS
    repos: tuple[RepoConfig, ...] = field(default_factory=_default_repos)

    @property
    def repo_names(self) -> tuple[str, ...]:
        return tuple(r.name for r in self.repos)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If a value is present but invalid.
        """
        release: StrDict = get_table(data, "release") or {}

        poll = _positive_int(release, "poll_interval_secs", DEFAULT_POLL_INTERVAL_SECS)
        timeout = _positive_int(release, "timeout_secs", DEFAULT_TIMEOUT_SECS)
        stable = _positive_int(release, "stable_polls", DEFAULT_STABLE_POLLS)

        repos = DEFAULT_REPOS
        if "repos" in data:
            repos = _parse_repos(data["repos"])

        return cls(
            owner=get_str(release, "owner") or DEFAULT_OWNER,
            poll_interval_secs=poll,
            timeout_secs=timeout,
            stable_polls=stable,
            repos=repos,
        )


def _positive_int(table: Mapping[str, object], key: str, default: int) -> int:
    if key not in table:
        return default
    value = get_int(table, key)
    if value is None or value < 1:
        raise ValueError(f"release.{key} must be a positive integer")
    return value


def _parse_repos(raw: object) -> tuple[RepoConfig, ...]:
    items = as_obj_list(raw)
    if items is None or not items:
        raise ValueError("repos must be a non-empty array of tables")

    out: list[RepoConfig] = []
    seen: set[str] = set()
    for item in items:
        table = as_str_dict(item)
        if table is None:
            raise ValueError("each [[repos]] entry must be a table")

        name = get_str(table, "name")
        if name is None:
            raise ValueError("repos entry is missing a name")
        if name in seen:
            raise ValueError(f"duplicate repo: {name}")
        seen.add(name)

        assets: list[str] = []
        if "assets" in table:
            parsed = get_str_list(table, "assets")
            if parsed is None:
                raise ValueError(f"repos.{name}.assets must be a list of strings")
            assets = parsed

        out.append(RepoConfig(name=name, assets=tuple(assets)))
    return tuple(out)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the TOML file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config: {e}", path=path))


def load_config_if_present(path: Path) -> Result[Config, ConfigError]:
    """Load config when the file exists, defaults otherwise.

    A present but invalid file is an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
