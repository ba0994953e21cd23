"""Startup wiring: locate the clones and build the ordered repo list."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from orch.core.config import RepoConfig
from orch.core.result import Err, Ok, Result
from orch.git.repository import Repository
from orch.release.errors import ReleaseError
from orch.release.model import RepoDescriptor

__all__ = [
    "TOKEN_ENV_VARS",
    "build_descriptors",
    "default_repos_root",
    "looks_like_repos_root",
    "origin_matches",
    "resolve_token",
]

# Checked in this order; the first non-empty value wins.
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def looks_like_repos_root(path: Path, names: Iterable[str]) -> bool:
    return all((path / name).is_dir() for name in names)


def default_repos_root(cwd: Path, names: tuple[str, ...]) -> Result[Path, ReleaseError]:
    """The directory holding all clones: ``cwd`` itself or its parent.

    Running from inside one of the clones is the common case.
    """
    for candidate in (cwd, cwd.parent):
        if looks_like_repos_root(candidate, names):
            return Ok(candidate)

    return Err(
        ReleaseError(
            kind="repo_missing",
            message=f"can't infer repos root from {cwd}",
            hint=(
                "pass --repos-root pointing to the directory containing "
                + ", ".join(f"{n}/" for n in names)
            ),
        )
    )


def origin_matches(url: str, *, owner: str, name: str) -> bool:
    """True when ``url`` points at exactly ``owner/name``.

    Works for SSH (``git@host:owner/name.git``) and HTTPS/SSH URLs
    (``https://host/owner/name``). Both path segments must match whole, so
    ``installer`` does not match an ``installer-kernel`` remote.
    """
    path = url.strip().rstrip("/").lower().removesuffix(".git").rstrip("/")
    want = f"{owner}/{name}".lower()
    return path.endswith((f"/{want}", f":{want}"))


def build_descriptors(
    root: Path, repos: tuple[RepoConfig, ...], *, owner: str
) -> Result[tuple[RepoDescriptor, ...], ReleaseError]:
    """Open every configured clone under ``root``, in release order.

    Fails before anything is touched if a clone is missing or its origin
    does not point at ``owner``'s repo.
    """
    out: list[RepoDescriptor] = []
    for cfg in repos:
        path = root / cfg.name
        repo = Repository(path)
        if not path.is_dir() or not repo.exists():
            return Err(
                ReleaseError(
                    kind="repo_missing",
                    message=f"repo directory not found or not a git clone: {path}",
                    hint="clone it there or pass --repos-root",
                    repo=cfg.name,
                )
            )

        url = repo.origin_url()
        if isinstance(url, Err):
            return Err(
                ReleaseError(
                    kind="origin_mismatch",
                    message=f"cannot read origin remote: {url.error}",
                    repo=cfg.name,
                )
            )
        if not origin_matches(url.value, owner=owner, name=cfg.name):
            return Err(
                ReleaseError(
                    kind="origin_mismatch",
                    message=(
                        f"origin remote doesn't look like {owner}/{cfg.name} "
                        f"(got: {url.value}); refusing to push tags"
                    ),
                    hint="use --owner if the repos live under another account",
                    repo=cfg.name,
                )
            )

        out.append(
            RepoDescriptor(name=cfg.name, path=path, gateway=repo, asset_patterns=cfg.assets)
        )
    return Ok(tuple(out))


def resolve_token(env: Mapping[str, str]) -> str | None:
    for var in TOKEN_ENV_VARS:
        value = env.get(var, "").strip()
        if value:
            return value
    return None
