"""Error types for the release bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

ReleaseErrorKind = Literal[
    "invalid_version",
    "invalid_config",
    "missing_token",
    "repo_missing",
    "origin_mismatch",
    "preflight_failed",
    "vcs_failed",
    "release_query_failed",
    "release_not_found",
    "timed_out",
    "invalid_state",
]


class PreflightFailure(Enum):
    DIRTY_TREE = "dirty_tree"
    DETACHED = "detached"
    DIVERGED = "diverged"
    TAG_EXISTS_LOCALLY = "tag_exists_locally"
    TAG_EXISTS_REMOTE = "tag_exists_remote"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    ``repo`` names the repository the failure belongs to, when there is one,
    so the operator knows where to look before re-running with ``--resume``.
    ``preflight`` carries the failed check for ``preflight_failed`` errors.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    repo: str | None = None
    preflight: PreflightFailure | None = None

    def pretty(self) -> str:
        prefix = f"[{self.repo}] " if self.repo else ""
        if self.hint:
            return f"{prefix}{self.message} (hint: {self.hint})"
        return f"{prefix}{self.message}"
