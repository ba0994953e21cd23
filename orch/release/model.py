from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from orch.release.errors import PreflightFailure, ReleaseError
from orch.release.vcs import VcsGateway
from orch.release.version import VersionSpec

__all__ = [
    "PREFLIGHT_PASSED",
    "OrchestratorRun",
    "PreflightFailure",
    "PreflightResult",
    "RepoDescriptor",
    "RepoState",
    "RepoVisit",
    "TagDecision",
]


@dataclass(frozen=True, slots=True)
class RepoDescriptor:
    """One repo of the ordered release, built once at startup."""

    name: str
    path: Path
    gateway: VcsGateway
    # Globs with {version}/{tag} placeholders.
    asset_patterns: tuple[str, ...] = ()

    def expected_assets(self, version: VersionSpec) -> tuple[str, ...]:
        return tuple(
            p.replace("{version}", version.version).replace("{tag}", version.tag)
            for p in self.asset_patterns
        )


@dataclass(frozen=True, slots=True)
class PreflightResult:
    failure: PreflightFailure | None = None
    detail: str | None = None

    @property
    def passed(self) -> bool:
        return self.failure is None


PREFLIGHT_PASSED = PreflightResult()


class TagDecision(Enum):
    CREATE_AND_PUSH = "create_and_push"
    SKIP_ALREADY_TAGGED = "skip_already_tagged"
    ABORT = "abort"


class RepoState(Enum):
    PENDING = "pending"
    TAGGING = "tagging"
    SKIP_TAG = "skip_tag"
    WAITING_ASSETS = "waiting_assets"
    DONE = "done"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (RepoState.DONE, RepoState.ABORTED)


@dataclass(frozen=True, slots=True)
class RepoVisit:
    """Snapshot of one repo's progress through the state machine."""

    repo: RepoDescriptor
    state: RepoState = RepoState.PENDING
    decision: TagDecision | None = None
    error: ReleaseError | None = None

    def to(
        self,
        state: RepoState,
        *,
        decision: TagDecision | None = None,
        error: ReleaseError | None = None,
    ) -> RepoVisit:
        return replace(
            self,
            state=state,
            decision=decision or self.decision,
            error=error or self.error,
        )


def _empty_visits() -> list[RepoVisit]:
    return []


@dataclass
class OrchestratorRun:
    """Session state of one ``release-iso`` invocation.

    Owned by the orchestrator for the duration of a run and never persisted:
    a resumed run rebuilds everything from git and the release API.
    """

    version: VersionSpec
    repos: tuple[RepoDescriptor, ...]
    resume: bool = False
    dry_run: bool = False
    index: int = 0
    history: list[RepoVisit] = field(default_factory=_empty_visits)
    failure: ReleaseError | None = None

    @property
    def current_repo(self) -> RepoDescriptor | None:
        if self.index >= len(self.repos):
            return None
        return self.repos[self.index]

    @property
    def succeeded(self) -> bool:
        return self.failure is None and self.index >= len(self.repos)

    def record(self, visit: RepoVisit) -> None:
        self.history.append(visit)

    def final_states(self) -> dict[str, RepoState]:
        """Last known state per repo, in release order."""
        states = {r.name: RepoState.PENDING for r in self.repos}
        for visit in self.history:
            states[visit.repo.name] = visit.state
        return states

    def states_of(self, repo_name: str) -> list[RepoState]:
        return [v.state for v in self.history if v.repo.name == repo_name]
