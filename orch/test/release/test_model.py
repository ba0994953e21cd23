from __future__ import annotations

from pathlib import Path

from orch.release.errors import ReleaseError
from orch.release.model import OrchestratorRun, RepoDescriptor, RepoState, RepoVisit
from orch.release.vcs import InMemoryVcs
from orch.release.version import VersionSpec

VERSION = VersionSpec(raw="v2.1.0-rc.1", major=2, minor=1, patch=0, prerelease="rc.1")


def _repo(name: str, *patterns: str) -> RepoDescriptor:
    return RepoDescriptor(
        name=name, path=Path("/src") / name, gateway=InMemoryVcs(), asset_patterns=patterns
    )


def test_expected_assets_substitutes_version_and_tag() -> None:
    repo = _repo(
        "installer-iso", "truthdb-installer-v{version}.iso", "notes-{tag}.md", "BOOTX64.EFI"
    )

    assert repo.expected_assets(VERSION) == (
        "truthdb-installer-v2.1.0-rc.1.iso",
        "notes-v2.1.0-rc.1.md",
        "BOOTX64.EFI",
    )


def test_terminal_states() -> None:
    assert {s for s in RepoState if s.is_terminal} == {RepoState.DONE, RepoState.ABORTED}


def test_visit_transition_keeps_earlier_fields() -> None:
    error = ReleaseError(kind="timed_out", message="slow")
    visit = RepoVisit(repo=_repo("a")).to(RepoState.TAGGING)

    aborted = visit.to(RepoState.ABORTED, error=error)

    assert aborted.state is RepoState.ABORTED
    assert aborted.error == error
    assert visit.state is RepoState.TAGGING


def test_run_tracks_current_repo_and_final_states() -> None:
    a, b = _repo("a"), _repo("b")
    run = OrchestratorRun(version=VERSION, repos=(a, b))

    assert run.current_repo == a
    run.record(RepoVisit(repo=a))
    run.record(RepoVisit(repo=a, state=RepoState.DONE))
    run.index = 1

    assert run.current_repo == b
    assert run.final_states() == {"a": RepoState.DONE, "b": RepoState.PENDING}
    assert run.states_of("a") == [RepoState.PENDING, RepoState.DONE]
    assert not run.succeeded

    run.index = 2
    assert run.current_repo is None
    assert run.succeeded


def test_release_error_pretty() -> None:
    error = ReleaseError(kind="vcs_failed", message="push failed", hint="retry", repo="truthdb")

    assert error.pretty() == "[truthdb] push failed (hint: retry)"
    assert ReleaseError(kind="invalid_version", message="bad").pretty() == "bad"
