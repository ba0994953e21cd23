from __future__ import annotations

from orch.core.result import Err, Ok, Result
from orch.git.repository import GitError
from orch.release.errors import ReleaseError
from orch.release.model import (
    PREFLIGHT_PASSED,
    PreflightFailure,
    PreflightResult,
    RepoDescriptor,
)

_HINTS: dict[PreflightFailure, str] = {
    PreflightFailure.DIRTY_TREE: "commit or stash the changes, then re-run",
    PreflightFailure.DETACHED: "check out the release branch first",
    PreflightFailure.DIVERGED: "pull/push so the branch matches its upstream before tagging",
    PreflightFailure.TAG_EXISTS_LOCALLY: (
        "push it by hand, delete it (git tag -d {tag}) or choose a new version"
    ),
    PreflightFailure.TAG_EXISTS_REMOTE: "re-run with --resume to continue a partial release",
}


def preflight_hint(failure: PreflightFailure, *, tag: str) -> str:
    return _HINTS[failure].replace("{tag}", tag)


def _vcs_failed(repo: RepoDescriptor, error: GitError) -> Err[ReleaseError]:
    return Err(
        ReleaseError(
            kind="vcs_failed",
            message=str(error),
            hint=f"check the clone at {repo.path}",
            repo=repo.name,
        )
    )


class PreflightChecker:
    """Validate that a repo can be tagged safely.

    Checks run in a fixed order and stop at the first failure:
    clean tree, named branch, HEAD equal to upstream, tag absent locally,
    tag absent on the remote. Nothing is cached; every call re-reads the
    repo, because a previous run's verdict may be stale.

    With ``resume``, a tag that already exists on the remote is reported as
    TAG_EXISTS_REMOTE even if it also exists locally (the usual leftover of a
    completed earlier run), leaving the skip decision to the orchestrator.
    A tag that exists only locally is always TAG_EXISTS_LOCALLY.
    """

    def check(
        self, repo: RepoDescriptor, tag: str, *, resume: bool
    ) -> Result[PreflightResult, ReleaseError]:
        g = repo.gateway

        fetched = g.fetch()
        if isinstance(fetched, Err):
            return _vcs_failed(repo, fetched.error)

        clean = g.is_clean()
        if isinstance(clean, Err):
            return _vcs_failed(repo, clean.error)
        if not clean.value:
            return Ok(
                PreflightResult(
                    PreflightFailure.DIRTY_TREE, f"{repo.path} has uncommitted changes"
                )
            )

        branch = g.current_branch()
        if isinstance(branch, Err):
            return _vcs_failed(repo, branch.error)
        if branch.value is None:
            return Ok(
                PreflightResult(PreflightFailure.DETACHED, f"{repo.path} is in detached HEAD state")
            )

        synced = self._check_synced(repo, branch.value)
        if isinstance(synced, Err) or not synced.value.passed:
            return synced

        return self._check_tag(repo, tag, resume=resume)

    def _check_synced(
        self, repo: RepoDescriptor, branch: str
    ) -> Result[PreflightResult, ReleaseError]:
        g = repo.gateway

        head = g.head_commit()
        if isinstance(head, Err):
            return _vcs_failed(repo, head.error)

        upstream = g.remote_tracking_head(branch)
        if isinstance(upstream, Err):
            return _vcs_failed(repo, upstream.error)

        if upstream.value is None:
            return Ok(
                PreflightResult(
                    PreflightFailure.DIVERGED, f"branch {branch} has no upstream configured"
                )
            )
        if upstream.value != head.value:
            return Ok(
                PreflightResult(
                    PreflightFailure.DIVERGED,
                    f"branch {branch} is not synced with its upstream "
                    f"(local {head.value[:8]}, remote {upstream.value[:8]})",
                )
            )
        return Ok(PREFLIGHT_PASSED)

    def _check_tag(
        self, repo: RepoDescriptor, tag: str, *, resume: bool
    ) -> Result[PreflightResult, ReleaseError]:
        g = repo.gateway

        local = g.tag_exists_local(tag)
        if isinstance(local, Err):
            return _vcs_failed(repo, local.error)

        if local.value and not resume:
            return Ok(
                PreflightResult(PreflightFailure.TAG_EXISTS_LOCALLY, f"local tag {tag} exists")
            )

        remote = g.tag_exists_remote(tag)
        if isinstance(remote, Err):
            return _vcs_failed(repo, remote.error)

        if local.value and not remote.value:
            return Ok(
                PreflightResult(
                    PreflightFailure.TAG_EXISTS_LOCALLY,
                    f"local tag {tag} exists but was never pushed",
                )
            )
        if remote.value:
            return Ok(
                PreflightResult(PreflightFailure.TAG_EXISTS_REMOTE, f"remote tag {tag} exists")
            )
        return Ok(PREFLIGHT_PASSED)
