"""Version-control gateway used by preflight and tagging.

``VcsGateway`` is the capability the release flow needs from one local clone.
``orch.git.Repository`` implements it against the git CLI; ``InMemoryVcs``
implements it with plain attributes so the state machine can be exercised
without git or a network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from orch.core.result import Err, Ok, Result
from orch.git.repository import GitError

__all__ = ["InMemoryVcs", "VcsGateway"]


@runtime_checkable
class VcsGateway(Protocol):
    def fetch(self) -> Result[None, GitError]:
        """Refresh remote-tracking refs and tags."""
        ...

    def is_clean(self) -> Result[bool, GitError]: ...

    def current_branch(self) -> Result[str | None, GitError]:
        """Branch name, or None when HEAD is detached."""
        ...

    def head_commit(self) -> Result[str, GitError]: ...

    def remote_tracking_head(self, branch: str) -> Result[str | None, GitError]:
        """Upstream commit of ``branch``, or None when it has no upstream."""
        ...

    def tag_exists_local(self, tag: str) -> Result[bool, GitError]: ...

    def tag_exists_remote(self, tag: str) -> Result[bool, GitError]: ...

    def create_tag(self, tag: str, commit: str) -> Result[None, GitError]: ...

    def push_tag(self, tag: str) -> Result[None, GitError]: ...


def _empty_tags() -> dict[str, str]:
    return {}


def _empty_failures() -> dict[str, GitError]:
    return {}


def _empty_log() -> list[tuple[str, ...]]:
    return []


@dataclass
class InMemoryVcs:
    """Deterministic VcsGateway for tests and dry reasoning.

    ``failures`` maps a method name (e.g. ``"push_tag"``) to the error it
    should return. Every call is appended to ``calls``; tag mutations are
    additionally appended to ``mutations``.
    """

    clean: bool = True
    branch: str | None = "main"
    head: str = "a" * 40
    upstream: str | None = "a" * 40
    local_tags: dict[str, str] = field(default_factory=_empty_tags)
    remote_tags: dict[str, str] = field(default_factory=_empty_tags)
    failures: dict[str, GitError] = field(default_factory=_empty_failures)
    calls: list[tuple[str, ...]] = field(default_factory=_empty_log)
    mutations: list[tuple[str, ...]] = field(default_factory=_empty_log)

    def _fail(self, method: str, *args: str) -> GitError | None:
        self.calls.append((method, *args))
        return self.failures.get(method)

    def fetch(self) -> Result[None, GitError]:
        if (e := self._fail("fetch")) is not None:
            return Err(e)
        return Ok(None)

    def is_clean(self) -> Result[bool, GitError]:
        if (e := self._fail("is_clean")) is not None:
            return Err(e)
        return Ok(self.clean)

    def current_branch(self) -> Result[str | None, GitError]:
        if (e := self._fail("current_branch")) is not None:
            return Err(e)
        return Ok(self.branch)

    def head_commit(self) -> Result[str, GitError]:
        if (e := self._fail("head_commit")) is not None:
            return Err(e)
        return Ok(self.head)

    def remote_tracking_head(self, branch: str) -> Result[str | None, GitError]:
        if (e := self._fail("remote_tracking_head", branch)) is not None:
            return Err(e)
        return Ok(self.upstream)

    def tag_exists_local(self, tag: str) -> Result[bool, GitError]:
        if (e := self._fail("tag_exists_local", tag)) is not None:
            return Err(e)
        return Ok(tag in self.local_tags)

    def tag_exists_remote(self, tag: str) -> Result[bool, GitError]:
        if (e := self._fail("tag_exists_remote", tag)) is not None:
            return Err(e)
        return Ok(tag in self.remote_tags)

    def create_tag(self, tag: str, commit: str) -> Result[None, GitError]:
        if (e := self._fail("create_tag", tag, commit)) is not None:
            return Err(e)
        if tag in self.local_tags:
            return Err(
                GitError(command="tag", message=f"tag '{tag}' already exists", returncode=128)
            )
        self.local_tags[tag] = commit
        self.mutations.append(("create_tag", tag, commit))
        return Ok(None)

    def push_tag(self, tag: str) -> Result[None, GitError]:
        if (e := self._fail("push_tag", tag)) is not None:
            return Err(e)
        commit = self.local_tags.get(tag)
        if commit is None:
            return Err(
                GitError(command="push", message=f"src refspec {tag} does not match any")
            )
        self.remote_tags[tag] = commit
        self.mutations.append(("push_tag", tag))
        return Ok(None)
