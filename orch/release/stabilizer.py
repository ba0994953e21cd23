"""Wait for a release's assets to be fully uploaded and settled.

Release workflows attach assets one by one and may replace a placeholder
upload with the final file. A release therefore only counts as published
once every expected asset is present and the whole asset listing has been
observed identically on ``stable_polls`` consecutive polls.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase

from orch.core.result import Err, Ok, Result
from orch.output.console import ConsoleProtocol
from orch.release.errors import ReleaseError
from orch.release.releases import ReleaseAsset, ReleaseInfo, ReleaseQueryService

__all__ = [
    "AssetStabilizer",
    "StabilizationOutcome",
    "StabilizationState",
    "missing_patterns",
    "snapshot_of",
]

Snapshot = frozenset[ReleaseAsset]


class StabilizationOutcome(Enum):
    STABLE = "stable"
    TIMED_OUT = "timed_out"
    RELEASE_NOT_FOUND = "release_not_found"


@dataclass
class StabilizationState:
    """Accumulator for one ``wait`` call."""

    last_snapshot: Snapshot | None = None
    consecutive: int = 0
    elapsed: float = 0.0
    polls: int = 0
    release_seen: bool = False

    def reset(self) -> None:
        self.last_snapshot = None
        self.consecutive = 0

    def observe(self, snapshot: Snapshot) -> int:
        """Record a complete snapshot; return the current agreement streak."""
        if snapshot == self.last_snapshot:
            self.consecutive += 1
        else:
            self.last_snapshot = snapshot
            self.consecutive = 1
        return self.consecutive


def snapshot_of(release: ReleaseInfo) -> Snapshot:
    return frozenset(release.assets)


def missing_patterns(release: ReleaseInfo, patterns: tuple[str, ...]) -> list[str]:
    """Patterns not matched by any ready (uploaded, non-empty) asset."""
    ready = release.ready_asset_names()
    return [p for p in patterns if not any(fnmatchcase(name, p) for name in ready)]


class AssetStabilizer:
    def __init__(
        self,
        releases: ReleaseQueryService,
        console: ConsoleProtocol,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._releases = releases
        self._console = console
        self._sleep = sleep
        self._clock = clock

    def wait(
        self,
        repo: str,
        tag: str,
        patterns: tuple[str, ...],
        *,
        poll_interval: float,
        max_wait: float,
        stable_polls: int,
    ) -> Result[StabilizationOutcome, ReleaseError]:
        """Poll until the release for ``tag`` is stable or ``max_wait`` elapses.

        Transient query failures are treated like "not ready yet"; auth
        failures and malformed payloads end the wait with an error.
        """
        state = StabilizationState()
        required = max(1, stable_polls)
        start = self._clock()

        while True:
            state.polls += 1
            result = self._releases.get_release(repo, tag)

            if isinstance(result, Err):
                e = result.error
                if not e.transient:
                    return Err(
                        ReleaseError(
                            kind="release_query_failed",
                            message=e.message,
                            hint=e.hint,
                            repo=repo,
                        )
                    )
                self._console.warning(f"[{repo}] release query failed, retrying: {e.message}")
                state.reset()
            elif result.value is None:
                self._console.status(f"[{repo}] release {tag} not found yet; waiting...")
                state.reset()
            else:
                release = result.value
                state.release_seen = True
                missing = missing_patterns(release, patterns)
                if missing:
                    self._console.status(
                        f"[{repo}] waiting for assets (missing {len(missing)}): "
                        + ", ".join(missing)
                    )
                    state.reset()
                elif state.observe(snapshot_of(release)) >= required:
                    self._console.success(f"[{repo}] assets ready for {tag}")
                    return Ok(StabilizationOutcome.STABLE)
                else:
                    self._console.status(
                        f"[{repo}] assets present; verifying stability "
                        f"({state.consecutive}/{required})..."
                    )

            state.elapsed = self._clock() - start
            if state.elapsed >= max_wait:
                if state.release_seen:
                    return Ok(StabilizationOutcome.TIMED_OUT)
                return Ok(StabilizationOutcome.RELEASE_NOT_FOUND)

            self._sleep(poll_interval)
