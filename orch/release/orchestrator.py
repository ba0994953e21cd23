"""Sequential multi-repo release driver.

Each repo goes through its own small state machine (see ``TRANSITIONS``):

    PENDING -> TAGGING | SKIP_TAG | ABORTED
    TAGGING -> WAITING_ASSETS | ABORTED
    SKIP_TAG -> WAITING_ASSETS
    WAITING_ASSETS -> DONE | ABORTED

The next repo is only visited once the current one reached DONE. The first
ABORTED repo ends the run; tags already pushed for earlier repos are kept
and a later ``--resume`` run picks up from there.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from orch.core.config import (
    DEFAULT_POLL_INTERVAL_SECS,
    DEFAULT_STABLE_POLLS,
    DEFAULT_TIMEOUT_SECS,
)
from orch.core.result import Err, Ok, Result
from orch.output.console import ConsoleProtocol, Style
from orch.release.errors import ReleaseError
from orch.release.model import (
    OrchestratorRun,
    PreflightFailure,
    PreflightResult,
    RepoState,
    RepoVisit,
    TagDecision,
)
from orch.release.preflight import PreflightChecker, preflight_hint
from orch.release.stabilizer import AssetStabilizer, StabilizationOutcome

__all__ = ["TRANSITIONS", "ReleaseOrchestrator", "decide_tag", "is_allowed_transition"]

TRANSITIONS: Mapping[RepoState, frozenset[RepoState]] = {
    RepoState.PENDING: frozenset({RepoState.TAGGING, RepoState.SKIP_TAG, RepoState.ABORTED}),
    RepoState.TAGGING: frozenset({RepoState.WAITING_ASSETS, RepoState.ABORTED}),
    RepoState.SKIP_TAG: frozenset({RepoState.WAITING_ASSETS}),
    RepoState.WAITING_ASSETS: frozenset({RepoState.DONE, RepoState.ABORTED}),
    RepoState.DONE: frozenset(),
    RepoState.ABORTED: frozenset(),
}

StepHandler = Callable[[OrchestratorRun, RepoVisit], RepoVisit]


def is_allowed_transition(src: RepoState, dst: RepoState) -> bool:
    return dst in TRANSITIONS[src]


def decide_tag(result: PreflightResult, *, resume: bool) -> TagDecision:
    if result.passed:
        return TagDecision.CREATE_AND_PUSH
    if result.failure is PreflightFailure.TAG_EXISTS_REMOTE and resume:
        return TagDecision.SKIP_ALREADY_TAGGED
    return TagDecision.ABORT


def _abort(visit: RepoVisit, error: ReleaseError) -> RepoVisit:
    return visit.to(RepoState.ABORTED, error=error)


class ReleaseOrchestrator:
    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        stabilizer: AssetStabilizer,
        preflight: PreflightChecker | None = None,
        poll_interval_secs: float = DEFAULT_POLL_INTERVAL_SECS,
        timeout_secs: float = DEFAULT_TIMEOUT_SECS,
        stable_polls: int = DEFAULT_STABLE_POLLS,
    ) -> None:
        self._console = console
        self._stabilizer = stabilizer
        self._preflight = preflight or PreflightChecker()
        self._poll_interval_secs = poll_interval_secs
        self._timeout_secs = timeout_secs
        self._stable_polls = stable_polls
        self._handlers: dict[RepoState, StepHandler] = {
            RepoState.PENDING: self._pending,
            RepoState.TAGGING: self._tagging,
            RepoState.SKIP_TAG: self._skip_tag,
            RepoState.WAITING_ASSETS: self._waiting_assets,
        }

    def run(self, run: OrchestratorRun) -> Result[OrchestratorRun, ReleaseError]:
        """Release every repo of ``run`` in order.

        ``run`` is updated in place; on failure it still carries the history
        up to the aborted repo, and ``run.failure`` is the returned error.
        """
        mode = " (dry run)" if run.dry_run else ""
        resume = " with --resume" if run.resume else ""
        self._console.info(f"releasing {run.version.tag}{resume}{mode}")

        while (repo := run.current_repo) is not None:
            self._console.header(f"{repo.name} ({run.index + 1}/{len(run.repos)})")

            final = self._drive(run, RepoVisit(repo=repo))
            if final.state is RepoState.ABORTED:
                run.failure = final.error or ReleaseError(
                    kind="invalid_state", message="aborted without an error", repo=repo.name
                )
                break
            run.index += 1

        self._print_summary(run)
        if run.failure is not None:
            return Err(run.failure)
        return Ok(run)

    def _drive(self, run: OrchestratorRun, visit: RepoVisit) -> RepoVisit:
        """Step one repo from PENDING until it is DONE or ABORTED.

        Every visited state is recorded on ``run``. A handler that returns a
        state outside ``TRANSITIONS`` aborts the repo with ``invalid_state``.
        """
        run.record(visit)
        while not visit.state.is_terminal:
            nxt = self._handlers[visit.state](run, visit)
            if not is_allowed_transition(visit.state, nxt.state):
                nxt = _abort(
                    visit,
                    ReleaseError(
                        kind="invalid_state",
                        message=(
                            f"illegal transition {visit.state.value} -> {nxt.state.value}"
                        ),
                        repo=visit.repo.name,
                    ),
                )
            run.record(nxt)
            visit = nxt
        return visit

    def _pending(self, run: OrchestratorRun, visit: RepoVisit) -> RepoVisit:
        repo = visit.repo
        tag = run.version.tag

        checked = self._preflight.check(repo, tag, resume=run.resume)
        if isinstance(checked, Err):
            return _abort(visit, checked.error)

        preflight = checked.value
        decision = decide_tag(preflight, resume=run.resume)
        match decision:
            case TagDecision.CREATE_AND_PUSH:
                self._console.success(f"[{repo.name}] preflight passed")
                return visit.to(RepoState.TAGGING, decision=decision)
            case TagDecision.SKIP_ALREADY_TAGGED:
                self._console.info(f"[{repo.name}] {tag} already on remote; skipping tag (resume)")
                return visit.to(RepoState.SKIP_TAG, decision=decision)
            case TagDecision.ABORT:
                failure = preflight.failure
                return visit.to(
                    RepoState.ABORTED,
                    decision=decision,
                    error=ReleaseError(
                        kind="preflight_failed",
                        message=f"preflight failed ({failure}): {preflight.detail}",
                        hint=preflight_hint(failure, tag=tag) if failure else None,
                        repo=repo.name,
                        preflight=failure,
                    ),
                )

    def _tagging(self, run: OrchestratorRun, visit: RepoVisit) -> RepoVisit:
        repo = visit.repo
        g = repo.gateway
        tag = run.version.tag

        if run.dry_run:
            self._console.info(f"[{repo.name}] would create tag {tag} at HEAD and push it")
            return visit.to(RepoState.WAITING_ASSETS)

        head = g.head_commit()
        if isinstance(head, Err):
            return _abort(
                visit,
                ReleaseError(kind="vcs_failed", message=str(head.error), repo=repo.name),
            )

        created = g.create_tag(tag, head.value)
        if isinstance(created, Err):
            return _abort(
                visit,
                ReleaseError(
                    kind="vcs_failed",
                    message=f"failed to create tag {tag}: {created.error}",
                    repo=repo.name,
                ),
            )

        pushed = g.push_tag(tag)
        if isinstance(pushed, Err):
            return _abort(
                visit,
                ReleaseError(
                    kind="vcs_failed",
                    message=f"failed to push tag {tag}: {pushed.error}",
                    hint=(
                        f"local tag {tag} was kept; push it by hand "
                        f"(git -C {repo.path} push origin {tag}) or delete it, then re-run"
                    ),
                    repo=repo.name,
                ),
            )

        self._console.success(f"[{repo.name}] tagged {head.value[:8]} as {tag} and pushed")
        return visit.to(RepoState.WAITING_ASSETS)

    def _skip_tag(self, run: OrchestratorRun, visit: RepoVisit) -> RepoVisit:
        return visit.to(RepoState.WAITING_ASSETS)

    def _waiting_assets(self, run: OrchestratorRun, visit: RepoVisit) -> RepoVisit:
        repo = visit.repo
        tag = run.version.tag
        patterns = repo.expected_assets(run.version)

        if not patterns:
            self._console.info(f"[{repo.name}] no release assets expected; not waiting")
            return visit.to(RepoState.DONE)

        if run.dry_run:
            self._console.info(
                f"[{repo.name}] would wait for release {tag} assets: {', '.join(patterns)}"
            )
            return visit.to(RepoState.DONE)

        self._console.info(f"[{repo.name}] waiting for release {tag} ({len(patterns)} assets)")
        waited = self._stabilizer.wait(
            repo.name,
            tag,
            patterns,
            poll_interval=self._poll_interval_secs,
            max_wait=self._timeout_secs,
            stable_polls=self._stable_polls,
        )
        if isinstance(waited, Err):
            return _abort(visit, waited.error)

        match waited.value:
            case StabilizationOutcome.STABLE:
                return visit.to(RepoState.DONE)
            case StabilizationOutcome.TIMED_OUT:
                return _abort(
                    visit,
                    ReleaseError(
                        kind="timed_out",
                        message=(
                            f"release {tag} assets did not settle within {self._timeout_secs}s"
                        ),
                        hint="once the release workflow finishes, re-run with --resume",
                        repo=repo.name,
                    ),
                )
            case StabilizationOutcome.RELEASE_NOT_FOUND:
                return _abort(
                    visit,
                    ReleaseError(
                        kind="release_not_found",
                        message=f"release {tag} did not appear within {self._timeout_secs}s",
                        hint="check that the release workflow ran for the pushed tag",
                        repo=repo.name,
                    ),
                )

    def _print_summary(self, run: OrchestratorRun) -> None:
        self._console.header("Summary")
        width = max((len(r.name) for r in run.repos), default=0)
        for name, state in run.final_states().items():
            style = {
                RepoState.DONE: Style.SUCCESS,
                RepoState.ABORTED: Style.ERROR,
            }.get(state, Style.DIM)
            self._console.print(f"  {name.ljust(width)}  {state.value}", style)
