"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from orch.core.errors import ErrorCode
from orch.output.console import ConsoleProtocol
from orch.release.errors import ReleaseError, ReleaseErrorKind

_EXIT_CODES: dict[ReleaseErrorKind, ErrorCode] = {
    "invalid_version": ErrorCode.USER_ERROR,
    "invalid_config": ErrorCode.USER_ERROR,
    "missing_token": ErrorCode.ENV_ERROR,
    "repo_missing": ErrorCode.ENV_ERROR,
    "origin_mismatch": ErrorCode.ENV_ERROR,
    "invalid_state": ErrorCode.ENV_ERROR,
    "preflight_failed": ErrorCode.PREFLIGHT_ERROR,
    "vcs_failed": ErrorCode.NETWORK_ERROR,
    "release_query_failed": ErrorCode.NETWORK_ERROR,
    "release_not_found": ErrorCode.NETWORK_ERROR,
    "timed_out": ErrorCode.NETWORK_ERROR,
}


def exit_code_for(error: ReleaseError) -> ErrorCode:
    return _EXIT_CODES[error.kind]


def exit_on_release_error(error: ReleaseError, console: ConsoleProtocol) -> NoReturn:
    """Report ``error`` (repo, message, hint) and exit with its code."""
    prefix = f"[{error.repo}] " if error.repo else ""
    console.error(f"{prefix}{error.message}")
    if error.hint:
        console.hint(error.hint)
    raise typer.Exit(code=int(exit_code_for(error)))
