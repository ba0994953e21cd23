"""release-iso command - tag every repo and wait for its release assets."""

from __future__ import annotations

from pathlib import Path

import typer

from orch.cli.commands._helpers import exit_on_release_error
from orch.cli.context import build_context
from orch.core.config import (
    CONFIG_FILE_NAME,
    DEFAULT_REPOS,
    Config,
    ConfigError,
    load_config,
    load_config_if_present,
)
from orch.core.errors import ErrorCode
from orch.core.result import Err, Ok, Result
from orch.release.errors import ReleaseError
from orch.release.model import OrchestratorRun
from orch.release.orchestrator import ReleaseOrchestrator
from orch.release.releases import GitHubReleaseService
from orch.release.repos import build_descriptors, default_repos_root, resolve_token
from orch.release.stabilizer import AssetStabilizer
from orch.release.version import parse_version
from orch.tools.http import RealHttpClient


def _config_error(error: ConfigError) -> ReleaseError:
    return ReleaseError(
        kind="invalid_config",
        message=error.message,
        hint=f"fix or remove {error.path}" if error.path else None,
    )


def _resolve_config(
    *, config_path: Path | None, repos_root: Path | None, cwd: Path
) -> Result[tuple[Config, Path], ReleaseError]:
    """Load the config and locate the repos root.

    An explicit ``--config`` decides which repo directories discovery looks
    for; otherwise ``orchestrator.toml`` is looked up in the discovered root.
    """
    config: Config | None = None
    if config_path is not None:
        loaded = load_config(config_path.expanduser())
        if isinstance(loaded, Err):
            return Err(_config_error(loaded.error))
        config = loaded.value

    if repos_root is not None:
        root = repos_root.expanduser().resolve()
    else:
        names = config.repo_names if config else tuple(r.name for r in DEFAULT_REPOS)
        found = default_repos_root(cwd, names)
        if isinstance(found, Err):
            return found
        root = found.value

    if config is None:
        loaded = load_config_if_present(root / CONFIG_FILE_NAME)
        if isinstance(loaded, Err):
            return Err(_config_error(loaded.error))
        config = loaded.value

    return Ok((config, root))


def release_iso(
    version: str = typer.Option(..., "--version", help="Release version, e.g. 1.2.3 or v1.2.3"),
    resume: bool = typer.Option(
        False,
        "--resume",
        help="Skip repos whose tag is already on origin, but still wait for their assets",
    ),
    repos_root: Path | None = typer.Option(
        None,
        "--repos-root",
        help="Directory containing the repo clones (default: current dir or its parent)",
    ),
    owner: str | None = typer.Option(None, "--owner", help="GitHub owner of the repos"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying"),
    poll_interval_secs: int | None = typer.Option(
        None, "--poll-interval-secs", min=1, help="Seconds between release polls"
    ),
    timeout_secs: int | None = typer.Option(
        None, "--timeout-secs", min=1, help="Max seconds to wait for each repo's assets"
    ),
    stable_polls: int | None = typer.Option(
        None,
        "--stable-polls",
        min=1,
        help="Identical consecutive observations required before assets count as published",
    ),
    config_path: Path | None = typer.Option(None, "--config", help="Path to orchestrator.toml"),
) -> None:
    """Tag every repo in release order and wait for each release's assets."""
    ctx = build_context()
    console = ctx.console

    parsed = parse_version(version)
    if isinstance(parsed, Err):
        exit_on_release_error(parsed.error, console)
    requested = parsed.value

    resolved = _resolve_config(config_path=config_path, repos_root=repos_root, cwd=ctx.cwd)
    if isinstance(resolved, Err):
        exit_on_release_error(resolved.error, console)
    config, root = resolved.value

    gh_owner = owner or config.owner

    token = resolve_token(ctx.env)
    if token is None and not dry_run:
        exit_on_release_error(
            ReleaseError(
                kind="missing_token",
                message="missing GITHUB_TOKEN (or GH_TOKEN)",
                hint=f"export a token with read access to {gh_owner}'s releases",
            ),
            console,
        )

    descriptors = build_descriptors(root, config.repos, owner=gh_owner)
    if isinstance(descriptors, Err):
        exit_on_release_error(descriptors.error, console)

    releases = GitHubReleaseService(owner=gh_owner, http=RealHttpClient(token=token))
    orchestrator = ReleaseOrchestrator(
        console=console,
        stabilizer=AssetStabilizer(releases, console),
        poll_interval_secs=poll_interval_secs or config.poll_interval_secs,
        timeout_secs=timeout_secs or config.timeout_secs,
        stable_polls=stable_polls or config.stable_polls,
    )
    run = OrchestratorRun(
        version=requested,
        repos=descriptors.value,
        resume=resume,
        dry_run=dry_run,
    )

    try:
        result = orchestrator.run(run)
    except KeyboardInterrupt:
        console.error("interrupted; tags already pushed were kept")
        console.hint("re-run with --resume to continue")
        raise typer.Exit(code=int(ErrorCode.INTERRUPTED))

    if isinstance(result, Err):
        exit_on_release_error(result.error, console)

    if dry_run:
        console.success(f"dry run for {requested.tag} complete; nothing was changed")
    else:
        console.success(f"released {requested.tag} across {len(run.repos)} repos")
