"""Read access to hosted releases.

``ReleaseQueryService`` answers one question: what does the release for
``repo``/``tag`` currently contain? ``GitHubReleaseService`` asks the GitHub
REST API; ``InMemoryReleases`` replays scripted observations for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from orch.core.result import Err, Ok, Result
from orch.core.structured import as_obj_list, as_str_dict, get_int, get_str
from orch.tools.http import HttpClient, HttpError

__all__ = [
    "GitHubReleaseService",
    "InMemoryReleases",
    "ReleaseAsset",
    "ReleaseInfo",
    "ReleaseQueryError",
    "ReleaseQueryService",
    "parse_release",
]

GITHUB_API = "https://api.github.com"

# GitHub reports "open" while an upload is still in progress.
ASSET_UPLOADED = "uploaded"


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    name: str
    size: int
    state: str = ASSET_UPLOADED
    digest: str | None = None

    @property
    def is_ready(self) -> bool:
        return self.state == ASSET_UPLOADED and self.size > 0


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    tag: str
    assets: tuple[ReleaseAsset, ...] = ()

    def ready_asset_names(self) -> frozenset[str]:
        return frozenset(a.name for a in self.assets if a.is_ready)


@dataclass(frozen=True, slots=True)
class ReleaseQueryError:
    """Failure to read a release.

    ``transient`` errors (network, rate limiting, 5xx) are safe to poll
    through; anything else needs the operator.
    """

    message: str
    transient: bool = False
    hint: str | None = None


@runtime_checkable
class ReleaseQueryService(Protocol):
    def get_release(self, repo: str, tag: str) -> Result[ReleaseInfo | None, ReleaseQueryError]:
        """Return the release for ``tag``, or None if it is not published yet."""
        ...


def parse_release(payload: object, *, tag: str) -> ReleaseInfo | None:
    """Build a ReleaseInfo from a GitHub release JSON object.

    Returns None when the payload is not a release object. Asset entries
    without a name are skipped.
    """
    data = as_str_dict(payload)
    if data is None:
        return None

    raw_assets = as_obj_list(data.get("assets", []))
    if raw_assets is None:
        return None

    assets: list[ReleaseAsset] = []
    for item in raw_assets:
        d = as_str_dict(item)
        if d is None:
            continue
        name = get_str(d, "name")
        if name is None:
            continue
        assets.append(
            ReleaseAsset(
                name=name,
                size=get_int(d, "size") or 0,
                state=get_str(d, "state") or ASSET_UPLOADED,
                digest=get_str(d, "digest"),
            )
        )

    assets.sort(key=lambda a: a.name)
    return ReleaseInfo(tag=get_str(data, "tag_name") or tag, assets=tuple(assets))


class GitHubReleaseService:
    """ReleaseQueryService backed by ``GET /repos/{owner}/{repo}/releases/tags/{tag}``."""

    def __init__(self, *, owner: str, http: HttpClient, api_url: str = GITHUB_API) -> None:
        self.owner = owner
        self._http = http
        self._api_url = api_url.rstrip("/")

    def release_url(self, repo: str, tag: str) -> str:
        return f"{self._api_url}/repos/{self.owner}/{repo}/releases/tags/{tag}"

    def get_release(self, repo: str, tag: str) -> Result[ReleaseInfo | None, ReleaseQueryError]:
        url = self.release_url(repo, tag)
        result = self._http.get_json(url)
        if isinstance(result, Err):
            return self._map_error(repo, result.error)

        release = parse_release(result.value, tag=tag)
        if release is None:
            return Err(ReleaseQueryError(message=f"unexpected release payload: {url}"))
        return Ok(release)

    def _map_error(
        self, repo: str, error: HttpError
    ) -> Result[ReleaseInfo | None, ReleaseQueryError]:
        if error.is_not_found:
            return Ok(None)
        if error.is_auth:
            return Err(
                ReleaseQueryError(
                    message=f"GitHub API auth failed (status {error.status})",
                    hint=f"Set GITHUB_TOKEN/GH_TOKEN with read access to {self.owner}/{repo}.",
                )
            )
        return Err(ReleaseQueryError(message=str(error), transient=error.is_transient))


Observation = ReleaseInfo | ReleaseQueryError | None


def _empty_script() -> dict[tuple[str, str], list[Observation]]:
    return {}


def _empty_calls() -> list[tuple[str, str]]:
    return []


@dataclass
class InMemoryReleases:
    """Scripted ReleaseQueryService.

    Each (repo, tag) has a queue of observations returned one per call; the
    last one repeats forever. Unscripted releases are "not found".
    """

    script: dict[tuple[str, str], list[Observation]] = field(default_factory=_empty_script)
    calls: list[tuple[str, str]] = field(default_factory=_empty_calls)

    def add(self, repo: str, tag: str, *observations: Observation) -> None:
        self.script.setdefault((repo, tag), []).extend(observations)

    def publish(self, repo: str, tag: str, *asset_names: str, size: int = 1024) -> None:
        """Script a complete, already settled release."""
        assets = tuple(ReleaseAsset(name=n, size=size) for n in asset_names)
        self.script[(repo, tag)] = [ReleaseInfo(tag=tag, assets=assets)]

    def polls_for(self, repo: str) -> int:
        return sum(1 for r, _ in self.calls if r == repo)

    def get_release(self, repo: str, tag: str) -> Result[ReleaseInfo | None, ReleaseQueryError]:
        self.calls.append((repo, tag))
        queue = self.script.get((repo, tag))
        if not queue:
            return Ok(None)

        observed = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(observed, ReleaseQueryError):
            return Err(observed)
        return Ok(observed)
