from __future__ import annotations

from orch.core.result import Err, Ok
from orch.release.releases import (
    GitHubReleaseService,
    InMemoryReleases,
    ReleaseAsset,
    ReleaseInfo,
    ReleaseQueryError,
    ReleaseQueryService,
    parse_release,
)
from orch.tools.http import HttpError, MockHttpClient

URL = "https://api.github.com/repos/Truthdb/truthdb/releases/tags/v1.0.0"


def _payload(*assets: dict[str, object]) -> dict[str, object]:
    return {"tag_name": "v1.0.0", "assets": list(assets)}


def test_parse_release_sorts_assets_and_reads_state() -> None:
    release = parse_release(
        _payload(
            {"name": "b.sha256", "size": 64, "state": "uploaded"},
            {"name": "a.tar.gz", "size": 0, "state": "open", "digest": "sha256:abc"},
        ),
        tag="v1.0.0",
    )

    assert release == ReleaseInfo(
        tag="v1.0.0",
        assets=(
            ReleaseAsset(name="a.tar.gz", size=0, state="open", digest="sha256:abc"),
            ReleaseAsset(name="b.sha256", size=64),
        ),
    )
    assert release.ready_asset_names() == frozenset({"b.sha256"})


def test_parse_release_rejects_non_object() -> None:
    assert parse_release(["not", "a", "release"], tag="v1.0.0") is None
    assert parse_release({"assets": "nope"}, tag="v1.0.0") is None


def test_parse_release_skips_nameless_assets() -> None:
    release = parse_release(_payload({"size": 3}, {"name": "x", "size": 3}), tag="v1.0.0")

    assert release is not None
    assert [a.name for a in release.assets] == ["x"]


def test_github_service_builds_release_url() -> None:
    service = GitHubReleaseService(owner="Truthdb", http=MockHttpClient())

    assert service.release_url("truthdb", "v1.0.0") == URL


def test_github_service_missing_release_is_none() -> None:
    http = MockHttpClient()
    service = GitHubReleaseService(owner="Truthdb", http=http)

    assert service.get_release("truthdb", "v1.0.0") == Ok(None)
    assert http.calls == [URL]


def test_github_service_returns_release() -> None:
    http = MockHttpClient()
    http.set_json(URL, _payload({"name": "truthdb.tar.gz", "size": 10}))
    service = GitHubReleaseService(owner="Truthdb", http=http)

    result = service.get_release("truthdb", "v1.0.0")

    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value.ready_asset_names() == frozenset({"truthdb.tar.gz"})


def test_github_service_auth_error_is_fatal_with_hint() -> None:
    http = MockHttpClient()
    http.set_json(URL, HttpError(url=URL, status=401, message="Unauthorized"))

    result = GitHubReleaseService(owner="Truthdb", http=http).get_release("truthdb", "v1.0.0")

    assert isinstance(result, Err)
    assert not result.error.transient
    assert result.error.hint is not None
    assert "Truthdb/truthdb" in result.error.hint


def test_github_service_server_error_is_transient() -> None:
    http = MockHttpClient()
    http.set_json(URL, HttpError(url=URL, status=503, message="Service Unavailable"))

    result = GitHubReleaseService(owner="Truthdb", http=http).get_release("truthdb", "v1.0.0")

    assert isinstance(result, Err)
    assert result.error.transient


def test_github_service_malformed_payload() -> None:
    http = MockHttpClient()
    http.set_json(URL, "garbage")

    result = GitHubReleaseService(owner="Truthdb", http=http).get_release("truthdb", "v1.0.0")

    assert isinstance(result, Err)
    assert "unexpected release payload" in result.error.message


def test_in_memory_releases_replays_then_repeats() -> None:
    releases = InMemoryReleases()
    first = ReleaseInfo(tag="v1.0.0", assets=(ReleaseAsset("a", 1),))
    releases.add("kernel", "v1.0.0", None, ReleaseQueryError("boom", transient=True), first)

    assert isinstance(releases, ReleaseQueryService)
    assert releases.get_release("kernel", "v1.0.0") == Ok(None)
    assert isinstance(releases.get_release("kernel", "v1.0.0"), Err)
    assert releases.get_release("kernel", "v1.0.0") == Ok(first)
    assert releases.get_release("kernel", "v1.0.0") == Ok(first)
    assert releases.polls_for("kernel") == 4


def test_in_memory_releases_unscripted_is_not_found() -> None:
    releases = InMemoryReleases()

    assert releases.get_release("kernel", "v9.9.9") == Ok(None)
