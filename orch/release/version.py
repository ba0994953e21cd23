from __future__ import annotations

import re
from dataclasses import dataclass

from orch.core.result import Err, Ok, Result
from orch.release.errors import ReleaseError

# SemVer 2.0.0 grammar (https://semver.org), without the leading "v".
_NUM = r"0|[1-9][0-9]*"
_PRE_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[a-zA-Z-][0-9a-zA-Z-]*)"
_BUILD_IDENT = r"[0-9a-zA-Z-]+"
_SEMVER_RE = re.compile(
    rf"^(?P<major>{_NUM})\.(?P<minor>{_NUM})\.(?P<patch>{_NUM})"
    rf"(?:-(?P<pre>{_PRE_IDENT}(?:\.{_PRE_IDENT})*))?"
    rf"(?:\+(?P<build>{_BUILD_IDENT}(?:\.{_BUILD_IDENT})*))?$"
)

_EXAMPLES = "'1.2.3', 'v1.2.3', '1.2.3-rc.1' or 'v1.2.3-rc.1'"


@dataclass(frozen=True, slots=True)
class VersionSpec:
    raw: str
    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    @property
    def version(self) -> str:
        """Canonical SemVer string without the ``v`` prefix."""
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += f"-{self.prerelease}"
        if self.build:
            out += f"+{self.build}"
        return out

    @property
    def tag(self) -> str:
        return f"v{self.version}"

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None


def parse_version(text: str) -> Result[VersionSpec, ReleaseError]:
    raw = text.strip()
    without_v = raw[1:] if raw.startswith("v") else raw

    if raw.startswith("v") and without_v.startswith("v"):
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid version '{text}': remove extra leading 'v'",
                hint="Example: v1.2.3",
            )
        )

    m = _SEMVER_RE.match(without_v)
    if m is None:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid version '{text}'",
                hint=f"Expected SemVer like {_EXAMPLES}",
            )
        )

    return Ok(
        VersionSpec(
            raw=text,
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            patch=int(m.group("patch")),
            prerelease=m.group("pre"),
            build=m.group("build"),
        )
    )
