from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from orch.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    cwd: Path
    env: Mapping[str, str]
    console: ConsoleProtocol


def build_context() -> CLIContext:
    return CLIContext(
        cwd=Path.cwd(),
        env=dict(os.environ),
        console=RichConsole(),
    )
