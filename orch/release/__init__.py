"""Multi-repo release orchestration.

This package tags an ordered set of local clones and waits for each repo's
GitHub Release assets to settle before moving to the next:
- version: version input parsing and tag normalization
- vcs / releases: gateways to git and the release API (real and in-memory)
- preflight: per-repo safety checks
- stabilizer: asset polling
- orchestrator: the per-repo state machine
- repos: repos-root discovery and descriptor setup
"""

from __future__ import annotations
