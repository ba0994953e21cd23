"""Git operations module.

Usage:
    from orch.git import Repository

    repo = Repository(Path("/src/installer"))
    if repo.tag_exists_remote("v1.2.3").unwrap_or(False):
        print("already released")
"""

from orch.git.repository import GitError, Repository

__all__ = [
    "GitError",
    "Repository",
]
