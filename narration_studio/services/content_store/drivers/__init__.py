"""Content store driver implementations"""

from .base import ContentStore
from .github import GitHubContentStore
from .local import LocalContentStore
from .memory import InMemoryContentStore

__all__ = ["ContentStore", "GitHubContentStore", "InMemoryContentStore", "LocalContentStore"]
