"""Version-checked access to the repository holding decks, audio and the manifest."""

from narration_studio.shared.config import StudioConfig
from narration_studio.shared.enums import StoreBackend

from .drivers import ContentStore, GitHubContentStore, InMemoryContentStore, LocalContentStore


def build_content_store(config: StudioConfig) -> ContentStore:
    """Instantiate the store driver selected by ``config.store_backend``."""
    if config.store_backend == StoreBackend.GITHUB:
        if not config.github_configured:
            raise ValueError("Server not configured: missing GITHUB_TOKEN or GITHUB_REPO")
        return GitHubContentStore.from_config(config)
    if config.store_backend == StoreBackend.LOCAL:
        return LocalContentStore(config.local_root)
    return InMemoryContentStore()


__all__ = [
    "ContentStore",
    "GitHubContentStore",
    "InMemoryContentStore",
    "LocalContentStore",
    "build_content_store",
]
