from .app import create_app
from .store import ArtifactRecord, ArtifactStore

__all__ = [
    "create_app",
    "ArtifactRecord",
    "ArtifactStore",
]
