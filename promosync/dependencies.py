"""
FastAPI dependency injection.
The store and runner are built in the app lifespan and kept on app.state.
"""

from fastapi import Request

from .config import Settings
from .processor import JobRunner
from .store import MemoryStore


def init_dependencies(app, config: Settings) -> None:
    """Build the store and job runner. Called on app startup."""
    store = MemoryStore()
    app.state.store = store
    app.state.runner = JobRunner(store, config)


def get_store(request: Request) -> MemoryStore:
    """Get the store instance."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Store not initialized")
    return store


def get_runner(request: Request) -> JobRunner:
    """Get the job runner instance."""
    runner = getattr(request.app.state, "runner", None)
    if runner is None:
        raise RuntimeError("Job runner not initialized")
    return runner
