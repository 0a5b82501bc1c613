"""
Dependency injection for the API service.
Provides the event store, the results feed and settings to route handlers.
"""
from __future__ import annotations

from shared.config import Settings, get_settings
from shared.models.domain import TrackedTeam

from ingest.providers.base import BaseFeedProvider
from sync.orchestrator import team_from_settings
from sync.store import EventStore

# Module-level singletons, initialized at startup
_store: EventStore | None = None
_feed: BaseFeedProvider | None = None


def init_dependencies(store: EventStore, feed: BaseFeedProvider) -> None:
    """Initialize module-level singletons. Called once at startup."""
    global _store, _feed
    _store = store
    _feed = feed


def get_store() -> EventStore:
    """FastAPI dependency: returns the shared EventStore."""
    if _store is None:
        raise RuntimeError("EventStore not initialized, call init_dependencies first")
    return _store


def get_feed() -> BaseFeedProvider:
    """FastAPI dependency: returns the shared results feed."""
    if _feed is None:
        raise RuntimeError("Feed provider not initialized, call init_dependencies first")
    return _feed


def get_app_settings() -> Settings:
    return get_settings()


def get_team() -> TrackedTeam:
    return team_from_settings(get_settings())
