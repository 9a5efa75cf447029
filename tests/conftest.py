from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chillfeed.services.cleanup_sweeper import CleanupSweeper
from chillfeed.services.collection import FeedCollections, build_collections
from chillfeed.services.contents_backend import InMemoryContentsBackend
from chillfeed.services.document_store import DocumentStore
from chillfeed.services.feed_aggregator import FeedAggregator


class FakeClock:
    """可手动推进的时钟。"""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def backend() -> InMemoryContentsBackend:
    return InMemoryContentsBackend()


@pytest.fixture
def store(backend: InMemoryContentsBackend) -> DocumentStore:
    return DocumentStore(backend)


@pytest.fixture
def collections(store: DocumentStore) -> FeedCollections:
    return build_collections(store, base_path="data")


@pytest.fixture
def aggregator(collections: FeedCollections, clock: FakeClock) -> FeedAggregator:
    return FeedAggregator(collections, clock=clock)


@pytest.fixture
def sweeper(collections: FeedCollections, clock: FakeClock) -> CleanupSweeper:
    return CleanupSweeper(collections, clock=clock)
