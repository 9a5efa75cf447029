from __future__ import annotations

import logging
from threading import Lock

from chillfeed.services.cleanup_sweeper import CleanupSweeper
from chillfeed.services.collection import FeedCollections, build_collections
from chillfeed.services.contents_backend import ContentsBackend, InMemoryContentsBackend
from chillfeed.services.document_store import DocumentStore
from chillfeed.services.feed_aggregator import FeedAggregator
from chillfeed.services.github_contents import GitHubContentsBackend
from chillfeed.settings import BackendSettings, backend_kind, base_path

logger = logging.getLogger(__name__)

# 进程内复用同一组服务实例（懒加载 + 线程安全），请求之间不共享任何数据缓存。
_PROVIDERS_LOCK = Lock()
_BACKEND: ContentsBackend | None = None
_COLLECTIONS: FeedCollections | None = None
_AGGREGATOR: FeedAggregator | None = None
_SWEEPER: CleanupSweeper | None = None


def build_backend() -> ContentsBackend:
    kind = backend_kind()
    if kind == "memory":
        logger.warning("Using in-memory backend: content is lost on restart")
        return InMemoryContentsBackend()
    if kind != "github":
        raise RuntimeError(f"Unsupported CHILLFEED_BACKEND: {kind!r}")
    return GitHubContentsBackend(BackendSettings.from_env())


def get_collections() -> FeedCollections:
    global _BACKEND, _COLLECTIONS
    if _COLLECTIONS is not None:
        return _COLLECTIONS

    with _PROVIDERS_LOCK:
        if _COLLECTIONS is None:
            _BACKEND = build_backend()
            _COLLECTIONS = build_collections(DocumentStore(_BACKEND), base_path=base_path())
    return _COLLECTIONS


def get_feed_aggregator() -> FeedAggregator:
    global _AGGREGATOR
    if _AGGREGATOR is None:
        collections = get_collections()
        with _PROVIDERS_LOCK:
            if _AGGREGATOR is None:
                _AGGREGATOR = FeedAggregator(collections)
    return _AGGREGATOR


def get_cleanup_sweeper() -> CleanupSweeper:
    global _SWEEPER
    if _SWEEPER is None:
        collections = get_collections()
        with _PROVIDERS_LOCK:
            if _SWEEPER is None:
                _SWEEPER = CleanupSweeper(collections)
    return _SWEEPER


def close_providers() -> None:
    """关闭后端连接并丢弃已创建的服务实例；应用退出和测试都会调用。"""

    global _BACKEND, _COLLECTIONS, _AGGREGATOR, _SWEEPER
    with _PROVIDERS_LOCK:
        backend = _BACKEND
        _BACKEND = None
        _COLLECTIONS = None
        _AGGREGATOR = None
        _SWEEPER = None

    close = getattr(backend, "close", None)
    if close is not None:
        logger.debug("Closing %s", type(backend).__name__)
        close()

