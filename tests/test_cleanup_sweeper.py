import asyncio
import threading
from datetime import timedelta

import pytest

from chillfeed.api.schemas.posts import Comment, Like, Post
from chillfeed.domain.errors import CorruptDocument
from chillfeed.services.cleanup_sweeper import CleanupSweeper, run_periodic_sweep
from chillfeed.services.collection import build_collections
from chillfeed.services.contents_backend import InMemoryContentsBackend, StoredFile
from chillfeed.services.document_store import DocumentStore


def test_sweep_removes_only_expired_documents(sweeper, collections, clock):
    old = clock.now - timedelta(hours=25)
    old_post = collections.posts.create(Post.new(author="alice", text="old", now=old))
    fresh_post = collections.posts.create(Post.new(author="alice", text="new", now=clock.now))
    collections.comments.create(Comment.new(post_id=old_post.id, user="bob", text="x", now=old))
    collections.likes.create(Like.new(post_id=old_post.id, user="bob", now=old))
    fresh_like = collections.likes.create(Like.new(post_id=fresh_post.id, user="bob", now=clock.now))

    report = sweeper.sweep_report()

    assert report.deleted == 3
    assert report.collections == {"posts": 1, "comments": 1, "likes": 1}
    assert collections.posts.list_all() == [fresh_post]
    assert collections.comments.list_all() == []
    assert collections.likes.list_all() == [fresh_like]


def test_sweep_is_idempotent(sweeper, collections, clock):
    collections.posts.create(
        Post.new(author="alice", text="old", now=clock.now - timedelta(hours=25))
    )

    assert sweeper.sweep() == 1
    assert sweeper.sweep() == 0


def test_sweep_commit_messages_name_the_file(sweeper, collections, backend, clock):
    post = collections.posts.create(
        Post.new(author="alice", text="old", now=clock.now - timedelta(days=2))
    )

    sweeper.sweep()

    assert backend.messages[-1] == f"cleanup old posts {post.id}.json"


def test_sweep_deletes_by_listed_file_name(sweeper, collections, store, backend, clock):
    post = Post.new(author="alice", text="old", now=clock.now - timedelta(hours=25))
    store.put("data/posts/renamed.json", post.model_dump_json(by_alias=True), "seed")

    assert sweeper.sweep() == 1
    assert backend.messages[-1] == "cleanup old posts renamed.json"
    assert collections.posts.list_all() == []
    assert sweeper.sweep() == 0


def test_sweep_counts_only_documents_it_actually_removed(clock):
    class ConcurrentSweepBackend(InMemoryContentsBackend):
        """列目录之后、删除之前，另一个清理进程先删掉了文档。"""

        def __init__(self) -> None:
            super().__init__()
            self.reads: dict[str, int] = {}

        def get_file(self, file_path: str) -> StoredFile | None:
            current = super().get_file(file_path)
            self.reads[file_path] = self.reads.get(file_path, 0) + 1
            # 第一次读取用于列表，第二次读取发生在删除前。
            if current is not None and self.reads[file_path] == 2:
                super().delete_file(file_path, current.version, "other sweeper")
            return current

    backend = ConcurrentSweepBackend()
    collections = build_collections(DocumentStore(backend), base_path="data")
    collections.posts.create(
        Post.new(author="alice", text="old", now=clock.now - timedelta(hours=25))
    )
    backend.reads.clear()

    report = CleanupSweeper(collections, clock=clock).sweep_report()

    assert report.deleted == 0
    assert report.collections["posts"] == 0
    assert backend.messages[-1] == "other sweeper"
    assert collections.posts.list_all() == []


def test_post_exactly_24_hours_old_is_swept(sweeper, collections, clock):
    collections.posts.create(
        Post.new(author="alice", text="edge", now=clock.now - timedelta(hours=24))
    )
    assert sweeper.sweep() == 1


def test_expiry_scenario(aggregator, sweeper, collections, clock):
    old = collections.posts.create(
        Post.new(author="alice", text="old", now=clock.now - timedelta(hours=25))
    )
    assert aggregator.get_feed() == []
    assert collections.posts.list_all() == [old]

    sweeper.sweep()

    assert collections.posts.list_all() == []


def test_sweep_aborts_on_corrupt_document(sweeper, store):
    store.put("data/posts/broken.json", b"garbage", "corrupt")

    with pytest.raises(CorruptDocument):
        sweeper.sweep()


def test_periodic_sweep_keeps_running_after_failure():
    calls = []

    class FlakySweeper:
        def sweep(self) -> int:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("backend down")
            return 0

    sweeper = FlakySweeper()

    async def run() -> None:
        task = asyncio.create_task(run_periodic_sweep(lambda: sweeper, 0.01))
        while len(calls) < 2:
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(asyncio.wait_for(run(), timeout=5))
    assert len(calls) >= 2


def test_periodic_sweep_builds_and_runs_sweeper_off_the_event_loop():
    threads = []
    done = threading.Event()

    class RecordingSweeper:
        def sweep(self) -> int:
            threads.append(threading.current_thread())
            done.set()
            return 0

    def get_sweeper() -> RecordingSweeper:
        # 首次获取会创建后端实例，同样不能阻塞事件循环。
        threads.append(threading.current_thread())
        return RecordingSweeper()

    async def run() -> None:
        task = asyncio.create_task(run_periodic_sweep(get_sweeper, 0.01))
        while not done.is_set():
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(asyncio.wait_for(run(), timeout=5))
    assert len(threads) >= 2
    assert all(thread is not threading.main_thread() for thread in threads)
