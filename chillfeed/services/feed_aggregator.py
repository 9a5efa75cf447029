from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime
from threading import Lock
from typing import Callable

from chillfeed.api.schemas.feed import DuplicateLike, FeedPost
from chillfeed.api.schemas.posts import Comment, Like, Post
from chillfeed.domain.errors import ValidationError
from chillfeed.services.collection import FeedCollections
from chillfeed.services.time_window import is_visible, utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# 点赞去重锁分片数：按 (post_id, user) 哈希取锁，内存占用固定。
_LIKE_LOCK_STRIPES = 64


def _require(**fields: str | None) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValidationError(missing)


class FeedAggregator:
    """创建帖子/评论/点赞，并聚合出 Feed 视图。

    约束：
    - 不持有任何跨调用缓存，每次读取都回到存储；
    - 单次调用内 `now` 只取一次，可见性判断前后一致；
    - 评论/点赞对 post_id 只是弱引用，不校验帖子是否存在。
    """

    def __init__(self, collections: FeedCollections, *, clock: Clock = utc_now) -> None:
        self._posts = collections.posts
        self._comments = collections.comments
        self._likes = collections.likes
        self._clock = clock
        self._like_locks = [Lock() for _ in range(_LIKE_LOCK_STRIPES)]

    def create_post(self, author: str, text: str, image_url: str | None = None) -> Post:
        _require(author=author, text=text)
        post = self._posts.create(
            Post.new(author=author, text=text, image_url=image_url, now=self._clock())
        )
        logger.info("Created post %s by %r", post.id, post.author)
        return post

    def create_comment(self, post_id: str, user: str, text: str) -> Comment:
        _require(postId=post_id, user=user, text=text)
        comment = self._comments.create(
            Comment.new(post_id=post_id, user=user, text=text, now=self._clock())
        )
        logger.info("Created comment %s on post %s", comment.id, post_id)
        return comment

    def _like_lock(self, post_id: str, user: str) -> Lock:
        return self._like_locks[hash((post_id, user)) % _LIKE_LOCK_STRIPES]

    def create_like(self, post_id: str, user: str) -> Like | DuplicateLike:
        """点赞；窗口内同一用户对同一帖子重复点赞时返回 DuplicateLike，不写入。

        进程内锁只缩小竞争窗口：多进程/多实例并发时仍可能写出两条点赞。
        """

        _require(postId=post_id, user=user)
        with self._like_lock(post_id, user):
            now = self._clock()
            existing = self._likes.list_where(
                lambda like: like.post_id == post_id and is_visible(like.created_at, now)
            )
            if any(like.user == user for like in existing):
                logger.info("Duplicate like on post %s by %r ignored", post_id, user)
                return DuplicateLike()

            like = self._likes.create(Like.new(post_id=post_id, user=user, now=now))
        logger.info("Created like %s on post %s", like.id, post_id)
        return like

    def get_feed(self) -> list[FeedPost]:
        """可见帖子按时间倒序；每条附带可见点赞数与升序评论。"""

        now = self._clock()
        posts = [post for post in self._posts.list_all() if is_visible(post.created_at, now)]
        if not posts:
            return []
        posts.sort(key=lambda post: post.created_at, reverse=True)

        # 点赞与评论各扫描一次后按 post_id 分组，结果与逐帖查询一致。
        post_ids = {post.id for post in posts}
        like_counts = Counter(
            like.post_id
            for like in self._likes.list_all()
            if like.post_id in post_ids and is_visible(like.created_at, now)
        )
        comments_by_post: dict[str, list[Comment]] = defaultdict(list)
        for comment in self._comments.list_all():
            if comment.post_id in post_ids and is_visible(comment.created_at, now):
                comments_by_post[comment.post_id].append(comment)

        feed: list[FeedPost] = []
        for post in posts:
            comments = sorted(comments_by_post.get(post.id, []), key=lambda item: item.created_at)
            feed.append(
                FeedPost.from_post(post, like_count=like_counts.get(post.id, 0), comments=comments)
            )
        return feed
