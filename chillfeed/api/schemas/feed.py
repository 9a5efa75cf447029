from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from chillfeed.api.schemas.posts import Comment, Post


class FeedPost(Post):
    """Feed 视图中的帖子：附带点赞数与按时间升序排列的评论。"""

    like_count: int = 0
    comments: list[Comment] = Field(default_factory=list)
    comment_count: int = 0

    @staticmethod
    def from_post(post: Post, *, like_count: int, comments: list[Comment]) -> "FeedPost":
        return FeedPost(
            **post.model_dump(),
            like_count=like_count,
            comments=comments,
            comment_count=len(comments),
        )


class DuplicateLike(BaseModel):
    """同一用户在窗口内重复点赞时返回的标记，不写入存储。"""

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    duplicate: bool = True


class CleanupReport(BaseModel):
    deleted: int = 0
    collections: dict[str, int] = Field(default_factory=dict)
