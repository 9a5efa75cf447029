from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic import field_serializer, field_validator
from pydantic.alias_generators import to_camel

from chillfeed.services.time_window import format_timestamp, to_utc, utc_now


class Entity(BaseModel):
    """所有持久化实体的公共字段。

    约束：
    - 创建后不可修改（frozen）；
    - 存储格式为扁平 JSON，键名使用 camelCase（`postId`、`createdAt`）；
    - created_at 统一为 UTC、毫秒精度。
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: str = Field(min_length=1)
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime) -> datetime:
        return to_utc(value)

    @field_serializer("created_at", when_used="json")
    def _serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)

    @staticmethod
    def new_id() -> str:
        return str(uuid4())


class Post(Entity):
    author: str
    text: str
    image_url: str | None = None

    @staticmethod
    def new(
        *,
        author: str,
        text: str,
        image_url: str | None = None,
        now: datetime | None = None,
    ) -> "Post":
        return Post(
            id=Entity.new_id(),
            author=author,
            text=text,
            image_url=image_url or None,
            created_at=now if now is not None else utc_now(),
        )


class Comment(Entity):
    post_id: str
    user: str
    text: str

    @staticmethod
    def new(
        *,
        post_id: str,
        user: str,
        text: str,
        now: datetime | None = None,
    ) -> "Comment":
        return Comment(
            id=Entity.new_id(),
            post_id=post_id,
            user=user,
            text=text,
            created_at=now if now is not None else utc_now(),
        )


class Like(Entity):
    post_id: str
    user: str

    @staticmethod
    def new(*, post_id: str, user: str, now: datetime | None = None) -> "Like":
        return Like(
            id=Entity.new_id(),
            post_id=post_id,
            user=user,
            created_at=now if now is not None else utc_now(),
        )
