from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chillfeed.api.schemas.posts import Post
from chillfeed.api.schemas.response import APIResponse
from chillfeed.services.feed_aggregator import FeedAggregator
from chillfeed.services.providers import get_feed_aggregator

router = APIRouter()


class PostCreateRequest(BaseModel):
    # 必填校验交给 FeedAggregator，缺字段时统一返回 ValidationError。
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    author: str = ""
    text: str = ""
    image_url: str | None = None


@router.post(
    "/posts",
    response_model=APIResponse[Post],
    status_code=status.HTTP_201_CREATED,
)
def create_post(
    payload: PostCreateRequest,
    aggregator: FeedAggregator = Depends(get_feed_aggregator),
) -> APIResponse[Post]:
    post = aggregator.create_post(payload.author, payload.text, payload.image_url)
    return APIResponse[Post].success(data=post, message="post created")
