from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chillfeed.api.schemas.feed import DuplicateLike
from chillfeed.api.schemas.posts import Like
from chillfeed.api.schemas.response import APIResponse
from chillfeed.services.feed_aggregator import FeedAggregator
from chillfeed.services.providers import get_feed_aggregator

router = APIRouter()


class LikeCreateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    post_id: str = ""
    user: str = ""


@router.post(
    "/likes",
    response_model=APIResponse[Like | DuplicateLike],
    status_code=status.HTTP_201_CREATED,
)
def create_like(
    payload: LikeCreateRequest,
    response: Response,
    aggregator: FeedAggregator = Depends(get_feed_aggregator),
) -> APIResponse[Like | DuplicateLike]:
    result = aggregator.create_like(payload.post_id, payload.user)

    # 幂等：重复点赞返回 200 与去重标记。
    if isinstance(result, DuplicateLike):
        response.status_code = status.HTTP_200_OK
        return APIResponse[Like | DuplicateLike].success(data=result, message="already liked")

    response.status_code = status.HTTP_201_CREATED
    return APIResponse[Like | DuplicateLike].success(data=result, message="like created")
