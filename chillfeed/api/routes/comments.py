from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chillfeed.api.schemas.posts import Comment
from chillfeed.api.schemas.response import APIResponse
from chillfeed.services.feed_aggregator import FeedAggregator
from chillfeed.services.providers import get_feed_aggregator

router = APIRouter()


class CommentCreateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    post_id: str = ""
    user: str = ""
    text: str = ""


@router.post(
    "/comments",
    response_model=APIResponse[Comment],
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    payload: CommentCreateRequest,
    aggregator: FeedAggregator = Depends(get_feed_aggregator),
) -> APIResponse[Comment]:
    comment = aggregator.create_comment(payload.post_id, payload.user, payload.text)
    return APIResponse[Comment].success(data=comment, message="comment created")
