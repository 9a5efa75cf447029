from __future__ import annotations

from fastapi import APIRouter, Depends

from chillfeed.api.schemas.feed import FeedPost
from chillfeed.api.schemas.response import APIResponse
from chillfeed.services.feed_aggregator import FeedAggregator
from chillfeed.services.providers import get_feed_aggregator

router = APIRouter()


@router.get("/feed", response_model=APIResponse[list[FeedPost]])
def get_feed(
    aggregator: FeedAggregator = Depends(get_feed_aggregator),
) -> APIResponse[list[FeedPost]]:
    """最近 24 小时的帖子（新的在前），附带点赞数与评论。"""

    feed = aggregator.get_feed()
    return APIResponse[list[FeedPost]].success(data=feed, message="feed fetched")
