from __future__ import annotations

from fastapi import APIRouter, Depends

from chillfeed.api.schemas.feed import CleanupReport
from chillfeed.api.schemas.response import APIResponse
from chillfeed.services.cleanup_sweeper import CleanupSweeper
from chillfeed.services.providers import get_cleanup_sweeper

router = APIRouter()


@router.post("/cleanup", response_model=APIResponse[CleanupReport])
def cleanup(
    sweeper: CleanupSweeper = Depends(get_cleanup_sweeper),
) -> APIResponse[CleanupReport]:
    """删除所有超过 24 小时的文档。"""

    report = sweeper.sweep_report()
    return APIResponse[CleanupReport].success(data=report, message="cleanup finished")
