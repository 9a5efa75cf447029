from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Sequence

from chillfeed.api.schemas.feed import CleanupReport
from chillfeed.services.collection import Collection
from chillfeed.services.time_window import is_expired, utc_now

logger = logging.getLogger(__name__)


class CleanupSweeper:
    """扫描所有集合并删除过期文档。

    - 以扫描开始时刻作为统一的 `now`；
    - 幂等：已删除的文档不会再出现在目录中，重复执行删除数为 0；
    - 与读写并发安全：删除已不存在的文档是 no-op。
    """

    def __init__(
        self,
        collections: Sequence[Collection],
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._collections = list(collections)
        self._clock = clock

    def sweep_report(self) -> CleanupReport:
        now = self._clock()
        report = CleanupReport()
        for collection in self._collections:
            deleted = 0
            for name, entity in collection.list_entries():
                if not is_expired(entity.created_at, now):
                    continue
                # 只统计真正删掉的文档：并发清理可能已先一步删除。
                if collection.delete_entry(name, f"cleanup old {collection.name} {name}"):
                    deleted += 1
            report.collections[collection.name] = deleted
            report.deleted += deleted

        logger.info("Cleanup removed %d expired documents %s", report.deleted, report.collections)
        return report

    def sweep(self) -> int:
        return self.sweep_report().deleted


async def run_periodic_sweep(
    get_sweeper: Callable[[], CleanupSweeper],
    interval_seconds: float,
) -> None:
    """后台定时清理；单次失败只记录日志，循环继续。"""

    while True:
        await asyncio.sleep(interval_seconds)
        try:
            # 首次调用会创建后端实例，放到线程里执行。
            await asyncio.to_thread(lambda: get_sweeper().sweep())
        except Exception:
            logger.exception("Periodic cleanup failed")
