from __future__ import annotations

import logging
from dataclasses import dataclass

from chillfeed.services.contents_backend import ContentsBackend, DirectoryEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    path: str
    content: bytes
    version: str

    def text(self) -> str:
        return self.content.decode("utf-8")


class DocumentStore:
    """按路径读写单个文档，依靠版本号避免丢失更新。

    约束：
    - 不做任何缓存，每次调用都直达后端；
    - put/delete 先读取当前版本号，再携带该版本号提交；
    - 版本号在两步之间变化时后端拒绝写入，Conflict 原样抛给调用方，不自动重试。
    """

    def __init__(self, backend: ContentsBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> ContentsBackend:
        return self._backend

    def list_directory(self, dir_path: str) -> list[DirectoryEntry]:
        return self._backend.list_directory(dir_path)

    def get(self, path: str) -> Document | None:
        stored = self._backend.get_file(path)
        if stored is None:
            return None
        return Document(path=path, content=stored.content, version=stored.version)

    def put(self, path: str, content: bytes | str, message: str) -> str:
        """写入文档并返回提交后的版本号。"""

        if isinstance(content, str):
            content = content.encode("utf-8")
        current = self._backend.get_file(path)
        version = current.version if current is not None else None
        committed = self._backend.put_file(path, content, version, message)
        logger.debug("Stored %s (version %s -> %s)", path, version, committed)
        return committed

    def delete(self, path: str, message: str) -> bool:
        """删除文档；文档已不存在时返回 False（并发清理时可能发生）。"""

        current = self._backend.get_file(path)
        if current is None:
            logger.debug("Skip delete of %s: already absent", path)
            return False
        deleted = self._backend.delete_file(path, current.version, message)
        if deleted:
            logger.debug("Deleted %s (version %s)", path, current.version)
        return deleted
