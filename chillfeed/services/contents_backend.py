from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Protocol
from uuid import uuid4

from chillfeed.domain.errors import Conflict


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    type: str


@dataclass(frozen=True)
class StoredFile:
    content: bytes
    version: str


class ContentsBackend(Protocol):
    """远端版本化文件服务需要提供的最小接口。"""

    def list_directory(self, dir_path: str) -> list[DirectoryEntry]:
        """目录不存在时返回空列表。"""
        ...

    def get_file(self, file_path: str) -> StoredFile | None:
        ...

    def put_file(
        self,
        file_path: str,
        content: bytes,
        version: str | None,
        message: str,
    ) -> str:
        """版本号不匹配时抛出 Conflict，成功返回新版本号。"""
        ...

    def delete_file(self, file_path: str, version: str, message: str) -> bool:
        """文件不存在时为 no-op，返回 False；真正删除时返回 True。"""
        ...


class InMemoryContentsBackend:
    """进程内实现，语义与 GitHub contents API 保持一致（测试与本地开发用）。"""

    def __init__(self) -> None:
        self._files: dict[str, StoredFile] = {}
        self._lock = Lock()
        # 每次变更的提交说明，便于测试断言。
        self.messages: list[str] = []

    @staticmethod
    def _normalize(path: str) -> str:
        return path.strip("/")

    def list_directory(self, dir_path: str) -> list[DirectoryEntry]:
        prefix = f"{self._normalize(dir_path)}/"
        entries: dict[str, str] = {}
        with self._lock:
            paths = list(self._files)
        for path in paths:
            if not path.startswith(prefix):
                continue
            head, sep, _ = path[len(prefix):].partition("/")
            entries[head] = "dir" if sep else "file"
        return [DirectoryEntry(name=name, type=kind) for name, kind in sorted(entries.items())]

    def get_file(self, file_path: str) -> StoredFile | None:
        with self._lock:
            return self._files.get(self._normalize(file_path))

    def put_file(
        self,
        file_path: str,
        content: bytes,
        version: str | None,
        message: str,
    ) -> str:
        path = self._normalize(file_path)
        with self._lock:
            current = self._files.get(path)
            current_version = current.version if current is not None else None
            if version != current_version:
                raise Conflict(path, f"expected {current_version!r}, got {version!r}")
            new_version = uuid4().hex
            self._files[path] = StoredFile(content=bytes(content), version=new_version)
            self.messages.append(message)
        return new_version

    def delete_file(self, file_path: str, version: str, message: str) -> bool:
        path = self._normalize(file_path)
        with self._lock:
            current = self._files.get(path)
            if current is None:
                return False
            if current.version != version:
                raise Conflict(path, f"expected {current.version!r}, got {version!r}")
            del self._files[path]
            self.messages.append(message)
        return True
