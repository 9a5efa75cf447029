from __future__ import annotations


class ChillFeedError(Exception):
    """所有业务异常的基类。"""


class ValidationError(ChillFeedError, ValueError):
    """必填字段缺失：调用方的问题，直接拒绝，不重试。"""

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        super().__init__(f"{', '.join(self.fields)} required")


class Conflict(ChillFeedError):
    """写入时版本号不匹配：有并发写者抢先提交。"""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        message = f"Version conflict on {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class BackendUnavailable(ChillFeedError):
    """远端存储网络错误或返回了非预期响应。"""


class CorruptDocument(ChillFeedError):
    """已存储的文档无法解析，视为存储损坏，中止整次列举。"""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Corrupt document at {path}: {detail}")
