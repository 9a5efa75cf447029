from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import quote

import httpx

from chillfeed.domain.errors import BackendUnavailable, Conflict
from chillfeed.services.contents_backend import DirectoryEntry, StoredFile
from chillfeed.settings import BackendSettings

logger = logging.getLogger(__name__)

# 写入/删除时 sha 不匹配：409；存在文件却未带 sha：422。
_CONFLICT_STATUSES = frozenset({409, 422})


class GitHubContentsBackend:
    """基于 GitHub repository contents API 的版本化文件存储。

    约定：
    - 版本号即 blob sha；
    - 内容在线上以 base64 传输；
    - 读请求以 `ref` 指定分支，写/删请求在 body 中指定 `branch`。
    """

    def __init__(
        self,
        settings: BackendSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._client = httpx.Client(
            base_url=settings.api_url,
            timeout=settings.timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {settings.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    def close(self) -> None:
        self._client.close()

    def _url(self, path: str) -> str:
        owner = quote(self._settings.owner, safe="")
        repo = quote(self._settings.repo, safe="")
        return f"/repos/{owner}/{repo}/contents/{quote(path.strip('/'))}"

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("GitHub %s %s", method, path)
        try:
            return self._client.request(method, self._url(path), **kwargs)
        except httpx.HTTPError as exc:
            raise BackendUnavailable(f"GitHub {method} {path} failed: {exc}") from exc

    @staticmethod
    def _fail(action: str, path: str, response: httpx.Response) -> BackendUnavailable:
        logger.warning("GitHub %s error for %s: %s", action, path, response.status_code)
        return BackendUnavailable(
            f"GitHub {action} error: {response.status_code} {response.text}"
        )

    @staticmethod
    def _json(action: str, path: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise BackendUnavailable(f"GitHub {action} returned invalid JSON for {path}") from exc

    def list_directory(self, dir_path: str) -> list[DirectoryEntry]:
        response = self._request("GET", dir_path, params={"ref": self._settings.branch})
        if response.status_code == 404:
            return []
        if not response.is_success:
            raise self._fail("list", dir_path, response)

        payload = self._json("list", dir_path, response)
        # 路径指向单个文件时 GitHub 返回对象而非数组，此时目录视为空。
        if not isinstance(payload, list):
            return []
        return [
            DirectoryEntry(name=str(item.get("name", "")), type=str(item.get("type", "")))
            for item in payload
            if isinstance(item, dict)
        ]

    def get_file(self, file_path: str) -> StoredFile | None:
        response = self._request("GET", file_path, params={"ref": self._settings.branch})
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise self._fail("get", file_path, response)

        payload = self._json("get", file_path, response)
        if not isinstance(payload, dict) or payload.get("type") != "file":
            raise BackendUnavailable(f"GitHub get returned a non-file entry for {file_path}")
        content = base64.b64decode(payload.get("content") or "")
        return StoredFile(content=content, version=str(payload["sha"]))

    def put_file(
        self,
        file_path: str,
        content: bytes,
        version: str | None,
        message: str,
    ) -> str:
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self._settings.branch,
        }
        if version is not None:
            body["sha"] = version

        response = self._request("PUT", file_path, json=body)
        if response.status_code in _CONFLICT_STATUSES:
            raise Conflict(file_path, response.text)
        if not response.is_success:
            raise self._fail("put", file_path, response)

        payload = self._json("put", file_path, response)
        try:
            return str(payload["content"]["sha"])
        except (KeyError, TypeError) as exc:
            raise BackendUnavailable(f"GitHub put response for {file_path} lacks a sha") from exc

    def delete_file(self, file_path: str, version: str, message: str) -> bool:
        body = {
            "message": message,
            "sha": version,
            "branch": self._settings.branch,
        }
        response = self._request("DELETE", file_path, json=body)
        if response.status_code == 404:
            return False
        if response.status_code in _CONFLICT_STATUSES:
            raise Conflict(file_path, response.text)
        if not response.is_success:
            raise self._fail("delete", file_path, response)
        return True
