from __future__ import annotations

import os

from pydantic import BaseModel, Field

DEFAULT_API_URL = "https://api.github.com"
REQUIRED_GITHUB_ENV = ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO")


class BackendSettings(BaseModel):
    """GitHub contents 后端的连接参数，显式注入给后端实例。"""

    token: str = Field(min_length=1)
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    branch: str = "main"
    api_url: str = DEFAULT_API_URL
    timeout: float = 15.0

    @staticmethod
    def missing_env() -> list[str]:
        return [name for name in REQUIRED_GITHUB_ENV if not os.getenv(name)]

    @classmethod
    def from_env(cls) -> "BackendSettings":
        if cls.missing_env():
            raise RuntimeError("GITHUB_TOKEN/GITHUB_OWNER/GITHUB_REPO must be set.")
        return cls(
            token=os.environ["GITHUB_TOKEN"],
            owner=os.environ["GITHUB_OWNER"],
            repo=os.environ["GITHUB_REPO"],
            branch=os.getenv("GITHUB_BRANCH", "main"),
            api_url=os.getenv("GITHUB_API_URL", DEFAULT_API_URL),
            timeout=float(os.getenv("CHILLFEED_HTTP_TIMEOUT", "15")),
        )


def base_path() -> str:
    return os.getenv("CHILLFEED_BASE_PATH", "data").strip("/") or "data"


def backend_kind() -> str:
    return os.getenv("CHILLFEED_BACKEND", "github").strip().lower()


def sweep_interval_seconds() -> float:
    return float(os.getenv("CHILLFEED_SWEEP_INTERVAL_SECONDS", "0"))
