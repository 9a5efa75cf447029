from __future__ import annotations

from enum import Enum


class CollectionName(str, Enum):
    POSTS = "posts"
    COMMENTS = "comments"
    LIKES = "likes"
