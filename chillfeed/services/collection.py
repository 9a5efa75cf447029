from __future__ import annotations

import logging
from typing import Callable, Generic, NamedTuple, TypeVar

from pydantic import ValidationError as PydanticValidationError

from chillfeed.api.schemas.posts import Comment, Entity, Like, Post
from chillfeed.domain.collection_names import CollectionName
from chillfeed.domain.errors import CorruptDocument
from chillfeed.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)


class Collection(Generic[EntityT]):
    """一种实体对应一个目录，每个实体存成 `<base>/<name>/<id>.json`。"""

    def __init__(
        self,
        store: DocumentStore,
        name: str | CollectionName,
        model: type[EntityT],
        *,
        base_path: str = "data",
    ) -> None:
        self._store = store
        self._name = str(getattr(name, "value", name))
        self._model = model
        self._kind = model.__name__.lower()
        self._base_path = base_path.strip("/")

    @property
    def name(self) -> str:
        return self._name

    @property
    def dir_path(self) -> str:
        return f"{self._base_path}/{self._name}" if self._base_path else self._name

    def path_for(self, entity_id: str) -> str:
        return f"{self.dir_path}/{entity_id}.json"

    def _parse(self, path: str, content: bytes) -> EntityT:
        try:
            return self._model.model_validate_json(content)
        except PydanticValidationError as exc:
            raise CorruptDocument(path, str(exc)) from exc

    def create(self, entity: EntityT) -> EntityT:
        content = entity.model_dump_json(by_alias=True, indent=2)
        self._store.put(self.path_for(entity.id), content, f"create {self._kind} {entity.id}")
        return entity

    def get(self, entity_id: str) -> EntityT | None:
        path = self.path_for(entity_id)
        document = self._store.get(path)
        if document is None:
            return None
        return self._parse(path, document.content)

    def list_entries(self) -> list[tuple[str, EntityT]]:
        """列出目录下全部实体及其文件名，不做可见性过滤。

        文件名以目录列表为准，删除时应使用它而不是文档里的 id。
        """

        entries: list[tuple[str, EntityT]] = []
        for entry in self._store.list_directory(self.dir_path):
            if entry.type != "file" or not entry.name.endswith(".json"):
                continue
            path = f"{self.dir_path}/{entry.name}"
            document = self._store.get(path)
            if document is None:
                # 列目录之后被并发清理删掉了。
                logger.debug("Skip %s: removed after listing", path)
                continue
            entries.append((entry.name, self._parse(path, document.content)))
        return entries

    def list_all(self) -> list[EntityT]:
        return [entity for _, entity in self.list_entries()]

    def list_where(self, predicate: Callable[[EntityT], bool]) -> list[EntityT]:
        return [entity for entity in self.list_all() if predicate(entity)]

    def count(self, predicate: Callable[[EntityT], bool] | None = None) -> int:
        if predicate is None:
            return len(self.list_all())
        return len(self.list_where(predicate))

    def delete_by_id(self, entity_id: str, message: str | None = None) -> bool:
        return self._store.delete(
            self.path_for(entity_id),
            message or f"delete {self._kind} {entity_id}",
        )

    def delete_entry(self, name: str, message: str | None = None) -> bool:
        """按目录列表中的文件名删除；返回是否真的删掉了文档。"""

        return self._store.delete(
            f"{self.dir_path}/{name}",
            message or f"delete {self._kind} {name}",
        )


class FeedCollections(NamedTuple):
    posts: Collection[Post]
    comments: Collection[Comment]
    likes: Collection[Like]


def build_collections(store: DocumentStore, *, base_path: str = "data") -> FeedCollections:
    return FeedCollections(
        posts=Collection(store, CollectionName.POSTS, Post, base_path=base_path),
        comments=Collection(store, CollectionName.COMMENTS, Comment, base_path=base_path),
        likes=Collection(store, CollectionName.LIKES, Like, base_path=base_path),
    )
