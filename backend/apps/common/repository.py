from typing import Any, Generic, List, Optional, Type, TypeVar

from django.db import models

from .persistence import EntitySet, PersistenceContext

T = TypeVar('T', bound=models.Model)


class GenericRepository(Generic[T]):
    """CRUD over one model. Writes are staged on the context until it is saved."""

    def __init__(self, context: PersistenceContext, model: Type[T]):
        self.context = context
        self.model = model

    @property
    def entities(self) -> EntitySet[T]:
        return self.context.set(self.model)

    def list(self) -> List[T]:
        return self.entities.all()

    def get(self, pk: Any) -> Optional[T]:
        return self.entities.find(pk)

    def exists(self, pk: Any) -> bool:
        return self.entities.exists(pk)

    def add(self, obj: T) -> T:
        return self.entities.add(obj)

    def update(self, obj: T) -> T:
        # Whole-row overwrite: every concrete column is written on save.
        return self.entities.mark_modified(obj)

    def delete(self, pk: Any) -> bool:
        obj = self.get(pk)
        if obj is None:
            return False
        self.entities.remove(obj)
        return True
