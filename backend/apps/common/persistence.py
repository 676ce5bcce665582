"""Request-scoped persistence context over the Django ORM.

A ``PersistenceContext`` tracks the entities loaded through it (identity map)
and the inserts, updates and deletes staged against them. Nothing reaches the
database until ``save_changes`` flushes the staged changes inside a single
transaction. Updates and deletes are issued as conditional statements keyed by
primary key; a statement that touches no row means the row changed underneath
us and the whole batch is rolled back with ``ConcurrencyConflict``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from django.db import IntegrityError, connections, models, transaction

from .logger import get_logger

T = TypeVar("T", bound=models.Model)

INSERT = "insert"
UPDATE = "update"
DELETE = "delete"

logger = get_logger(__name__).bind(component="common", layer="persistence")


class PersistenceError(Exception):
    """Base class for failures raised while saving staged changes."""


class ConcurrencyConflict(PersistenceError):
    """A conditional update/delete affected no rows."""

    def __init__(self, model: Type[models.Model], pk: Any, action: str):
        self.model = model
        self.pk = pk
        self.action = action
        super().__init__(
            f"{action} of {model._meta.label} pk={pk} affected no rows"
        )


class IntegrityViolation(PersistenceError):
    """The store rejected the batch on a constraint (FK, NOT NULL, ...)."""


@dataclass
class PendingChange:
    action: str
    entity: models.Model

    @property
    def model(self) -> Type[models.Model]:
        return type(self.entity)


def _identity(model: Type[models.Model], pk: Any) -> Tuple[str, Any]:
    return model._meta.label, pk


def _field_values(entity: models.Model) -> Dict[str, Any]:
    return {
        field.attname: getattr(entity, field.attname)
        for field in entity._meta.concrete_fields
        if not field.primary_key
    }


class EntitySet(Generic[T]):
    """Query and change-tracking surface for one model inside a context."""

    def __init__(self, context: "PersistenceContext", model: Type[T]):
        self.context = context
        self.model = model

    def query(self) -> "models.QuerySet[T]":
        return self.model._default_manager.using(self.context.using)

    def all(self, queryset: Optional["models.QuerySet[T]"] = None) -> List[T]:
        self.context._ensure_open()
        rows = queryset if queryset is not None else self.query().all()
        return [self.context._attach(row) for row in rows]

    def find(self, pk: Any) -> Optional[T]:
        self.context._ensure_open()
        tracked = self.context._lookup(self.model, pk)
        if tracked is not None:
            return None if self.context._is_removed(tracked) else tracked
        row = self.query().filter(pk=pk).first()
        return self.context._attach(row) if row is not None else None

    def exists(self, pk: Any) -> bool:
        """Ask the store directly, bypassing the identity map."""
        self.context._ensure_open()
        return self.query().filter(pk=pk).exists()

    def add(self, entity: T) -> T:
        self.context._stage(INSERT, entity)
        return entity

    def mark_modified(self, entity: T) -> T:
        self.context._stage(UPDATE, entity)
        return entity

    def remove(self, entity: T) -> T:
        self.context._stage(DELETE, entity)
        return entity


class PersistenceContext:
    def __init__(self, using: str = "default"):
        self.using = using
        self._identity_map: Dict[Tuple[str, Any], models.Model] = {}
        self._pending: List[PendingChange] = []
        self._sets: Dict[Type[models.Model], EntitySet] = {}
        self._closed = False
        self.log = logger.bind(alias=using)

    def set(self, model: Type[T]) -> EntitySet[T]:
        entity_set = self._sets.get(model)
        if entity_set is None:
            entity_set = self._sets[model] = EntitySet(self, model)
        return entity_set

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_changes(self) -> List[PendingChange]:
        return list(self._pending)

    @property
    def has_changes(self) -> bool:
        return bool(self._pending)

    def save_changes(self) -> int:
        """Flush every staged change atomically and return the affected row count."""
        self._ensure_open()
        if not self._pending:
            return 0
        inserted: List[models.Model] = []
        try:
            with transaction.atomic(using=self.using):
                affected = sum(self._apply(change, inserted) for change in self._pending)
                connections[self.using].check_constraints(
                    table_names=self._touched_tables()
                )
        except IntegrityError as exc:
            self._discard_inserted(inserted)
            self.log.warning("Changes rejected by integrity constraint", error=str(exc))
            raise IntegrityViolation(str(exc)) from exc
        except Exception:
            self._discard_inserted(inserted)
            raise
        for change in self._pending:
            if change.action == DELETE:
                self._identity_map.pop(_identity(change.model, change.entity.pk), None)
        self.log.debug(
            "Saved changes", changes=len(self._pending), affected=affected
        )
        self._pending.clear()
        return affected

    def close(self) -> None:
        if self._pending:
            self.log.debug("Discarding unsaved changes", changes=len(self._pending))
        self._pending.clear()
        self._identity_map.clear()
        self._closed = True

    def _apply(self, change: PendingChange, inserted: List[models.Model]) -> int:
        entity = change.entity
        if change.action == INSERT:
            entity.save(using=self.using, force_insert=True)
            inserted.append(entity)
            self._attach(entity)
            return 1
        rows = change.model._default_manager.using(self.using).filter(pk=entity.pk)
        if change.action == UPDATE:
            affected = rows.update(**_field_values(entity))
        else:
            affected, _ = rows.delete()
        if not affected:
            self.log.warning(
                "Conditional write matched no rows",
                model=change.model._meta.label,
                pk=entity.pk,
                action=change.action,
            )
            raise ConcurrencyConflict(change.model, entity.pk, change.action)
        return affected

    def _stage(self, action: str, entity: models.Model) -> None:
        self._ensure_open()
        staged = self._staged_action(entity)
        if action == INSERT:
            if staged is None:
                self._pending.append(PendingChange(INSERT, entity))
            return
        if entity.pk is None:
            if staged != INSERT:
                raise ValueError(
                    f"Cannot {action} an unsaved {type(entity)._meta.label} instance"
                )
            if action == DELETE:
                self._unstage(entity)
            return
        self._attach(entity)
        if action == UPDATE:
            if staged is None:
                self._pending.append(PendingChange(UPDATE, entity))
            return
        if staged == DELETE:
            return
        self._unstage(entity)
        self._pending.append(PendingChange(DELETE, entity))

    def _staged_action(self, entity: models.Model) -> Optional[str]:
        for change in self._pending:
            if change.entity is entity:
                return change.action
        return None

    def _unstage(self, entity: models.Model) -> None:
        self._pending = [c for c in self._pending if c.entity is not entity]

    def _is_removed(self, entity: models.Model) -> bool:
        return self._staged_action(entity) == DELETE

    def _attach(self, entity: models.Model) -> models.Model:
        key = _identity(type(entity), entity.pk)
        tracked = self._identity_map.get(key)
        if tracked is not None:
            return tracked
        self._identity_map[key] = entity
        return entity

    def _lookup(self, model: Type[models.Model], pk: Any) -> Optional[models.Model]:
        return self._identity_map.get(_identity(model, pk))

    def _discard_inserted(self, inserted: List[models.Model]) -> None:
        for entity in inserted:
            self._identity_map.pop(_identity(type(entity), entity.pk), None)
            entity.pk = None
            entity._state.adding = True

    def _touched_tables(self) -> List[str]:
        return sorted({change.model._meta.db_table for change in self._pending})

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Persistence context is closed")
