from __future__ import annotations

from typing import Callable

from apps.common import get_logger
from .context import CatalogContext
from .repositories import CategoryRepository, ProductRepository

logger = get_logger(__name__).bind(component="catalog", layer="unit_of_work")


class CatalogUnitOfWork:
    """
    One transaction boundary over both catalog repositories.

    The repositories share a single context, so changes staged through either
    of them are flushed together by ``commit``. Leaving the ``with`` block
    closes the context; anything not committed by then is dropped.
    """

    def __init__(self, context_factory: Callable[[], CatalogContext] = CatalogContext):
        self._context = context_factory()
        self._products = ProductRepository(self._context)
        self._categories = CategoryRepository(self._context)

    @property
    def products(self) -> ProductRepository:
        return self._products

    @property
    def categories(self) -> CategoryRepository:
        return self._categories

    def commit(self) -> int:
        affected = self._context.save_changes()
        logger.debug("Unit of work committed", affected=affected)
        return affected

    def close(self) -> None:
        self._context.close()

    def __enter__(self) -> "CatalogUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
