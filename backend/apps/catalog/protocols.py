from __future__ import annotations

from typing import Any, List, Optional, Protocol

from .models import Category, Product


class CategoryRepositoryProtocol(Protocol):
    def list(self) -> List[Category]:
        ...

    def get(self, pk: Any) -> Optional[Category]:
        ...

    def exists(self, pk: Any) -> bool:
        ...

    def add(self, obj: Category) -> Category:
        ...

    def update(self, obj: Category) -> Category:
        ...

    def delete(self, pk: Any) -> bool:
        ...


class ProductRepositoryProtocol(Protocol):
    def list(self) -> List[Product]:
        ...

    def get(self, pk: Any) -> Optional[Product]:
        ...

    def exists(self, pk: Any) -> bool:
        ...

    def add(self, obj: Product) -> Product:
        ...

    def update(self, obj: Product) -> Product:
        ...

    def delete(self, pk: Any) -> bool:
        ...


class UnitOfWorkProtocol(Protocol):
    @property
    def products(self) -> ProductRepositoryProtocol:
        ...

    @property
    def categories(self) -> CategoryRepositoryProtocol:
        ...

    def commit(self) -> int:
        ...

    def close(self) -> None:
        ...

    def __enter__(self) -> "UnitOfWorkProtocol":
        ...

    def __exit__(self, exc_type, exc, tb) -> None:
        ...
