from __future__ import annotations

from .services import ProductService, CategoryService
from .unit_of_work import CatalogUnitOfWork


def build_product_service() -> ProductService:
    return ProductService(uow_factory=CatalogUnitOfWork)


def build_category_service() -> CategoryService:
    return CategoryService(uow_factory=CatalogUnitOfWork)
