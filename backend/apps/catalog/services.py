from __future__ import annotations

from typing import Any, Callable, List, Optional

from rest_framework import status

from apps.api.exceptions import ApplicationError
from apps.common import get_logger
from apps.common.persistence import ConcurrencyConflict, IntegrityViolation
from .dtos import CategoryDTO, ProductDTO
from .mappers import CategoryMapper, ProductMapper
from .protocols import UnitOfWorkProtocol

logger = get_logger(__name__).bind(component="catalog", layer="service")

UnitOfWorkFactory = Callable[[], UnitOfWorkProtocol]


def _integrity_error(resource: str, details: Optional[dict] = None) -> ApplicationError:
    return ApplicationError(
        "INTEGRITY_ERROR",
        f"{resource} violates a data integrity constraint",
        status_code=status.HTTP_409_CONFLICT,
        details=details,
        hint="Check that referenced records exist.",
    )


def _resolve_conflict(repository, entity_id: int, action: str, log) -> bool:
    """
    Decide what a concurrency conflict on ``entity_id`` means for the caller.

    Returns False when the row is gone (reported as not found). A row that
    still exists leaves nothing sensible to report, so it becomes a generic
    server error without any store-specific detail.
    """
    if not repository.exists(entity_id):
        log.info("Conflict resolved as not found", entity_id=entity_id, action=action)
        return False
    log.error("Unrecoverable concurrency conflict", entity_id=entity_id, action=action)
    raise ApplicationError(
        "SERVER_ERROR",
        "Something went wrong",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class CategoryService:
    def __init__(self, uow_factory: UnitOfWorkFactory):
        self.uow_factory = uow_factory
        self.logger = logger.bind(service="CategoryService")

    def list_categories(self) -> List[CategoryDTO]:
        self.logger.debug("Listing categories")
        with self.uow_factory() as uow:
            return CategoryMapper.many_to_dto(uow.categories.list())

    def get_category(self, category_id: int) -> Optional[CategoryDTO]:
        self.logger.debug("Fetching category", category_id=category_id)
        with self.uow_factory() as uow:
            category = uow.categories.get(category_id)
            if category is None:
                self.logger.info("Category not found", category_id=category_id)
                return None
            return CategoryMapper.to_dto(category)

    def create_category(self, dto: CategoryDTO) -> CategoryDTO:
        self.logger.info("Creating category", name=dto.name)
        with self.uow_factory() as uow:
            category = uow.categories.add(CategoryMapper.to_entity(dto))
            try:
                uow.commit()
            except IntegrityViolation:
                raise _integrity_error("Category")
            self.logger.info("Category created", category_id=category.id)
            return CategoryMapper.to_dto(category)

    def replace_category(self, category_id: int, dto: CategoryDTO) -> bool:
        self.logger.info("Replacing category", category_id=category_id)
        with self.uow_factory() as uow:
            category = uow.categories.get(category_id)
            if category is None:
                self.logger.warning(
                    "Category replace failed: not found", category_id=category_id
                )
                return False
            uow.categories.update(CategoryMapper.merge(dto, category))
            try:
                uow.commit()
            except ConcurrencyConflict:
                return _resolve_conflict(
                    uow.categories, category_id, "update", self.logger
                )
            except IntegrityViolation:
                raise _integrity_error("Category", {"id": str(category_id)})
            self.logger.info("Category replaced", category_id=category_id)
            return True

    def delete_category(self, category_id: int) -> bool:
        self.logger.info("Deleting category", category_id=category_id)
        with self.uow_factory() as uow:
            if not uow.categories.delete(category_id):
                self.logger.warning(
                    "Category deletion failed: not found", category_id=category_id
                )
                return False
            try:
                affected = uow.commit()
            except ConcurrencyConflict:
                return _resolve_conflict(
                    uow.categories, category_id, "delete", self.logger
                )
            self.logger.info(
                "Category deleted", category_id=category_id, affected=affected
            )
            return True


class ProductService:
    def __init__(self, uow_factory: UnitOfWorkFactory):
        self.uow_factory = uow_factory
        self.logger = logger.bind(service="ProductService")

    def list_products(self) -> List[ProductDTO]:
        self.logger.debug("Listing products")
        with self.uow_factory() as uow:
            return ProductMapper.many_to_dto(uow.products.list())

    def get_product(self, product_id: int) -> Optional[ProductDTO]:
        self.logger.debug("Fetching product", product_id=product_id)
        with self.uow_factory() as uow:
            product = uow.products.get(product_id)
            if product is None:
                self.logger.info("Product not found", product_id=product_id)
                return None
            return ProductMapper.to_dto(product)

    def create_product(self, dto: ProductDTO) -> ProductDTO:
        self.logger.info("Creating product", name=dto.name, category_id=dto.category_id)
        with self.uow_factory() as uow:
            product = uow.products.add(ProductMapper.to_entity(dto))
            try:
                uow.commit()
            except IntegrityViolation:
                raise _integrity_error("Product", self._details(dto))
            self.logger.info("Product created", product_id=product.id)
            return ProductMapper.to_dto(product)

    def replace_product(self, product_id: int, dto: ProductDTO) -> bool:
        self.logger.info("Replacing product", product_id=product_id)
        with self.uow_factory() as uow:
            product = uow.products.get(product_id)
            if product is None:
                self.logger.warning(
                    "Product replace failed: not found", product_id=product_id
                )
                return False
            uow.products.update(ProductMapper.merge(dto, product))
            try:
                uow.commit()
            except ConcurrencyConflict:
                return _resolve_conflict(uow.products, product_id, "update", self.logger)
            except IntegrityViolation:
                raise _integrity_error("Product", self._details(dto))
            self.logger.info("Product replaced", product_id=product_id)
            return True

    def delete_product(self, product_id: int) -> bool:
        self.logger.info("Deleting product", product_id=product_id)
        with self.uow_factory() as uow:
            if not uow.products.delete(product_id):
                self.logger.warning(
                    "Product deletion failed: not found", product_id=product_id
                )
                return False
            try:
                uow.commit()
            except ConcurrencyConflict:
                return _resolve_conflict(uow.products, product_id, "delete", self.logger)
            self.logger.info("Product deleted", product_id=product_id)
            return True

    @staticmethod
    def _details(dto: ProductDTO) -> dict[str, Any]:
        return {"categoryId": dto.category_id}
