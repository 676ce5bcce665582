from typing import List

from apps.common.persistence import EntitySet
from apps.common.repository import GenericRepository
from .context import CatalogContext
from .models import Category, Product


class CategoryRepository(GenericRepository[Category]):
    def __init__(self, context: CatalogContext):
        super().__init__(context, Category)
        self.context: CatalogContext = context

    @property
    def entities(self) -> EntitySet[Category]:
        return self.context.categories


class ProductRepository(GenericRepository[Product]):
    def __init__(self, context: CatalogContext):
        super().__init__(context, Product)
        self.context: CatalogContext = context

    @property
    def entities(self) -> EntitySet[Product]:
        return self.context.products

    def list(self) -> List[Product]:  # type: ignore[override]
        """Return products with their category loaded in the same query."""
        return self.entities.all(self.entities.query().select_related("category"))
