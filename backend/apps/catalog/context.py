from apps.common.persistence import EntitySet, PersistenceContext

from .models import Category, Product


class CatalogContext(PersistenceContext):
    """Persistence context exposing the catalog tables."""

    @property
    def products(self) -> EntitySet[Product]:
        return self.set(Product)

    @property
    def categories(self) -> EntitySet[Category]:
        return self.set(Category)
