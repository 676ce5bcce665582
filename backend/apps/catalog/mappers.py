from decimal import Decimal
from typing import Any, Iterable, List, Mapping

from .dtos import ProductDTO, CategoryDTO
from .models import Product, Category


class CategoryMapper:
    @staticmethod
    def to_dto(cat: Category) -> CategoryDTO:
        return CategoryDTO(id=cat.id, name=cat.name)

    @staticmethod
    def many_to_dto(categories: Iterable[Category]) -> List[CategoryDTO]:
        return [CategoryMapper.to_dto(c) for c in categories]

    @staticmethod
    def to_entity(dto: CategoryDTO) -> Category:
        # id is generated by the store on insert
        return Category(name=dto.name)

    @staticmethod
    def merge(dto: CategoryDTO, cat: Category) -> Category:
        cat.name = dto.name
        return cat

    @staticmethod
    def from_payload(data: Mapping[str, Any]) -> CategoryDTO:
        return CategoryDTO(id=data.get("id"), name=data["name"])


class ProductMapper:
    @staticmethod
    def to_dto(product: Product) -> ProductDTO:
        return ProductDTO(
            id=product.id,
            name=product.name,
            price=Decimal(str(product.price)),
            category_id=product.category_id,
        )

    @staticmethod
    def many_to_dto(products: Iterable[Product]) -> List[ProductDTO]:
        return [ProductMapper.to_dto(p) for p in products]

    @staticmethod
    def to_entity(dto: ProductDTO) -> Product:
        return Product(name=dto.name, price=dto.price, category_id=dto.category_id)

    @staticmethod
    def merge(dto: ProductDTO, product: Product) -> Product:
        product.name = dto.name
        product.price = dto.price
        product.category_id = dto.category_id
        return product

    @staticmethod
    def from_payload(data: Mapping[str, Any]) -> ProductDTO:
        return ProductDTO(
            id=data.get("id"),
            name=data["name"],
            price=data["price"],
            category_id=data["category_id"],
        )
