from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class CategoryDTO:
    id: Optional[int]
    name: str


@dataclass
class ProductDTO:
    id: Optional[int]
    name: str
    price: Decimal
    category_id: int


"""DTO dataclasses only. Mapping logic lives in mappers.py."""
