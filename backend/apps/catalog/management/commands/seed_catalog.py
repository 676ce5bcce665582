from decimal import Decimal

from django.core.management.base import BaseCommand

from apps.catalog.models import Category, Product
from apps.catalog.unit_of_work import CatalogUnitOfWork

CATALOG = {
    "electronics": [
        ("USB-C Charger 65W", Decimal("39.90")),
        ("Wireless Mouse", Decimal("24.50")),
        ("27in Monitor", Decimal("219.00")),
    ],
    "food": [
        ("Arabica Coffee Beans 1kg", Decimal("18.75")),
        ("Dark Chocolate 85%", Decimal("3.20")),
    ],
    "books": [
        ("The Pragmatic Programmer", Decimal("42.00")),
    ],
}


class Command(BaseCommand):
    help = "Seed categories and products in a single unit of work."

    def add_arguments(self, parser):
        parser.add_argument(
            "--flush", action="store_true", help="Delete existing catalog rows first"
        )

    def handle(self, *args, **options):
        with CatalogUnitOfWork() as uow:
            if options["flush"]:
                self.stdout.write("Flushing existing catalog...")
                for category in uow.categories.list():
                    uow.categories.delete(category.id)
                uow.commit()

            existing = {c.name: c for c in uow.categories.list()}
            created_products = 0
            for category_name, products in CATALOG.items():
                category = existing.get(category_name)
                if category is None:
                    category = uow.categories.add(Category(name=category_name))
                    # Products reference the category object so the id assigned
                    # at commit is picked up when they are inserted after it.
                    for name, price in products:
                        uow.products.add(Product(name=name, price=price, category=category))
                        created_products += 1

            affected = uow.commit()

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeded catalog: {affected} rows written, {created_products} products added."
            )
        )
