import unittest
from decimal import Decimal
from unittest.mock import Mock, patch
from rest_framework.test import APIRequestFactory
from apps.api.exceptions import ApplicationError
from apps.catalog.views import (
    ProductListView,
    ProductDetailView,
    CategoryListView,
    CategoryDetailView,
)
from apps.catalog.dtos import ProductDTO, CategoryDTO


def make_product_dto(product_id=1, name="Widget", category_id=1):
    return ProductDTO(
        id=product_id, name=name, price=Decimal("10.00"), category_id=category_id
    )


def make_category_dto(category_id=1, name="Cat"):
    return CategoryDTO(id=category_id, name=name)


class CatalogViewsUnitTests(unittest.TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()

    def dispatch(self, request, view_cls, **kwargs):
        view = view_cls.as_view()
        return view(request, **kwargs)

    def test_product_list_returns_flat_dtos(self):
        service_mock = Mock()
        service_mock.list_products.return_value = [
            make_product_dto(1, "A"),
            make_product_dto(2, "B", category_id=3),
        ]
        with patch.object(ProductListView, "service", service_mock):
            request = self.factory.get("/api/products")
            response = self.dispatch(request, ProductListView)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[1]["categoryId"], 3)
        self.assertNotIn("category", response.data[0])

    def test_product_list_post_creates_product_with_location(self):
        service_mock = Mock()
        service_mock.create_product.return_value = make_product_dto(3, "Created")
        payload = {"name": "Created", "price": "12.50", "categoryId": 1}
        with patch.object(ProductListView, "service", service_mock):
            request = self.factory.post("/api/products", payload, format="json")
            response = self.dispatch(request, ProductListView)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["id"], 3)
        self.assertTrue(response["Location"].endswith("/api/products/3"))
        (dto,), _ = service_mock.create_product.call_args
        self.assertEqual(dto.name, "Created")
        self.assertEqual(dto.price, Decimal("12.50"))
        self.assertEqual(dto.category_id, 1)

    def test_product_list_post_ignores_client_id(self):
        service_mock = Mock()
        service_mock.create_product.return_value = make_product_dto(4)
        payload = {"id": 99, "name": "Widget", "price": "1.00", "categoryId": 1}
        with patch.object(ProductListView, "service", service_mock):
            request = self.factory.post("/api/products", payload, format="json")
            response = self.dispatch(request, ProductListView)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["id"], 4)

    def test_product_list_post_rejects_invalid_payload(self):
        service_mock = Mock()
        with patch.object(ProductListView, "service", service_mock):
            request = self.factory.post(
                "/api/products", {"name": "No price"}, format="json"
            )
            response = self.dispatch(request, ProductListView)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")
        self.assertIn("price", response.data["error"]["details"])
        service_mock.create_product.assert_not_called()

    def test_product_detail_get_not_found(self):
        service_mock = Mock()
        service_mock.get_product.return_value = None
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.get("/api/products/10")
            response = self.dispatch(request, ProductDetailView, product_id=10)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["code"], "NOT_FOUND")

    def test_product_detail_get_success(self):
        service_mock = Mock()
        service_mock.get_product.return_value = make_product_dto(5, "LookUp")
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.get("/api/products/5")
            response = self.dispatch(request, ProductDetailView, product_id=5)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["name"], "LookUp")
        self.assertEqual(response.data["price"], Decimal("10.00"))

    def test_product_detail_put_id_mismatch_is_bad_request(self):
        service_mock = Mock()
        payload = {"id": 2, "name": "Updated", "price": "20.00", "categoryId": 1}
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.put("/api/products/1", payload, format="json")
            response = self.dispatch(request, ProductDetailView, product_id=1)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["details"], {"id": "1", "bodyId": "2"})
        service_mock.replace_product.assert_not_called()

    def test_product_detail_put_missing_body_id_is_bad_request(self):
        service_mock = Mock()
        payload = {"name": "Updated", "price": "20.00", "categoryId": 1}
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.put("/api/products/1", payload, format="json")
            response = self.dispatch(request, ProductDetailView, product_id=1)
        self.assertEqual(response.status_code, 400)
        service_mock.replace_product.assert_not_called()

    def test_product_detail_put_not_found(self):
        service_mock = Mock()
        service_mock.replace_product.return_value = False
        payload = {"id": 1, "name": "Updated", "price": "20.00", "categoryId": 1}
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.put("/api/products/1", payload, format="json")
            response = self.dispatch(request, ProductDetailView, product_id=1)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["code"], "NOT_FOUND")

    def test_product_detail_put_success_returns_no_content(self):
        service_mock = Mock()
        service_mock.replace_product.return_value = True
        payload = {"id": 6, "name": "Updated", "price": "15.00", "categoryId": 2}
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.put("/api/products/6", payload, format="json")
            response = self.dispatch(request, ProductDetailView, product_id=6)
        self.assertEqual(response.status_code, 204)
        product_id, dto = service_mock.replace_product.call_args[0]
        self.assertEqual(product_id, 6)
        self.assertEqual(dto.category_id, 2)

    def test_product_detail_put_fatal_conflict_is_server_error(self):
        service_mock = Mock()
        service_mock.replace_product.side_effect = ApplicationError(
            "SERVER_ERROR", "Something went wrong", status_code=500
        )
        payload = {"id": 6, "name": "Updated", "price": "15.00", "categoryId": 2}
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.put("/api/products/6", payload, format="json")
            response = self.dispatch(request, ProductDetailView, product_id=6)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["error"]["code"], "SERVER_ERROR")

    def test_product_detail_delete_success(self):
        service_mock = Mock()
        service_mock.delete_product.return_value = True
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.delete("/api/products/2")
            response = self.dispatch(request, ProductDetailView, product_id=2)
        self.assertEqual(response.status_code, 204)

    def test_product_detail_delete_not_found(self):
        service_mock = Mock()
        service_mock.delete_product.return_value = False
        with patch.object(ProductDetailView, "service", service_mock):
            request = self.factory.delete("/api/products/8")
            response = self.dispatch(request, ProductDetailView, product_id=8)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["details"], {"id": "8"})

    def test_category_list_get_and_post(self):
        service_mock = Mock()
        service_mock.list_categories.return_value = [make_category_dto(1, "A")]
        service_mock.create_category.return_value = make_category_dto(2, "B")
        with patch.object(CategoryListView, "service", service_mock):
            get_response = self.dispatch(
                self.factory.get("/api/categories"), CategoryListView
            )
            post_response = self.dispatch(
                self.factory.post("/api/categories", {"name": "B"}, format="json"),
                CategoryListView,
            )
        self.assertEqual(get_response.status_code, 200)
        self.assertEqual(get_response.data, [{"id": 1, "name": "A"}])
        self.assertEqual(post_response.status_code, 201)
        self.assertEqual(post_response.data, {"id": 2, "name": "B"})
        self.assertTrue(post_response["Location"].endswith("/api/categories/2"))

    def test_category_detail_flow(self):
        service_mock = Mock()
        service_mock.get_category.return_value = make_category_dto(4, "Books")
        service_mock.replace_category.return_value = True
        service_mock.delete_category.return_value = True
        with patch.object(CategoryDetailView, "service", service_mock):
            get_response = self.dispatch(
                self.factory.get("/api/categories/4"), CategoryDetailView, category_id=4
            )
            put_response = self.dispatch(
                self.factory.put(
                    "/api/categories/4", {"id": 4, "name": "Novels"}, format="json"
                ),
                CategoryDetailView,
                category_id=4,
            )
            delete_response = self.dispatch(
                self.factory.delete("/api/categories/4"),
                CategoryDetailView,
                category_id=4,
            )
        self.assertEqual(get_response.data["name"], "Books")
        self.assertEqual(put_response.status_code, 204)
        self.assertEqual(delete_response.status_code, 204)
        _, dto = service_mock.replace_category.call_args[0]
        self.assertEqual(dto.name, "Novels")

    def test_category_detail_put_mismatch_even_when_missing(self):
        service_mock = Mock()
        service_mock.replace_category.return_value = False
        with patch.object(CategoryDetailView, "service", service_mock):
            response = self.dispatch(
                self.factory.put(
                    "/api/categories/999", {"id": 1, "name": "X"}, format="json"
                ),
                CategoryDetailView,
                category_id=999,
            )
        self.assertEqual(response.status_code, 400)
        service_mock.replace_category.assert_not_called()

    def test_category_detail_delete_unexpected_failure(self):
        service_mock = Mock()
        service_mock.delete_category.side_effect = ApplicationError(
            "SERVER_ERROR", "Something went wrong", status_code=500
        )
        with patch.object(CategoryDetailView, "service", service_mock):
            response = self.dispatch(
                self.factory.delete("/api/categories/3"),
                CategoryDetailView,
                category_id=3,
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["error"]["message"], "Something went wrong")
        self.assertNotIn("details", response.data["error"])
