from django.urls import reverse
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse
from .container import build_product_service, build_category_service
from .serializers import ProductSerializer, CategorySerializer
from .mappers import CategoryMapper, ProductMapper
from apps.api.utils import error_response
from apps.api.schemas import ErrorResponseSerializer
from apps.common import get_logger

logger = get_logger(__name__).bind(component="catalog", layer="view")


def _id_mismatch(path_id: int, body_id):
    return error_response(
        "VALIDATION_ERROR",
        "Route id does not match body id",
        {"id": str(path_id), "bodyId": None if body_id is None else str(body_id)},
    )


def _created(request, url_name: str, data, object_id: int) -> Response:
    location = request.build_absolute_uri(reverse(url_name, args=[object_id]))
    return Response(data, status=status.HTTP_201_CREATED, headers={"Location": location})


@extend_schema(tags=["Products"])
class ProductListView(APIView):
    permission_classes = [AllowAny]
    service = build_product_service()
    log = logger.bind(view="ProductListView")

    @extend_schema(
        operation_id="products_list",
        summary="List products",
        responses={200: ProductSerializer(many=True)},
    )
    def get(self, request):
        self.log.debug("Handling product list request")
        data = self.service.list_products()
        return Response(ProductSerializer(data, many=True).data)

    @extend_schema(
        summary="Create product",
        request=ProductSerializer,
        responses={
            201: ProductSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = ProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.log.info(
            "Creating product via API", name=serializer.validated_data.get("name")
        )
        dto = self.service.create_product(
            ProductMapper.from_payload(serializer.validated_data)
        )
        self.log.info("Product created via API", product_id=dto.id)
        return _created(
            request, "api-products-detail", ProductSerializer(dto).data, dto.id
        )


@extend_schema(tags=["Products"])
class ProductDetailView(APIView):
    permission_classes = [AllowAny]
    service = build_product_service()
    log = logger.bind(view="ProductDetailView")

    @extend_schema(
        operation_id="products_retrieve",
        summary="Get product",
        parameters=[OpenApiParameter("product_id", int, OpenApiParameter.PATH)],
        responses={
            200: ProductSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request, product_id: int):
        self.log.debug("Fetching product detail", product_id=product_id)
        dto = self.service.get_product(product_id)
        if not dto:
            return error_response(
                "NOT_FOUND", "Product not found", {"id": str(product_id)}
            )
        return Response(ProductSerializer(dto).data)

    @extend_schema(
        summary="Replace product",
        description="The body id must equal the path id. Every field is overwritten.",
        parameters=[OpenApiParameter("product_id", int, OpenApiParameter.PATH)],
        request=ProductSerializer,
        responses={
            204: None,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def put(self, request, product_id: int):
        serializer = ProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        body_id = serializer.validated_data.get("id")
        if body_id != product_id:
            self.log.info(
                "Product replace rejected: id mismatch",
                product_id=product_id,
                body_id=body_id,
            )
            return _id_mismatch(product_id, body_id)
        replaced = self.service.replace_product(
            product_id, ProductMapper.from_payload(serializer.validated_data)
        )
        if not replaced:
            return error_response(
                "NOT_FOUND", "Product not found", {"id": str(product_id)}
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Delete product",
        parameters=[OpenApiParameter("product_id", int, OpenApiParameter.PATH)],
        responses={
            204: None,
            404: OpenApiResponse(response=ErrorResponseSerializer),
            500: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def delete(self, request, product_id: int):
        self.log.info("Deleting product", product_id=product_id)
        if not self.service.delete_product(product_id):
            return error_response(
                "NOT_FOUND", "Product not found", {"id": str(product_id)}
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Categories"])
class CategoryListView(APIView):
    permission_classes = [AllowAny]
    service = build_category_service()
    log = logger.bind(view="CategoryListView")

    @extend_schema(
        operation_id="categories_list",
        summary="List categories",
        responses={200: CategorySerializer(many=True)},
    )
    def get(self, request):
        self.log.debug("Listing categories")
        data = self.service.list_categories()
        return Response(CategorySerializer(data, many=True).data)

    @extend_schema(
        summary="Create category",
        request=CategorySerializer,
        responses={
            201: CategorySerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = CategorySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = self.service.create_category(
            CategoryMapper.from_payload(serializer.validated_data)
        )
        self.log.info("Category created", category_id=dto.id)
        return _created(
            request, "api-categories-detail", CategorySerializer(dto).data, dto.id
        )


@extend_schema(tags=["Categories"])
class CategoryDetailView(APIView):
    permission_classes = [AllowAny]
    service = build_category_service()
    log = logger.bind(view="CategoryDetailView")

    @extend_schema(
        operation_id="categories_retrieve",
        summary="Get category",
        parameters=[OpenApiParameter("category_id", int, OpenApiParameter.PATH)],
        responses={
            200: CategorySerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request, category_id: int):
        self.log.debug("Fetching category detail", category_id=category_id)
        dto = self.service.get_category(category_id)
        if not dto:
            return error_response(
                "NOT_FOUND", "Category not found", {"id": str(category_id)}
            )
        return Response(CategorySerializer(dto).data)

    @extend_schema(
        summary="Replace category",
        description="The body id must equal the path id.",
        parameters=[OpenApiParameter("category_id", int, OpenApiParameter.PATH)],
        request=CategorySerializer,
        responses={
            204: None,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def put(self, request, category_id: int):
        serializer = CategorySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        body_id = serializer.validated_data.get("id")
        if body_id != category_id:
            self.log.info(
                "Category replace rejected: id mismatch",
                category_id=category_id,
                body_id=body_id,
            )
            return _id_mismatch(category_id, body_id)
        replaced = self.service.replace_category(
            category_id, CategoryMapper.from_payload(serializer.validated_data)
        )
        if not replaced:
            return error_response(
                "NOT_FOUND", "Category not found", {"id": str(category_id)}
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Delete category",
        description="Products in the category are deleted with it.",
        parameters=[OpenApiParameter("category_id", int, OpenApiParameter.PATH)],
        responses={
            204: None,
            404: OpenApiResponse(response=ErrorResponseSerializer),
            500: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def delete(self, request, category_id: int):
        self.log.info("Deleting category", category_id=category_id)
        if not self.service.delete_category(category_id):
            return error_response(
                "NOT_FOUND", "Category not found", {"id": str(category_id)}
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
