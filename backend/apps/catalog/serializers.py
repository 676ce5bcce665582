from rest_framework import serializers


class CategorySerializer(serializers.Serializer):
    # id is ignored on create and must match the path id on replace
    id = serializers.IntegerField(required=False)
    name = serializers.CharField(max_length=100)


class ProductSerializer(serializers.Serializer):
    # Flat shape: the category is referenced by id, never nested.
    id = serializers.IntegerField(required=False)
    name = serializers.CharField(max_length=255)
    price = serializers.DecimalField(
        max_digits=18, decimal_places=2, coerce_to_string=False
    )
    categoryId = serializers.IntegerField(source="category_id")
