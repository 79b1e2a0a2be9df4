from rest_framework import serializers


class BaseModelSerializer(serializers.ModelSerializer):
    """
    Base serializer for read models.

    Meta may declare ``select_related_fields`` and ``prefetch_related_fields``
    which ReadOnlyBaseViewSet applies to its queryset.
    """

    class Meta:
        select_related_fields = []
        prefetch_related_fields = []


class MoneyField(serializers.DecimalField):
    """Decimal money field rendered as a string with two places."""

    def __init__(self, **kwargs):
        kwargs.setdefault("max_digits", 10)
        kwargs.setdefault("decimal_places", 2)
        super().__init__(**kwargs)
