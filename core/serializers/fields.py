import bleach
from rest_framework import serializers


class CleanCharField(serializers.CharField):
    """CharField that strips any markup from submitted text.

    Optional fields that accept ``null`` store an empty string instead,
    matching the blank-not-null text columns of the models.
    """

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return bleach.clean(value, tags=set(), strip=True).strip()

    def run_validation(self, data=serializers.empty):
        value = super().run_validation(data)
        if value is None and self.allow_null:
            return ''
        return value


class ListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    status = serializers.CharField(max_length=20, required=False, allow_blank=True)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)


def paginate(qs, params: dict):
    page = params.get('page') or 1
    page_size = params.get('pageSize') or 0
    if page_size:
        start = (page - 1) * page_size
        return qs[start:start + page_size]
    return qs
