import html

import bleach
from rest_framework import serializers

from portal.services.pricing_tree import ITEM_TYPES, TYPE_ALIASES


def _clean(v):
    # Strip markup but keep literal "&" and "<" as typed.
    return html.unescape(bleach.clean((v or '').strip(), tags=[], strip=True))


class PricingSaveSerializer(serializers.Serializer):
    """Body of a bulk save: the whole forest plus the version it was read at."""
    data = serializers.ListField(child=serializers.DictField(), allow_empty=True)
    version = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class PricingItemSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, max_length=128)
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)
    type = serializers.ChoiceField(choices=list(ITEM_TYPES) + list(TYPE_ALIASES))
    basePrice = serializers.FloatField(min_value=0, default=0)
    isRequired = serializers.BooleanField(default=True)
    isRecurring = serializers.BooleanField(default=True)
    parentId = serializers.CharField(required=False, allow_null=True, max_length=128)
    sortOrder = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    colorTheme = serializers.CharField(required=False, max_length=32)

    def validate_name(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Name is required')
        return v

    def validate_description(self, v):
        if v is None:
            return None
        return _clean(v)


class QuoteSerializer(serializers.Serializer):
    selected = serializers.ListField(child=serializers.CharField(), allow_empty=True, default=list)
