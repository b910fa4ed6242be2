import django_filters

from modules.customers.models import Customer


class CustomerFilter(django_filters.FilterSet):
    apartment = django_filters.CharFilter(field_name="apartment", lookup_expr="icontains")
    has_dues = django_filters.BooleanFilter(method="filter_has_dues")

    class Meta:
        model = Customer
        fields = ["apartment", "has_dues"]

    def filter_has_dues(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(total_dues__gt=0)
        return queryset.filter(total_dues=0)
