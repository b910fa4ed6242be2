import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    """Refinements on top of the role-scoped list.

    ``status``, ``customer`` and the date range are applied by the service;
    these narrow the result further.
    """

    source = django_filters.CharFilter(field_name="source", lookup_expr="iexact")
    payment_method = django_filters.CharFilter(
        field_name="payment_method", lookup_expr="iexact"
    )
    payment_status = django_filters.CharFilter(
        field_name="payment_status", lookup_expr="iexact"
    )
    delivery_partner = django_filters.UUIDFilter(field_name="delivery_partner_id")
    min_total = django_filters.NumberFilter(
        field_name="invoice_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="invoice_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "source",
            "payment_method",
            "payment_status",
            "delivery_partner",
            "min_total",
            "max_total",
        ]
