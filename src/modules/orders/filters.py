import django_filters

from modules.orders.constants import OrderStatus
from modules.orders.models import OrderRecord


class OrderFilter(django_filters.FilterSet):
    member_id = django_filters.NumberFilter(field_name="member_id")
    status = django_filters.ChoiceFilter(
        field_name="status", choices=OrderStatus.choices
    )

    class Meta:
        model = OrderRecord
        fields = ["member_id", "status"]
