# pos/chit.py
"""Kitchen chit text for 32-column thermal printers."""

from django.utils import timezone

RULE = "=" * 32
DASH = "-" * 32


def kitchen_chit(order) -> str:
    lines = [
        RULE,
        "         KITCHEN CHIT",
        RULE,
        "",
        f"TABLE: {order.table_number}",
        f"ORDER: {order.order_number}",
        f"TIME: {timezone.localtime(order.created_at):%H:%M:%S}",
        f"TYPE: {order.order_type}",
        "",
        DASH,
        "",
    ]

    for item in order.items.select_related("product"):
        lines.append(f"{item.quantity.normalize():f}x {item.product.name}")
        if item.notes:
            lines.append(f"   * {item.notes}")
        lines.append("")

    if order.notes:
        lines.extend([DASH, "ORDER NOTES:", order.notes, ""])

    lines.extend([DASH, "      END OF ORDER", RULE, "", ""])
    return "\n".join(lines)
