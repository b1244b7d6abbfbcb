"""
Legacy order item format.

Orders created before order_items existed stored their lines as one
comma-separated string on the order: "productId:7kg,productId:25kg".
"""

import logging


def parse_order_items(order_items: str | None) -> list[tuple[str, float]]:
    """
    Parse a legacy CSV item list.

    Malformed entries are skipped and logged, the rest are returned.

    Examples:
        >>> parse_order_items("p1:7kg,p2:2.5kg")
        [('p1', 7.0), ('p2', 2.5)]
        >>> parse_order_items("")
        []

    Returns:
        List of (product_id, quantity_kg)
    """
    if not order_items:
        return []

    parsed = []
    for entry in order_items.split(","):
        entry = entry.strip()
        if not entry:
            continue

        product_id, separator, quantity = entry.rpartition(":")
        quantity = quantity.strip().lower().removesuffix("kg").strip()
        try:
            quantity_kg = float(quantity)
        except ValueError:
            quantity_kg = None

        if not separator or not product_id.strip() or quantity_kg is None or quantity_kg < 0:
            logging.warning(f"⚠️ Skipping malformed legacy order item entry: {entry!r}")
            continue
        parsed.append((product_id.strip(), quantity_kg))
    return parsed


def format_order_items(items: list[tuple[str, float]]) -> str:
    """
    Inverse of parse_order_items().

    Whole kg are written without a decimal part ("p1:7kg").
    """
    entries = []
    for product_id, quantity_kg in items:
        quantity = int(quantity_kg) if float(quantity_kg).is_integer() else quantity_kg
        entries.append(f"{product_id}:{quantity}kg")
    return ",".join(entries)
