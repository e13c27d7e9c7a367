from __future__ import annotations

from typing import Any


# Largest amount accepted for a single unit price (whole currency units)
MAX_UNIT_PRICE = 1_000_000

# Largest quantity accepted on a single order line
MAX_LINE_QTY = 1_000


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing order/refund."""


class PreconditionError(ValueError):
    """Valid request, wrong state (e.g., delivering a PENDING order)."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., editing a delivered order)."""


class ExternalCollaboratorError(RuntimeError):
    """Ledger export or other outbound dependency failed."""


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion.

    Accepts ints, integral floats (80.0) and plain digit strings. Rejects bools,
    fractional values and scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a whole number")
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


def _coerce_str(value: Any, field: str) -> str:
    if value is None:
        raise ValidationError(f"{field} is required")
    s = str(value).strip()
    if not s:
        raise ValidationError(f"{field} cannot be blank")
    if len(s) > 120:
        raise ValidationError(f"{field} exceeds max length 120")
    return s


def _coerce_add_ons(raw: Any, field: str) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValidationError(f"{field} must be a list")
    names = sorted({str(v).strip() for v in raw if str(v).strip()})
    return names


def normalize_order_item(raw: Any, position: int) -> dict:
    """
    Validate one order line and return its canonical form:
    {name, category, qty, price, addOns}.

    `dressings` is accepted as an alias of `addOns`; `unitPrice` of `price`.
    """
    label = f"items[{position}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"{label} must be an object")

    name = _coerce_str(raw.get("name"), f"{label}.name")
    category = _coerce_str(raw.get("category"), f"{label}.category")

    if "qty" not in raw:
        raise ValidationError(f"{label}.qty is required")
    qty = coerce_int(raw.get("qty"), f"{label}.qty")
    if qty <= 0:
        raise ValidationError(f"{label}.qty must be > 0")
    if qty > MAX_LINE_QTY:
        raise ValidationError(f"{label}.qty cannot exceed {MAX_LINE_QTY}")

    price_raw = raw.get("price", raw.get("unitPrice"))
    if price_raw is None:
        raise ValidationError(f"{label}.price is required")
    price = coerce_int(price_raw, f"{label}.price")
    if price < 0:
        raise ValidationError(f"{label}.price must be >= 0")
    if price > MAX_UNIT_PRICE:
        raise ValidationError(f"{label}.price cannot exceed {MAX_UNIT_PRICE}")

    add_ons = _coerce_add_ons(raw.get("addOns", raw.get("dressings")), f"{label}.addOns")

    return {
        "name": name,
        "category": category,
        "qty": qty,
        "price": price,
        "addOns": add_ons,
    }


def normalize_order_items(raw: Any) -> list[dict]:
    if raw is None:
        raise ValidationError("items are required")
    if not isinstance(raw, list):
        raise ValidationError("items must be a list")
    if not raw:
        raise ValidationError("items are required")
    return [normalize_order_item(item, i) for i, item in enumerate(raw)]


def normalize_categories(raw: Any, items: list[dict]) -> list[str]:
    """Distinct categories in first-seen order; derived from items when omitted."""
    if raw is None:
        source = [item["category"] for item in items]
    else:
        if not isinstance(raw, list):
            raise ValidationError("categories must be a list")
        source = [_coerce_str(c, "categories[]") for c in raw]
    return list(dict.fromkeys(source))


def normalize_refund_request(raw: Any, position: int) -> dict:
    """Validate one requested refund line: {name, qty, addOns|None}."""
    label = f"refundedItems[{position}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"{label} must be an object")

    name = _coerce_str(raw.get("name"), f"{label}.name")
    if "qty" not in raw:
        raise ValidationError(f"{label}.qty is required")
    qty = coerce_int(raw.get("qty"), f"{label}.qty")
    if qty <= 0:
        raise ValidationError(f"{label}.qty must be > 0")

    add_ons = None
    if raw.get("addOns") is not None or raw.get("dressings") is not None:
        add_ons = _coerce_add_ons(raw.get("addOns", raw.get("dressings")), f"{label}.addOns")

    return {"name": name, "qty": qty, "addOns": add_ons}
