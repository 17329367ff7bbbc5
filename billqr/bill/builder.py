"""
Bill Builder

Turns loosely-typed owner input (form fields, pasted JSON) into a
SharedBillPayload ready for the codec. Types are coerced; values that still
break the BillDraft limits raise. Run BillValidator.validate_draft first
when the input should be reported on rather than fixed up.
"""

import math
import re
import secrets
import string
from typing import Any, Optional

from billqr.bill.split import round_half_up
from billqr.config import get_settings
from billqr.models.bill import (
    SCHEMA_VERSION,
    BillDraft,
    BillExtras,
    BillItem,
    BillOwner,
    SharedBillPayload,
)


_ID_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
_WHITESPACE = re.compile(r"\s+")


def random_id(length: Optional[int] = None) -> str:
    """Random alphanumeric id (default length from settings)."""
    if length is None:
        length = get_settings().share.item_id_length
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def to_int_vnd(value: Any) -> int:
    """
    Coerce a number or numeric string to integer VND.

    Floats round half-up; strings may use commas as thousands separators.
    Anything unparseable (including None and booleans) becomes 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return round_half_up(value) if math.isfinite(value) else 0
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.replace(",", "").strip())
        except ValueError:
            return 0
        return round_half_up(number) if math.isfinite(number) else 0
    return 0


def _optional_amount(value: Any) -> Optional[int]:
    return max(0, to_int_vnd(value)) if value is not None else None


def normalize_draft(data: dict[str, Any]) -> BillDraft:
    """
    Normalize raw bill input.

    Expects keys billName / items[{name, qty, unitPrice}] / extras, the
    shape used by bill entry forms; snake_case keys are accepted too.

    Raises:
        pydantic.ValidationError: coerced values still break the draft
            limits (no items, blank item names, amounts over the maximum).
            Run BillValidator.validate_draft first to report these.
    """
    default_name = get_settings().share.default_bill_name
    bill_name = str(data.get("billName", data.get("bill_name")) or "").strip() or default_name

    items = []
    for raw in data.get("items") or []:
        items.append({
            "name": str(raw.get("name") or "").strip(),
            "qty": max(1, to_int_vnd(raw.get("qty", raw.get("quantity")))),
            "unitPrice": max(0, to_int_vnd(raw.get("unitPrice", raw.get("unit_price")))),
        })

    extras = None
    raw_extras = data.get("extras")
    if isinstance(raw_extras, dict):
        extras = {
            key: _optional_amount(raw_extras.get(key))
            for key in ("tax", "tip", "discount")
        }

    return BillDraft.model_validate({"billName": bill_name, "items": items, "extras": extras})


def build_shared_bill(
    draft: BillDraft,
    owner_bank: str,
    owner_account_number: str,
) -> SharedBillPayload:
    """
    Create the shareable bill: fresh item ids, trimmed owner bank, and an
    account number with all whitespace removed.
    """
    extras = None
    if draft.extras is not None:
        extras = BillExtras(
            tax=draft.extras.tax,
            tip=draft.extras.tip,
            discount=draft.extras.discount,
        )

    return SharedBillPayload(
        schema_version=SCHEMA_VERSION,
        bill_name=draft.bill_name,
        owner=BillOwner(
            bank=owner_bank.strip(),
            account_number=_WHITESPACE.sub("", owner_account_number),
        ),
        items=[
            BillItem(
                id=random_id(),
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in draft.items
        ],
        extras=extras,
    )
