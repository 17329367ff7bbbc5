"""
Split Calculator

Pure functions turning a shared bill and a split configuration into
integer VND amounts per payer.

Rules used throughout:
- Even splits floor-divide and hand the remainder out one unit at a
  time, starting from the FIRST payer.
- Extras (tax + tip - discount) are allocated in proportion to each
  payer's items subtotal, rounded half-up.
- Whatever rounding leaves over (positive or negative) is added entirely
  to the first payer, so totals always sum to the grand total.
"""

import math
from typing import Optional, Sequence

from billqr.models.bill import SharedBillPayload, SplitConfiguration, SplitMode


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return math.floor(value + 0.5)


def items_subtotal(bill: Optional[SharedBillPayload]) -> int:
    """Sum of quantity x unit price over all items."""
    if bill is None:
        return 0
    return sum(item.line_total for item in bill.items)


def extras_net(bill: Optional[SharedBillPayload]) -> int:
    """tax + tip - discount. May be negative; not clamped."""
    if bill is None or bill.extras is None:
        return 0
    extras = bill.extras
    return (extras.tax or 0) + (extras.tip or 0) - (extras.discount or 0)


def split_evenly(total: int, payers: Sequence[str]) -> dict[str, int]:
    """
    Split an integer among payers.

    >>> split_evenly(10, ["A", "B", "C"])
    {'A': 4, 'B': 3, 'C': 3}
    """
    count = max(1, len(payers))
    base = total // count
    remainder = total - base * count

    shares = {}
    for payer in payers:
        shares[payer] = base + (1 if remainder > 0 else 0)
        remainder -= 1
    return shares


def _assignees(item_id: str, config: SplitConfiguration) -> list[str]:
    """Payers an item is split between, falling back to the first payer."""
    fallback = [config.payers[0]] if config.payers else []

    explicit = (config.assignments or {}).get(item_id) or []
    current = [name for name in explicit if name in config.payers]
    return current or fallback


def payer_subtotals(
    bill: Optional[SharedBillPayload],
    config: SplitConfiguration,
) -> dict[str, int]:
    """
    Items-only subtotal per payer.

    individual: each item's line total is split evenly among its assigned
        payers that are still in the payer list; unassigned items go to
        the first payer.
    even: the whole items subtotal is split evenly across all payers.
    """
    result = {payer: 0 for payer in config.payers}
    if bill is None:
        return result

    if config.mode == SplitMode.EVEN:
        result.update(split_evenly(items_subtotal(bill), config.payers))
        return result

    for item in bill.items:
        shares = split_evenly(item.line_total, _assignees(item.id, config))
        for payer, amount in shares.items():
            result[payer] = result.get(payer, 0) + amount
    return result


def payer_totals(
    bill: Optional[SharedBillPayload],
    config: SplitConfiguration,
) -> dict[str, int]:
    """
    Grand total per payer: items subtotal plus a proportional share of
    extras. Values always sum to items_subtotal + extras_net.

    When there are no item costs, extras are split evenly instead.
    """
    totals = {payer: 0 for payer in config.payers}
    if not config.payers:
        return totals

    subtotal = items_subtotal(bill)
    extras = extras_net(bill)

    if subtotal == 0:
        totals.update(split_evenly(extras, config.payers))
        return totals

    subtotals = payer_subtotals(bill, config)
    for payer in config.payers:
        payer_subtotal = subtotals.get(payer, 0)
        extras_share = round_half_up(payer_subtotal / subtotal * extras)
        totals[payer] = max(0, payer_subtotal + extras_share)

    difference = (subtotal + extras) - sum(totals.values())
    if difference != 0:
        first = config.payers[0]
        totals[first] = totals[first] + difference

    return totals
