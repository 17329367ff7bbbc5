"""Shared fixtures for billqr tests."""

import pytest

from billqr.models.bill import (
    BillExtras,
    BillItem,
    BillOwner,
    SharedBillPayload,
    SplitConfiguration,
    SplitMode,
)


@pytest.fixture
def make_bill():
    """Factory for SharedBillPayload with sensible owner defaults."""

    def _make(items=(), extras=None, bill_name="Dinner", bank="VCB", account="0511000420488"):
        return SharedBillPayload(
            bill_name=bill_name,
            owner=BillOwner(bank=bank, account_number=account),
            items=[
                BillItem(id=item_id, name=name, quantity=qty, unit_price=price)
                for item_id, name, qty, price in items
            ],
            extras=BillExtras(**extras) if extras is not None else None,
        )

    return _make


@pytest.fixture
def pizza_bill(make_bill):
    """Pizza (1000) and three cokes (1500)."""
    return make_bill(
        items=[
            ("pizza", "Pizza", 1, 1000),
            ("coke", "Coke", 3, 500),
        ],
        extras={"tax": 0, "tip": 0, "discount": 0},
    )


@pytest.fixture
def pizza_config():
    """Alice and Bob share the pizza; Alice has the cokes."""
    return SplitConfiguration(
        mode=SplitMode.INDIVIDUAL,
        payers=["Alice", "Bob"],
        assignments={
            "pizza": ["Alice", "Bob"],
            "coke": ["Alice"],
        },
    )
