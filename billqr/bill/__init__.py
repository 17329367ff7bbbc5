"""Shared-bill package: URL tokens, split calculator, builder, settlement."""

from billqr.bill.builder import build_shared_bill, normalize_draft, random_id, to_int_vnd
from billqr.bill.codec import decode, encode, pack, unpack
from billqr.bill.config_token import encode_config, safe_parse_config
from billqr.bill.settlement import build_payer_payments
from billqr.bill.split import (
    extras_net,
    items_subtotal,
    payer_subtotals,
    payer_totals,
    split_evenly,
)

__all__ = [
    "build_payer_payments",
    "build_shared_bill",
    "decode",
    "encode",
    "encode_config",
    "extras_net",
    "items_subtotal",
    "normalize_draft",
    "pack",
    "payer_subtotals",
    "payer_totals",
    "random_id",
    "safe_parse_config",
    "split_evenly",
    "to_int_vnd",
    "unpack",
]
