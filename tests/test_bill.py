"""
Tests for the shared-bill core.

Covers the URL token codec, the split-configuration token, the split
calculator, draft normalization and per-payer settlement.
"""

import base64
import json
import re
import zlib

import msgpack
from pydantic import ValidationError
import pytest

from billqr.bill import codec
from billqr.bill.builder import build_shared_bill, normalize_draft, random_id, to_int_vnd
from billqr.bill.config_token import encode_config, safe_parse_config
from billqr.bill.settlement import build_payer_payments, payment_note
from billqr.bill.split import (
    extras_net,
    items_subtotal,
    payer_subtotals,
    payer_totals,
    round_half_up,
    split_evenly,
)
from billqr.emv.payload import parse_payload
from billqr.errors import CorruptTokenError, TokenError, UnknownBankError, UnsupportedVersionError
from billqr.models.bill import (
    BillExtras,
    BillOwner,
    SharedBillPayload,
    SplitConfiguration,
    SplitMode,
)


def _config(payers, assignments=None, mode=SplitMode.INDIVIDUAL):
    return SplitConfiguration(mode=mode, payers=payers, assignments=assignments)


class TestBillCodec:
    """Tests for encode/decode of shared-bill URL tokens."""

    def test_round_trip_with_extras(self, make_bill):
        """Every field survives a round trip."""
        bill = make_bill(
            items=[
                ("a1", "Phở bò", 2, 65000),
                ("b2", "Trà đá", 4, 5000),
            ],
            extras={"tax": 0, "tip": 50000, "discount": 20000},
            bill_name="Ăn trưa",
        )
        assert codec.decode(codec.encode(bill)) == bill

    def test_round_trip_without_extras(self, make_bill):
        """No extras stays no extras."""
        bill = make_bill(items=[("a1", "Coffee", 1, 30000)])
        decoded = codec.decode(codec.encode(bill))
        assert decoded == bill
        assert decoded.extras is None

    def test_round_trip_partial_extras(self, make_bill):
        """Absent extras fields stay absent."""
        bill = make_bill(items=[("a1", "Coffee", 1, 30000)], extras={"tip": 10000})
        decoded = codec.decode(codec.encode(bill))
        assert decoded.extras == BillExtras(tip=10000)
        assert decoded.extras.tax is None
        assert decoded.extras.discount is None

    def test_empty_extras_normalized_away(self, make_bill):
        """An extras object with nothing set means no extras."""
        bill = make_bill(items=[("a1", "Coffee", 1, 30000)], extras={})
        assert bill.extras is None

    def test_token_is_url_safe(self, make_bill):
        """Tokens use only the base64url alphabet with no padding."""
        bill = make_bill(items=[(f"id{i}", f"Item {i}", i + 1, 1000 * i) for i in range(30)])
        token = codec.encode(bill)
        assert re.fullmatch(r"[A-Za-z0-9_-]+", token)

    def test_pack_layout(self, make_bill):
        """Fixed-position packed form."""
        bill = make_bill(
            items=[("x", "Item", 1, 1)],
            extras={"tip": 5},
            bill_name="Test",
            account="123",
        )
        assert codec.pack(bill) == [
            1,
            "Test",
            "VN",
            704,
            ["VCB", "123"],
            [["x", "Item", 1, 1]],
            [None, 5, None],
        ]

    def test_unsupported_version(self, make_bill):
        """A token written with another schema version is refused."""
        bill = make_bill(items=[("x", "Item", 1, 1)]).model_copy(update={"schema_version": 2})
        token = codec.encode(bill)
        with pytest.raises(UnsupportedVersionError, match="Unsupported schema version"):
            codec.decode(token)

    def test_bad_alphabet(self):
        """Characters outside base64url are rejected."""
        with pytest.raises(CorruptTokenError):
            codec.decode("***NOT_BASE64URL***")
        with pytest.raises(CorruptTokenError):
            codec.decode("")

    def test_truncated_token(self, make_bill):
        """A cut-off token does not decode."""
        token = codec.encode(make_bill(items=[("x", "Item", 1, 1000)]))
        with pytest.raises(CorruptTokenError):
            codec.decode(token[:-5])

    def test_mutated_last_character(self, make_bill):
        """A changed final character fails cleanly or still yields a well-formed bill."""
        token = codec.encode(make_bill(items=[("x", "Item", 1, 1000)]))
        replacement = "A" if token[-1] != "A" else "B"
        try:
            decoded = codec.decode(token[:-1] + replacement)
        except TokenError:
            return
        assert isinstance(decoded, SharedBillPayload)

    def test_trailing_newline_rejected(self, make_bill):
        """Whitespace after the token is not part of the alphabet."""
        token = codec.encode(make_bill(items=[("x", "Item", 1, 1000)]))
        with pytest.raises(CorruptTokenError):
            codec.decode(token + "\n")

    def test_decodes_raw_deflate_token(self):
        """Tokens from other raw-deflate encoders of the same layout decode."""
        packed = [
            1,
            "Pizza 4P's",
            "VN",
            704,
            ["VCB", "0511000420488"],
            [["i1", "Margherita Pizza", 1, 189000], ["i2", "Coke", 3, 25000]],
            [0, 50000, 20000],
        ]
        compressor = zlib.compressobj(9, zlib.DEFLATED, -15)
        deflated = compressor.compress(msgpack.packb(packed)) + compressor.flush()
        token = base64.urlsafe_b64encode(deflated).decode("ascii").rstrip("=")

        bill = codec.decode(token)
        assert bill.bill_name == "Pizza 4P's"
        assert bill.owner == BillOwner(bank="VCB", account_number="0511000420488")
        assert [(i.id, i.name, i.quantity, i.unit_price) for i in bill.items] == [
            ("i1", "Margherita Pizza", 1, 189000),
            ("i2", "Coke", 3, 25000),
        ]
        assert bill.extras == BillExtras(tax=0, tip=50000, discount=20000)

    def test_token_has_no_zlib_header(self, make_bill):
        """Tokens carry a bare deflate stream."""
        token = codec.encode(make_bill(items=[("x", "Item", 1, 1000)]))
        raw = codec.b64url_decode(token)
        assert zlib.decompressobj(-15).decompress(raw) == msgpack.packb(
            codec.pack(make_bill(items=[("x", "Item", 1, 1000)])), use_bin_type=True
        )

    def test_not_a_bill(self):
        """Valid compression around the wrong content."""
        with pytest.raises(CorruptTokenError):
            codec.decode(codec.seal_bytes(msgpack.packb("hello")))
        with pytest.raises(CorruptTokenError):
            codec.decode(codec.seal_bytes(b"\xc1"))

    def test_unpack_shape_errors(self):
        """Structural mismatches become CorruptTokenError."""
        with pytest.raises(CorruptTokenError):
            codec.unpack([])
        with pytest.raises(CorruptTokenError):
            codec.unpack([1, "Bill"])
        with pytest.raises(CorruptTokenError):
            codec.unpack([1, "B", "VN", 704, ["VCB", "1"], [["x", "I", 0, 1]], None])
        with pytest.raises(CorruptTokenError):
            codec.unpack([1, "B", "VN", 704, ["VCB", "1"], [["x", "I", 1]], None])

    def test_boolean_version_rejected(self):
        """True is not version 1."""
        with pytest.raises(UnsupportedVersionError):
            codec.unpack([True, "B", "VN", 704, ["VCB", "1"], [], None])


class TestConfigToken:
    """Tests for the lenient split-configuration token."""

    @pytest.mark.parametrize("token", [None, "", "***NOT_LZ***", "abcd"])
    def test_unusable_tokens_return_none(self, token):
        """Missing or damaged tokens are ignored."""
        assert safe_parse_config(token) is None

    def test_non_object_returns_none(self):
        """Valid JSON that is not an object is ignored."""
        assert safe_parse_config(codec.seal_bytes(b"[1, 2]")) is None
        assert safe_parse_config(codec.seal_bytes(b"not json")) is None

    def test_individual_round_trip(self):
        """Individual mode keeps assignments."""
        config = _config(["Alice", "Bình"], {"a1": ["Alice"], "b2": ["Alice", "Bình"]})
        assert safe_parse_config(encode_config(config)) == config

    def test_even_mode_drops_assignments(self):
        """Even mode does not carry assignments."""
        config = _config(["A", "B"], {"a1": ["A"]}, mode=SplitMode.EVEN)
        parsed = safe_parse_config(encode_config(config))
        assert parsed.mode == SplitMode.EVEN
        assert parsed.payers == ["A", "B"]
        assert parsed.assignments is None

    def test_individual_without_assignments(self):
        """Missing assignments encode as an empty map."""
        parsed = safe_parse_config(encode_config(_config(["A"])))
        assert parsed.assignments == {}

    def test_sanitizes_junk(self):
        """Non-string and blank names are dropped; names are not trimmed."""
        token = encode_config({
            "mode": "individual",
            "payers": ["  Alice  ", "", "   ", 42, None, "Bob"],
            "assignments": {"a": ["Alice", "Bob", 7], "b": "nope"},
        })
        parsed = safe_parse_config(token)
        assert parsed.payers == ["  Alice  ", "Bob"]
        assert parsed.assignments == {"a": ["Alice", "Bob"], "b": []}

    def test_unknown_mode_defaults_to_individual(self):
        """Anything but 'even' is individual."""
        parsed = safe_parse_config(encode_config({"mode": "weird", "payers": ["A"]}))
        assert parsed.mode == SplitMode.INDIVIDUAL
        assert parsed.assignments is None

    def test_compact_json(self):
        """Config JSON has no whitespace between tokens."""
        token = encode_config(_config(["A"], {"x": ["A"]}))
        text = codec.open_bytes(token).decode("utf-8")
        assert text == '{"mode":"individual","payers":["A"],"assignments":{"x":["A"]}}'
        assert json.loads(text)["payers"] == ["A"]

    def test_token_is_base64url(self):
        """Config tokens use the same alphabet as bill tokens."""
        token = encode_config(_config(["Alice", "Bình"], {"a1": ["Alice"]}))
        assert re.fullmatch(r"[A-Za-z0-9_-]+", token)

    def test_lzstring_link_returns_none(self):
        """Links in LZString URI-component form are not readable."""
        assert safe_parse_config("N4IgzgpgTgHgxgCwPYBMCeICuA7AhgGwGMAXEALg+$$") is None


class TestSplitCalculator:
    """Tests for the split calculator."""

    def test_round_half_up(self):
        """Halves round toward positive infinity."""
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(-0.5) == 0
        assert round_half_up(-1.5) == -1
        assert round_half_up(1.49) == 1

    def test_split_evenly_remainder_to_first(self):
        """Remainder goes one unit at a time from the first payer."""
        assert split_evenly(1001, ["Alice", "Bob"]) == {"Alice": 501, "Bob": 500}
        assert split_evenly(10, ["A", "B", "C"]) == {"A": 4, "B": 3, "C": 3}
        assert split_evenly(0, ["A", "B"]) == {"A": 0, "B": 0}

    def test_split_evenly_negative_total(self):
        """Floor division keeps the sum exact for negative totals."""
        shares = split_evenly(-5, ["A", "B"])
        assert shares == {"A": -2, "B": -3}
        assert sum(shares.values()) == -5

    def test_split_evenly_no_payers(self):
        """Nothing to split between."""
        assert split_evenly(100, []) == {}

    def test_items_subtotal_and_extras(self, pizza_bill, make_bill):
        """Subtotal and net extras."""
        assert items_subtotal(pizza_bill) == 2500
        assert extras_net(pizza_bill) == 0
        assert items_subtotal(None) == 0
        assert extras_net(None) == 0

        discounted = make_bill(items=[("a", "A", 1, 100)], extras={"tax": 10, "discount": 50})
        assert extras_net(discounted) == -40

    def test_individual_subtotals(self, pizza_bill, pizza_config):
        """Shared pizza and Alice's cokes."""
        assert payer_subtotals(pizza_bill, pizza_config) == {"Alice": 2000, "Bob": 500}

    def test_empty_assignment_falls_back_to_first_payer(self, pizza_bill):
        """Unassigned items go to the first payer."""
        config = _config(["Alice", "Bob"], {"pizza": [], "coke": ["Bob"]})
        assert payer_subtotals(pizza_bill, config) == {"Alice": 1000, "Bob": 1500}

    def test_removed_assignee_is_ignored(self, pizza_bill):
        """Assignees no longer in the payer list do not count."""
        config = _config(["Alice", "Bob"], {"pizza": ["Carol"], "coke": ["Carol", "Bob"]})
        assert payer_subtotals(pizza_bill, config) == {"Alice": 1000, "Bob": 1500}

    def test_even_mode_ignores_assignments(self, pizza_bill):
        """Even mode splits the items subtotal across everyone."""
        config = _config(["A", "B", "C"], {"pizza": ["A"]}, mode=SplitMode.EVEN)
        assert payer_subtotals(pizza_bill, config) == {"A": 834, "B": 833, "C": 833}

    def test_no_payers(self, pizza_bill):
        """No payers means no totals."""
        assert payer_subtotals(pizza_bill, _config([])) == {}
        assert payer_totals(pizza_bill, _config([])) == {}

    def test_rounding_correction_to_first_payer(self, make_bill):
        """Both shares round up; the first payer absorbs the excess."""
        bill = make_bill(
            items=[("a", "A", 1, 1000), ("b", "B", 1, 1000)],
            extras={"tip": 1},
        )
        config = _config(["Alice", "Bob"], {"a": ["Alice"], "b": ["Bob"]})

        totals = payer_totals(bill, config)
        assert totals == {"Alice": 1000, "Bob": 1001}
        assert sum(totals.values()) == 2001

    def test_extras_only_bill(self, make_bill):
        """Zero item cost splits extras evenly."""
        bill = make_bill(items=[("a", "Free", 1, 0)], extras={"tax": 5})
        assert payer_totals(bill, _config(["A", "B"])) == {"A": 3, "B": 2}

    def test_proportional_extras(self, pizza_bill, make_bill):
        """Extras follow each payer's share of the subtotal."""
        bill = make_bill(
            items=[("pizza", "Pizza", 1, 1000), ("coke", "Coke", 3, 500)],
            extras={"tax": 250, "tip": 0, "discount": 0},
        )
        config = _config(["Alice", "Bob"], {"pizza": ["Alice", "Bob"], "coke": ["Alice"]})
        assert payer_totals(bill, config) == {"Alice": 2200, "Bob": 550}

    def test_large_discount_sums_to_grand_total(self, make_bill):
        """Totals always sum to subtotal plus net extras."""
        bill = make_bill(
            items=[("a", "A", 1, 100), ("b", "B", 1, 100)],
            extras={"discount": 300},
        )
        config = _config(["Alice", "Bob"], {"a": ["Alice"], "b": ["Bob"]})
        totals = payer_totals(bill, config)
        assert totals == {"Alice": -100, "Bob": 0}
        assert sum(totals.values()) == items_subtotal(bill) + extras_net(bill)

    def test_missing_bill(self):
        """No bill yields zero per payer."""
        assert payer_totals(None, _config(["A", "B"])) == {"A": 0, "B": 0}


class TestBillBuilder:
    """Tests for draft normalization and shared-bill construction."""

    @pytest.mark.parametrize("value, expected", [
        (100, 100),
        (100.6, 101),
        (100.2, 100),
        (2.5, 3),
        ("1,000", 1000),
        ("25,000,000", 25000000),
        ("  500  ", 500),
        ("12.5", 13),
        ("abc", 0),
        ("", 0),
        (None, 0),
        (True, 0),
        (float("nan"), 0),
        ("inf", 0),
        (10 ** 18 + 1, 10 ** 18 + 1),
    ])
    def test_to_int_vnd(self, value, expected):
        """Coercion of form input to integer VND."""
        assert to_int_vnd(value) == expected

    def test_normalize_draft(self):
        """Trim names, coerce numbers, keep absent extras absent."""
        draft = normalize_draft({
            "billName": "  Lunch  ",
            "items": [
                {"name": " Phở ", "qty": "2", "unitPrice": "50,000"},
                {"name": "Water", "qty": 0, "unitPrice": -5},
            ],
            "extras": {"tax": "10000", "discount": -1},
        })
        assert draft.bill_name == "Lunch"
        assert [(i.name, i.quantity, i.unit_price) for i in draft.items] == [
            ("Phở", 2, 50000),
            ("Water", 1, 0),
        ]
        assert draft.extras.tax == 10000
        assert draft.extras.tip is None
        assert draft.extras.discount == 0

    def test_normalize_draft_defaults(self):
        """Blank name falls back to the default; no extras stays None."""
        draft = normalize_draft({"billName": "   ", "items": [{"name": "Tea", "qty": 1, "unitPrice": 0}]})
        assert draft.bill_name == "Bill"
        assert len(draft.items) == 1
        assert draft.extras is None

    @pytest.mark.parametrize("data", [
        {"billName": "Empty", "items": []},
        {"billName": "Blank item", "items": [{"name": "   ", "qty": 1, "unitPrice": 1}]},
        {"billName": "Too dear", "items": [{"name": "Car", "qty": 1, "unitPrice": "150,000,000"}]},
        {"billName": "x" * 81, "items": [{"name": "A", "qty": 1, "unitPrice": 1}]},
    ])
    def test_normalize_draft_enforces_limits(self, data):
        """Coercion does not lift the draft limits."""
        with pytest.raises(ValidationError):
            normalize_draft(data)

    def test_normalize_draft_snake_case(self):
        """snake_case keys are accepted."""
        draft = normalize_draft({
            "bill_name": "Dinner",
            "items": [{"name": "Rice", "quantity": 3, "unit_price": 10000}],
        })
        assert draft.bill_name == "Dinner"
        assert draft.items[0].quantity == 3
        assert draft.items[0].unit_price == 10000

    def test_build_shared_bill(self):
        """Ids are generated and owner details cleaned."""
        draft = normalize_draft({
            "billName": "Dinner",
            "items": [{"name": "A", "qty": 1, "unitPrice": 1}, {"name": "B", "qty": 1, "unitPrice": 2}],
            "extras": {"tip": 5},
        })
        bill = build_shared_bill(draft, "  Vietcombank ", "0511 0004 20488\n")

        assert bill.schema_version == 1
        assert bill.owner.bank == "Vietcombank"
        assert bill.owner.account_number == "0511000420488"
        assert bill.extras.tip == 5
        ids = [item.id for item in bill.items]
        assert len(set(ids)) == 2
        assert all(re.fullmatch(r"[0-9a-zA-Z]{10}", item_id) for item_id in ids)

    def test_built_bill_round_trips(self):
        """A freshly built bill survives the codec."""
        draft = normalize_draft({"billName": "Trip", "items": [{"name": "Fuel", "qty": 1, "unitPrice": 350000}]})
        bill = build_shared_bill(draft, "MB", "123")
        assert codec.decode(codec.encode(bill)) == bill

    def test_random_id_length(self):
        """Explicit length wins over the setting."""
        assert len(random_id(5)) == 5
        assert random_id(16) != random_id(16)


class TestSettlement:
    """Tests for per-payer payment payloads."""

    def test_one_payload_per_payer(self, pizza_bill, pizza_config):
        """Each payer gets a payload for their total."""
        payments = build_payer_payments(pizza_bill, pizza_config)

        assert [(p.payer, p.amount) for p in payments] == [("Alice", 2000), ("Bob", 500)]
        for payment in payments:
            parsed = parse_payload(payment.payload)
            assert parsed.amount == str(payment.amount)
            assert parsed.account_number == "0511000420488"
            assert parsed.bank_identifier == "970436"
            assert parsed.note == payment_note(pizza_bill, payment.payer)
            assert parsed.checksum_valid
            assert payment.bank.code == "VCB"

    def test_payment_note(self, pizza_bill):
        """Note names the bill and the payer."""
        assert payment_note(pizza_bill, "Alice") == "Dinner - Alice"

    def test_unknown_owner_bank(self, make_bill, pizza_config):
        """Owner bank must resolve."""
        bill = make_bill(items=[("pizza", "Pizza", 1, 1000)], bank="Nowhere Bank")
        with pytest.raises(UnknownBankError):
            build_payer_payments(bill, pizza_config)
