"""
Settlement

Closes the loop between the split calculator and the payload builder:
one payment payload per payer, each paying the bill owner that payer's
total.
"""

from typing import Sequence

from billqr.bill.split import payer_totals
from billqr.emv.banks import BANKS
from billqr.emv.payload import build_payload
from billqr.logger import get_logger
from billqr.models.bank import BankRecord
from billqr.models.bill import SharedBillPayload, SplitConfiguration
from billqr.models.payment import PayerPayment, QrPaymentRequest


logger = get_logger(__name__)


def payment_note(bill: SharedBillPayload, payer: str) -> str:
    """Transfer note shown to the owner, e.g. "Pizza night - Alice"."""
    return f"{bill.bill_name} - {payer}"


def build_payer_payments(
    bill: SharedBillPayload,
    config: SplitConfiguration,
    banks: Sequence[BankRecord] = BANKS,
) -> list[PayerPayment]:
    """
    Build one payload per payer, in payer order.

    Raises:
        UnknownBankError: the owner's bank text matches no bank
        InvalidAccountError: the owner's account number is malformed
    """
    totals = payer_totals(bill, config)

    payments = []
    for payer in config.payers:
        amount = totals[payer]
        result = build_payload(
            QrPaymentRequest(
                bank_query=bill.owner.bank,
                account_number=bill.owner.account_number,
                amount=amount,
                note=payment_note(bill, payer),
                country_code=bill.country_code,
            ),
            banks,
        )
        payments.append(PayerPayment(
            payer=payer,
            amount=amount,
            payload=result.payload,
            bank=result.bank,
        ))

    logger.debug("payer_payments_built", bill=bill.bill_name, payers=len(payments))
    return payments
