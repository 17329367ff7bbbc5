"""
Bank Directory Resolver

Maps free-form bank text ("vcb", "Vietcombank", "ngoại thương") to a
canonical BankRecord from a static NAPAS directory.

Matching is case- and diacritic-insensitive, first hit wins:
1. exact match on the short code
2. exact match on the display name
3. exact match on the legal name
4. query is a substring of the legal name or display name

IMPORTANT: step 4 returns the first record in TABLE ORDER. Keep the order
of BANKS stable when editing the table, or substring lookups will start
resolving to different banks.
"""

import re
import unicodedata
from typing import Sequence

from billqr.errors import UnknownBankError
from billqr.logger import get_logger
from billqr.models.bank import BankRecord


logger = get_logger(__name__)


def _bank(code: str, display_name: str, legal_name: str, identifier: str) -> BankRecord:
    return BankRecord(
        code=code,
        display_name=display_name,
        legal_name=legal_name,
        identifier=identifier,
    )


BANKS: tuple[BankRecord, ...] = (
    _bank("ICB", "VietinBank", "Ngân hàng TMCP Công thương Việt Nam", "970415"),
    _bank("VCB", "Vietcombank", "Ngân hàng TMCP Ngoại Thương Việt Nam", "970436"),
    _bank("BIDV", "BIDV", "Ngân hàng TMCP Đầu tư và Phát triển Việt Nam", "970418"),
    _bank("VBA", "Agribank", "Ngân hàng Nông nghiệp và Phát triển Nông thôn Việt Nam", "970405"),
    _bank("OCB", "OCB", "Ngân hàng TMCP Phương Đông", "970448"),
    _bank("MB", "MBBank", "Ngân hàng TMCP Quân đội", "970422"),
    _bank("TCB", "Techcombank", "Ngân hàng TMCP Kỹ thương Việt Nam", "970407"),
    _bank("ACB", "ACB", "Ngân hàng TMCP Á Châu", "970416"),
    _bank("VPB", "VPBank", "Ngân hàng TMCP Việt Nam Thịnh Vượng", "970432"),
    _bank("TPB", "TPBank", "Ngân hàng TMCP Tiên Phong", "970423"),
    _bank("STB", "Sacombank", "Ngân hàng TMCP Sài Gòn Thương Tín", "970403"),
    _bank("HDB", "HDBank", "Ngân hàng TMCP Phát triển Thành phố Hồ Chí Minh", "970437"),
    _bank("VCCB", "VietCapitalBank", "Ngân hàng TMCP Bản Việt", "970454"),
    _bank("SCB", "SCB", "Ngân hàng TMCP Sài Gòn", "970429"),
    _bank("VIB", "VIB", "Ngân hàng TMCP Quốc tế Việt Nam", "970441"),
    _bank("SHB", "SHB", "Ngân hàng TMCP Sài Gòn - Hà Nội", "970443"),
    _bank("EIB", "Eximbank", "Ngân hàng TMCP Xuất Nhập khẩu Việt Nam", "970431"),
    _bank("MSB", "MSB", "Ngân hàng TMCP Hàng Hải Việt Nam", "970426"),
    _bank("CAKE", "CAKE", "TMCP Việt Nam Thịnh Vượng - Ngân hàng số CAKE by VPBank", "546034"),
    _bank("Ubank", "Ubank", "TMCP Việt Nam Thịnh Vượng - Ngân hàng số Ubank by VPBank", "546035"),
    _bank(
        "VTLMONEY",
        "ViettelMoney",
        "Tổng Công ty Dịch vụ số Viettel - Chi nhánh tập đoàn công nghiệp viễn thông Quân Đội",
        "971005",
    ),
    _bank("TIMO", "Timo", "Ngân hàng số Timo by Ban Viet Bank (Timo by Ban Viet Bank)", "963388"),
    _bank("VNPTMONEY", "VNPTMoney", "VNPT Money", "971011"),
    _bank("SGICB", "SaigonBank", "Ngân hàng TMCP Sài Gòn Công Thương", "970400"),
    _bank("BAB", "BacABank", "Ngân hàng TMCP Bắc Á", "970409"),
    _bank("momo", "MoMo", "CTCP Dịch Vụ Di Động Trực Tuyến", "971025"),
    _bank("PVDB", "PVcomBank Pay", "Ngân hàng TMCP Đại Chúng Việt Nam Ngân hàng số", "971133"),
    _bank("PVCB", "PVcomBank", "Ngân hàng TMCP Đại Chúng Việt Nam", "970412"),
    _bank("MBV", "MBV", "Ngân hàng TNHH MTV Việt Nam Hiện Đại", "970414"),
    _bank("NCB", "NCB", "Ngân hàng TMCP Quốc Dân", "970419"),
    _bank("SHBVN", "ShinhanBank", "Ngân hàng TNHH MTV Shinhan Việt Nam", "970424"),
    _bank("ABB", "ABBANK", "Ngân hàng TMCP An Bình", "970425"),
    _bank("VAB", "VietABank", "Ngân hàng TMCP Việt Á", "970427"),
    _bank("NAB", "NamABank", "Ngân hàng TMCP Nam Á", "970428"),
    _bank("PGB", "PGBank", "Ngân hàng TMCP Thịnh vượng và Phát triển", "970430"),
    _bank("VIETBANK", "VietBank", "Ngân hàng TMCP Việt Nam Thương Tín", "970433"),
    _bank("BVB", "BaoVietBank", "Ngân hàng TMCP Bảo Việt", "970438"),
    _bank("SEAB", "SeABank", "Ngân hàng TMCP Đông Nam Á", "970440"),
    _bank("COOPBANK", "COOPBANK", "Ngân hàng Hợp tác xã Việt Nam", "970446"),
    _bank("LPB", "LPBank", "Ngân hàng TMCP Lộc Phát Việt Nam", "970449"),
    _bank("KLB", "KienLongBank", "Ngân hàng TMCP Kiên Long", "970452"),
    _bank("KBank", "KBank", "Ngân hàng Đại chúng TNHH Kasikornbank", "668888"),
    _bank("MAFC", "MAFC", "Công ty Tài chính TNHH MTV Mirae Asset (Việt Nam)", "977777"),
    _bank("HLBVN", "HongLeong", "Ngân hàng TNHH MTV Hong Leong Việt Nam", "970442"),
    _bank("KEBHANAHN", "KEBHANAHN", "Ngân hàng KEB Hana – Chi nhánh Hà Nội", "970467"),
    _bank(
        "KEBHANAHCM",
        "KEBHanaHCM",
        "Ngân hàng KEB Hana – Chi nhánh Thành phố Hồ Chí Minh",
        "970466",
    ),
    _bank("CITIBANK", "Citibank", "Ngân hàng Citibank, N.A. - Chi nhánh Hà Nội", "533948"),
    _bank("CBB", "CBBank", "Ngân hàng Thương mại TNHH MTV Xây dựng Việt Nam", "970444"),
    _bank("CIMB", "CIMB", "Ngân hàng TNHH MTV CIMB Việt Nam", "422589"),
    _bank("DBS", "DBSBank", "DBS Bank Ltd - Chi nhánh Thành phố Hồ Chí Minh", "796500"),
    _bank("Vikki", "Vikki", "Ngân hàng TNHH MTV Số Vikki", "970406"),
    _bank("VBSP", "VBSP", "Ngân hàng Chính sách Xã hội", "999888"),
    _bank("GPB", "GPBank", "Ngân hàng Thương mại TNHH MTV Dầu Khí Toàn Cầu", "970408"),
    _bank("KBHCM", "KookminHCM", "Ngân hàng Kookmin - Chi nhánh Thành phố Hồ Chí Minh", "970463"),
    _bank("KBHN", "KookminHN", "Ngân hàng Kookmin - Chi nhánh Hà Nội", "970462"),
    _bank("WVN", "Woori", "Ngân hàng TNHH MTV Woori Việt Nam", "970457"),
    _bank("VRB", "VRB", "Ngân hàng Liên doanh Việt - Nga", "970421"),
    _bank("HSBC", "HSBC", "Ngân hàng TNHH MTV HSBC (Việt Nam)", "458761"),
    _bank("IBK - HN", "IBKHN", "Ngân hàng Công nghiệp Hàn Quốc - Chi nhánh Hà Nội", "970455"),
    _bank(
        "IBK - HCM",
        "IBKHCM",
        "Ngân hàng Công nghiệp Hàn Quốc - Chi nhánh TP. Hồ Chí Minh",
        "970456",
    ),
    _bank("IVB", "IndovinaBank", "Ngân hàng TNHH Indovina", "970434"),
    _bank("UOB", "UnitedOverseas", "Ngân hàng United Overseas - Chi nhánh TP. Hồ Chí Minh", "970458"),
    _bank("NHB HN", "Nonghyup", "Ngân hàng Nonghyup - Chi nhánh Hà Nội", "801011"),
    _bank(
        "SCVN",
        "StandardChartered",
        "Ngân hàng TNHH MTV Standard Chartered Bank Việt Nam",
        "970410",
    ),
    _bank("PBVN", "PublicBank", "Ngân hàng TNHH MTV Public Việt Nam", "970439"),
)


_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_bank_key(text: str) -> str:
    """
    Fold bank text for comparison.

    Lowercases, strips combining marks after NFD decomposition, and
    collapses every run of characters outside [a-z0-9] to one space.
    Letters with no decomposition (e.g. "đ") are treated as separators.
    """
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub(" ", stripped).strip()


def resolve_bank(query: str, banks: Sequence[BankRecord] = BANKS) -> BankRecord:
    """
    Resolve free-form bank text to a BankRecord.

    Args:
        query: User-entered bank name, short name or code
        banks: Directory to search, in priority order

    Returns:
        The first matching BankRecord

    Raises:
        UnknownBankError: No record matches (including a blank query)
    """
    key = normalize_bank_key(query)
    if not key:
        raise UnknownBankError(query)

    normalized = [
        (bank, normalize_bank_key(bank.code), normalize_bank_key(bank.display_name),
         normalize_bank_key(bank.legal_name))
        for bank in banks
    ]

    for field_index in (1, 2, 3):
        for entry in normalized:
            if entry[field_index] == key:
                logger.debug("bank_resolved", query=query, code=entry[0].code, match="exact")
                return entry[0]

    for bank, _, display_key, legal_key in normalized:
        if key in legal_key or key in display_key:
            logger.debug("bank_resolved", query=query, code=bank.code, match="substring")
            return bank

    raise UnknownBankError(query)


def get_bank_list() -> list[BankRecord]:
    """Snapshot of the directory for presentation (a copy, not the table)."""
    return list(BANKS)
