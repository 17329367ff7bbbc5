"""
Split-Configuration URL Token

A viewer's split setup (mode, payers, assignments) can be shared as a
second query parameter next to the bill token. It is JSON, deflated and
base64url-encoded with the same helpers as the bill codec.

IMPORTANT: parsing is lenient. The bill is valid without a configuration,
so a missing or damaged token yields None instead of an error. Junk
entries are dropped rather than rejected.
"""

import json
from typing import Any, Optional, Union

from billqr.bill.codec import open_bytes, seal_bytes
from billqr.errors import CorruptTokenError
from billqr.logger import get_logger
from billqr.models.bill import SplitConfiguration, SplitMode


logger = get_logger(__name__)


def encode_config(config: Union[SplitConfiguration, dict[str, Any]]) -> str:
    """
    Encode a split configuration as a URL-safe token.

    Assignments are only written in individual mode (default: empty).
    A plain dict is encoded as given, without validation.
    """
    if isinstance(config, SplitConfiguration):
        data: dict[str, Any] = {
            "mode": config.mode.value,
            "payers": list(config.payers),
        }
        if config.mode == SplitMode.INDIVIDUAL:
            data["assignments"] = config.assignments or {}
    else:
        data = dict(config)

    text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    return seal_bytes(text.encode("utf-8"))


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _sanitize(data: Any) -> Optional[SplitConfiguration]:
    if not isinstance(data, dict):
        return None

    mode = SplitMode.EVEN if data.get("mode") == SplitMode.EVEN.value else SplitMode.INDIVIDUAL

    raw_payers = data.get("payers")
    payers = [p for p in raw_payers if _is_name(p)] if isinstance(raw_payers, list) else []

    assignments = None
    raw_assignments = data.get("assignments")
    if isinstance(raw_assignments, dict):
        assignments = {
            item_id: [name for name in names if _is_name(name)] if isinstance(names, list) else []
            for item_id, names in raw_assignments.items()
        }

    return SplitConfiguration(mode=mode, payers=payers, assignments=assignments)


def safe_parse_config(token: Optional[str]) -> Optional[SplitConfiguration]:
    """
    Parse a configuration token, returning None for anything unusable.

    Payer names are kept verbatim (not trimmed) when non-blank.
    Non-list assignment values become empty lists.
    """
    if not token:
        return None

    try:
        data = json.loads(open_bytes(token).decode("utf-8"))
    except (CorruptTokenError, ValueError) as e:
        logger.info("config_token_ignored", reason=str(e), token_length=len(token))
        return None

    config = _sanitize(data)
    if config is None:
        logger.info("config_token_ignored", reason="not an object", token_length=len(token))
    return config
