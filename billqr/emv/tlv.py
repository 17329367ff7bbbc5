"""
EMV Tag-Length-Value Codec

Each entry is: tag (2 digits) + length (at least 2 digits) + value.

CRITICAL: the length is the number of USER-PERCEIVED characters
(extended grapheme clusters) in the value, not code points and not UTF-8
bytes. Banking apps parse Vietnamese notes this way, so "Việt" written
with combining marks still has length 4. Grapheme segmentation uses the
`regex` module's \\X.
"""

import re
from typing import Optional

import regex

from billqr.errors import InvalidLengthError, InvalidTagError, TlvError, TruncatedError
from billqr.models.payment import TlvNode


_TAG = re.compile(r"[0-9]{2}")
_GRAPHEME = regex.compile(r"\X")

HEADER_WIDTH = 4


def grapheme_length(text: str) -> int:
    """Count extended grapheme clusters in text."""
    return sum(1 for _ in _GRAPHEME.finditer(text))


def encode(tag: str, value: str) -> str:
    """
    Encode one TLV entry.

    Lengths under 10 are zero-padded to two digits; lengths of 100 or more
    keep their natural width.

    Raises:
        InvalidTagError: tag is not exactly two decimal digits
    """
    if not isinstance(tag, str) or not _TAG.fullmatch(tag):
        raise InvalidTagError(tag)
    return f"{tag}{grapheme_length(value):02d}{value}"


def take_graphemes(text: str, start: int, count: int, end: Optional[int] = None) -> tuple[str, int]:
    """
    Slice `count` grapheme clusters from text starting at index `start`.

    Returns (value, index just past the last consumed cluster).

    Raises:
        TruncatedError: fewer than `count` clusters remain before `end`
    """
    if count <= 0:
        return "", start

    stop = len(text) if end is None else end
    position = start
    taken = 0
    for match in _GRAPHEME.finditer(text, start, stop):
        position = match.end()
        taken += 1
        if taken == count:
            return text[start:position], position

    raise TruncatedError(
        f"TLV value truncated: need {count} characters from index {start}, "
        f"only {taken} available"
    )


def decode(text: str, offset: int = 0, limit: Optional[int] = None) -> list[TlvNode]:
    """
    Decode a run of TLV entries.

    Args:
        text: Encoded TLV text
        offset: Index to start reading at
        limit: Maximum number of characters to read (default: to the end)

    Returns:
        Nodes in the order they appear

    Raises:
        TruncatedError: a header or value runs past the end
        InvalidTagError / InvalidLengthError: a header is not numeric
    """
    end = len(text) if limit is None else min(len(text), offset + limit)
    nodes = []
    i = offset

    while i < end:
        if i + HEADER_WIDTH > end:
            raise TruncatedError(
                f"TLV truncated at index {i} (need {HEADER_WIDTH} characters for tag and length)"
            )

        tag = text[i:i + 2]
        length_text = text[i + 2:i + 4]

        if not _TAG.fullmatch(tag):
            raise InvalidTagError(tag, position=i)
        if not _TAG.fullmatch(length_text):
            raise InvalidLengthError(f"Invalid TLV length {length_text!r} at index {i}")

        length = int(length_text)
        value, value_end = take_graphemes(text, i + HEADER_WIDTH, length, end)

        nodes.append(TlvNode(tag=tag, length=length, value=value, start=i, end=value_end))
        i = value_end

    return nodes


def find_one(nodes: list[TlvNode], tag: str) -> TlvNode:
    """Return the only node with `tag`; raise TlvError if absent or repeated."""
    hits = [node for node in nodes if node.tag == tag]
    if len(hits) != 1:
        raise TlvError(f"Expected exactly 1 TLV tag {tag}, found {len(hits)}")
    return hits[0]


def find_optional(nodes: list[TlvNode], tag: str) -> Optional[TlvNode]:
    """Return the node with `tag`, or None when absent."""
    hits = [node for node in nodes if node.tag == tag]
    if len(hits) > 1:
        raise TlvError(f"Expected at most 1 TLV tag {tag}, found {len(hits)}")
    return hits[0] if hits else None
