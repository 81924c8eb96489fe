"""Deterministic, sortable names for report files and directories."""
from __future__ import annotations

import hashlib
import re
from pathlib import PurePath
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from spec_types import DataRecord


SEQUENCE_WIDTH = 4
DIGEST_LENGTH = 8

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sequence_width(count: int) -> int:
    """Fixed width that keeps `count` sequence numbers sortable."""
    return max(SEQUENCE_WIDTH, len(str(count)))


def encode_no(num: int, width: int = SEQUENCE_WIDTH) -> str:
    """Zero-pad a 1-based ordinal, e.g. 1 -> '0001'."""
    if num < 1:
        raise ValueError(f"Sequence numbers are 1-based, got {num}")
    return f"{num:0{width}d}"


def encode_data_record_no(data_record: Optional["DataRecord"]) -> str:
    """
    Return '<NNNN>-' for a data record, or '' when there is none.

    The width comes from the record's set-wide total, which the runner
    fills in for records that arrive without one.
    """
    if data_record is None:
        return ""
    width = sequence_width(data_record.total or data_record.number)
    return f"{encode_no(data_record.number, width)}-"


def encode_dir(path: Optional[PurePath]) -> List[str]:
    """
    Directory path as a list of safe, nested directory names.

    Parts are kept apart rather than joined, so distinct paths never
    share a name. A path anchor becomes a leading 'root-<digest>' part.
    """
    if path is None:
        return []
    pure = PurePath(path)
    names: List[str] = []
    for part in pure.parts:
        if part == pure.anchor:
            names.append(safe_name(part, default="root"))
        elif part != ".":
            names.append(safe_name(part))
    return names


def slugify(text: str, default: str = "unnamed") -> str:
    """File-system safe rendition of a name. Not reversible, see safe_name."""
    slug = _UNSAFE_CHARS.sub("-", text.strip()).strip("-.")
    return slug or default


def safe_name(text: str, default: str = "unnamed") -> str:
    """
    File-system safe name that stays unique per input.

    Names that are already safe are kept as is. Anything slugify had to
    change gets a short digest of the raw text appended, so 'Log in' and
    'Log-in' (or '..' and 'unnamed') never map to the same name.
    """
    slug = slugify(text, default)
    if slug == text:
        return slug
    digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]
    return f"{slug}-{digest}"
