"""
Text normalization shared by every "does this already exist by name" check.

The canonical form trims the value and drops every space character, so
``"  What is  SQL ?"`` and ``"WhatisSQL?"`` collide.  Case is preserved.
"""
from typing import Iterable, List, Optional, Union


def canonical_key(value: Optional[str]) -> str:
    if value is None:
        return ""
    return value.strip().replace(" ", "")


def split_options(raw: Union[str, Iterable[str], None], delimiter: str = ",") -> List[str]:
    """Turn a delimited option list into trimmed, non-empty, de-duplicated entries.

    A sequence of strings is accepted too; each item is trimmed the same way.
    First occurrence wins and order is kept.
    """
    if raw is None:
        return []
    parts = raw.split(delimiter) if isinstance(raw, str) else list(raw)
    seen = set()
    out = []
    for part in parts:
        item = (part or "").strip()
        if not item or item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out
