from __future__ import annotations

import re

MAX_TAGS_DEFAULT = 20
MAX_TAG_LENGTH = 64
TAG_PATTERN_RE = re.compile(r"^[a-z0-9_\-. +#&\u3400-\u4dbf\u4e00-\u9fff]+$")
WHITESPACE_RE = re.compile(r"\s+")


def normalize_tag(raw: str | None) -> str | None:
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if not value:
        return None
    value = WHITESPACE_RE.sub(" ", value.lstrip("#").strip().lower())
    if not value or len(value) > MAX_TAG_LENGTH:
        return None
    if not TAG_PATTERN_RE.fullmatch(value):
        return None
    return value


def normalize_tag_list(values: list[str] | None, *, max_count: int = MAX_TAGS_DEFAULT) -> list[str]:
    if not values:
        return []
    normalized: list[str] = []
    seen: set[str] = set()
    for raw in values:
        tag = normalize_tag(raw)
        if not tag or tag in seen:
            continue
        seen.add(tag)
        normalized.append(tag)
        if len(normalized) >= max_count:
            break
    return normalized
