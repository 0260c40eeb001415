"""
Query option codec.

Converts between structured collection options (filters, and for paged
collections page / limit / sort) and URL query strings:

    ?page=1&limit=20&sort=name,-age&name=jon&tag[]=human&tag[]=bastard
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Tuple
from urllib.parse import parse_qsl, quote, urlsplit

from halcache.models.options import (
    CollectionOptions,
    Filter,
    FlatOption,
    Options,
    PageOptions,
    Sort,
)

RESERVED_KEYS = ("page", "limit", "sort")

# tag[] or tag[0]
_ARRAY_KEY = re.compile(r"^(?P<field>.+?)\[(?P<index>\d*)\]$")


# -----------------------------------------------------------------------------
# Decoding
# -----------------------------------------------------------------------------
def parse_query(url: str) -> List[Tuple[str, str, bool]]:
    """
    Split the query string of ``url`` into (field, value, multiple) triples,
    keeping the order of the URL.

    A field is ``multiple`` when written with brackets or repeated.
    """
    query = urlsplit(url).query
    pairs: List[Tuple[str, str, bool]] = []
    for key, value in parse_qsl(query, keep_blank_values=True):
        match = _ARRAY_KEY.match(key)
        if match:
            pairs.append((match.group("field"), value, True))
        else:
            pairs.append((key, value, False))

    counts: Dict[str, int] = {}
    for field, _, _ in pairs:
        counts[field] = counts.get(field, 0) + 1

    return [
        (field, value, multiple or counts[field] > 1)
        for field, value, multiple in pairs
    ]


def parse_sort(value: str) -> List[Sort]:
    sort: List[Sort] = []
    for token in value.split(","):
        token = token.strip()
        if not token:
            continue
        if token.startswith("-"):
            sort.append(Sort(field=token[1:], direction=False))
        else:
            sort.append(Sort(field=token, direction=True))
    return sort


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def decode_options(url: str) -> CollectionOptions:
    """Every query key becomes a filter."""
    return CollectionOptions(
        filters=[
            Filter(field=field, value=value, multiple=multiple)
            for field, value, multiple in parse_query(url)
        ]
    )


def decode_page_options(url: str) -> PageOptions:
    """``page``, ``limit`` and ``sort`` are reserved; the rest are filters."""
    options = PageOptions()
    filters: List[Filter] = []

    for field, value, multiple in parse_query(url):
        if field == "page":
            options.page = _parse_int(value, options.page)
        elif field == "limit":
            options.limit = _parse_int(value, options.limit)
        elif field == "sort":
            options.sort = parse_sort(value)
        else:
            filters.append(Filter(field=field, value=value, multiple=multiple))

    options.filters = filters
    return options


# -----------------------------------------------------------------------------
# Encoding
# -----------------------------------------------------------------------------
def flatten_options(options: Options) -> List[FlatOption]:
    flat: List[FlatOption] = []

    if isinstance(options, PageOptions):
        flat.append(FlatOption(key="page", value=str(options.page)))
        flat.append(FlatOption(key="limit", value=str(options.limit)))

        if options.sort:
            flat.append(FlatOption(
                key="sort",
                value=",".join(f"{'' if s.direction else '-'}{s.field}" for s in options.sort),
            ))

    for item in options.filters:
        flat.append(FlatOption(key=item.field, value=item.value, multiple=item.multiple))

    return flat


def encode_options(options: Options) -> str:
    parts = []
    for option in flatten_options(options):
        key = quote(option.key, safe="") + ("[]" if option.multiple else "")
        safe = "," if option.key == "sort" and not option.multiple else ""
        parts.append(f"{key}={quote(option.value, safe=safe)}")
    return "&".join(parts)


def merge_options(options: Options, change_set: Mapping[str, Any]) -> Options:
    """Overlay the option fields found in ``change_set`` on a copy of ``options``."""
    fields = type(options).model_fields
    update = {key: value for key, value in change_set.items() if key in fields}
    return type(options).model_validate({**options.model_dump(), **_dump(update)})


def _dump(update: Mapping[str, Any]) -> Dict[str, Any]:
    dumped: Dict[str, Any] = {}
    for key, value in update.items():
        if isinstance(value, list):
            dumped[key] = [v.model_dump() if hasattr(v, "model_dump") else v for v in value]
        else:
            dumped[key] = value
    return dumped


def build_url(base_url: str, options: Options) -> str:
    query = encode_options(options)
    return f"{base_url}?{query}" if query else base_url
