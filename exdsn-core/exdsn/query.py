from typing import Dict, Mapping, Tuple

from exdsn.constants import KV_SEP, PAIR_SEP, QUERY_SEP


def extract_query(text: str) -> Tuple[str, Dict[str, str]]:
    """Split a DSN into the part matched by the pattern and the query.

    The first `?` separates the two. The query is split on `&` into pairs
    and each pair on its first `=`, so values may contain `=`. A pair
    without `=` gets an empty value. Keys and values are kept exactly as
    written: nothing is URL-decoded and bracket syntax such as
    `header[Authorization]` is preserved. Empty pairs are skipped and when
    a key is repeated the last value wins.

    Args:
        text: The DSN.

    Returns:
        The part before the `?` and the query parameters.
    """
    path, _, query = text.partition(QUERY_SEP)
    return path, parse_query(query)


def parse_query(query: str) -> Dict[str, str]:
    """Split a query string (without the leading `?`) into parameters.

    See `extract_query()` for the rules.
    """
    result: Dict[str, str] = {}
    for pair in query.split(PAIR_SEP):
        if not pair:
            continue
        key, _, value = pair.partition(KV_SEP)
        result[key] = value
    return result


def render_query(query: Mapping[str, str]) -> str:
    """Join query parameters into a query string (without the leading `?`).

    This is the reverse of `extract_query()`; no encoding is applied.
    """
    return PAIR_SEP.join(
        f"{key}{KV_SEP}{value}" for key, value in query.items()
    )
