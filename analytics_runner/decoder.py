# decoder.py
from typing import Dict
from urllib.parse import parse_qsl

from .errors import DecodeError


def decode_request_params(request_url: str) -> Dict[str, str]:
    """Turn the query string of a request URL into a flat key -> value dict.

    The raw query is split on '&' and each pair on its first '=' before
    percent-decoding, so encoded delimiters inside values survive intact.
    Repeated keys keep the last value.
    """
    if "?" not in request_url:
        raise DecodeError(f"Request URL has no query string: {request_url}")

    query = request_url.split("?", 1)[1].split("#", 1)[0]
    if not query:
        raise DecodeError(f"Request URL has an empty query string: {request_url}")

    try:
        pairs = parse_qsl(query, keep_blank_values=True, errors="strict")
    except ValueError as e:
        raise DecodeError(f"Cannot decode query string of {request_url}: {e}") from e

    return dict(pairs)
