# evaluator.py
import logging
import re
from typing import Any, Dict, List, Optional

from .capture import RequestCapture
from .errors import FAIL, PASS, DataLayerUnavailable, InvalidPattern, NoRequestsCaptured
from .models import DataLayerKeyEquals, RequestMatchRegex

logger = logging.getLogger(__name__)


def select_candidates(captured: List[Dict[str, str]], tracker: str, match_any: bool) -> List[Dict[str, str]]:
    """All captured requests when ``match_any``, otherwise only the latest one."""
    if not captured:
        raise NoRequestsCaptured(tracker)
    return list(captured) if match_any else [captured[-1]]


def request_match_regex(candidates: List[Dict[str, str]], key: str, pattern: str) -> str:
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise InvalidPattern(pattern, str(e)) from e

    for params in candidates:
        # A request without the key simply does not match
        value = params.get(key)
        if value is not None and regex.search(value):
            return PASS
    return FAIL


def evaluate_request_match(assertion: RequestMatchRegex, capture: RequestCapture) -> str:
    captured = capture.requests(assertion.tracker)
    logger.debug(f"{assertion.tracker} requests: {captured}")
    candidates = select_candidates(captured, assertion.tracker, assertion.match_any)
    return request_match_regex(candidates, assertion.key, assertion.pattern)


_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_RADIX = re.compile(r"0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_RADIX_BASES = {"x": 16, "o": 8, "b": 2}


def _as_number(value: Any) -> Optional[float]:
    """Numeric reading of a value the way JavaScript's ``Number()`` does it."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return 0.0
    if _DECIMAL.fullmatch(text):
        return float(text)
    if _RADIX.fullmatch(text):
        return float(int(text[2:], _RADIX_BASES[text[1].lower()]))
    if text.lstrip("+-") == "Infinity":
        return float(text.replace("Infinity", "inf"))
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Tolerant comparison in the spirit of JavaScript's ``==``.

    Strings compare as strings; when either side is a number or boolean both
    sides are compared numerically. ``None`` only equals ``None``.
    """
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if isinstance(left, (bool, int, float)) or isinstance(right, (bool, int, float)):
        a, b = _as_number(left), _as_number(right)
        if a is None or b is None:
            return False
        return a == b
    return left == right


def data_layer_contains(events: Any, key: str, expected: Any, name: str) -> str:
    """PASS if any object entry of the layer loosely equals ``expected`` at ``key``.

    A missing key reads as ``None``, so ``expected=None`` also matches entries
    that lack the key, as ``undefined == null`` does in the page. Non-object
    entries never match.
    """
    if not isinstance(events, list):
        raise DataLayerUnavailable(name)
    for event in events:
        if isinstance(event, dict) and loose_equals(event.get(key), expected):
            return PASS
    return FAIL


def evaluate_data_layer(assertion: DataLayerKeyEquals, events: Any, name: str) -> str:
    return data_layer_contains(events, assertion.key, assertion.expected, name)
