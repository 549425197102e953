# models.py
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .constants import (
    DATA_LAYER_NAME,
    DEFAULT_TIMEOUT_MS,
    HEADLESS,
    SETTLE_DELAY_MS,
    TYPE_DELAY_MS,
    WAIT_FOR_REQUESTS_COUNT,
    WAIT_FOR_REQUESTS_TIMEOUT_MS,
)
from .errors import InvalidInput, UnrecognizedStep


@dataclass(frozen=True)
class TrackerConfig:
    name: str
    url_substring: str
    abort_on_match: bool = False


@dataclass(frozen=True)
class RequestMatchRegex:
    id: Any
    name: str
    tracker: str
    key: str
    pattern: str
    match_any: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class DataLayerKeyEquals:
    id: Any
    name: str
    key: str
    expected: Any
    description: Optional[str] = None


Assertion = Union[RequestMatchRegex, DataLayerKeyEquals]


@dataclass(frozen=True)
class GotoStep:
    url: str


@dataclass(frozen=True)
class ClickStep:
    selector: str


@dataclass(frozen=True)
class WaitStep:
    value: Union[int, float, str]  # milliseconds or a selector


@dataclass(frozen=True)
class TypeStep:
    selector: str
    text: str
    clear_first: bool = False


@dataclass(frozen=True)
class TestStep:
    assertion: Assertion


@dataclass(frozen=True)
class WaitForRequestsStep:
    tracker: str
    count: int = WAIT_FOR_REQUESTS_COUNT
    timeout_ms: int = WAIT_FOR_REQUESTS_TIMEOUT_MS


Step = Union[GotoStep, ClickStep, WaitStep, TypeStep, TestStep, WaitForRequestsStep]


@dataclass(frozen=True)
class TestDefinition:
    name: str
    steps: Tuple[Step, ...] = ()


@dataclass(frozen=True)
class RunOptions:
    headless: bool = HEADLESS
    trackers: Tuple[TrackerConfig, ...] = ()
    settle_delay_ms: int = SETTLE_DELAY_MS
    type_delay_ms: int = TYPE_DELAY_MS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    data_layer_name: str = DATA_LAYER_NAME


@dataclass(frozen=True)
class AssertionResult:
    id: Any
    name: str
    outcome: str  # PASS, FAIL or ERROR
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        test = {"id": self.id, "name": self.name, "result": self.outcome}
        if self.message:
            test["message"] = self.message
        return {"test": test}


# Prevent pytest from collecting these as test classes
TestDefinition.__test__ = False
TestStep.__test__ = False


def results_to_json(results: List[AssertionResult]) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in results]



def _require_str(data: Dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise InvalidInput(f"{where}: '{key}' must be a non-empty string")
    return value


def _optional_bool(data: Dict[str, Any], key: str, where: str, default: bool = False) -> bool:
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise InvalidInput(f"{where}: '{key}' must be a boolean")
    return value


def _optional_ms(data: Dict[str, Any], key: str, where: str, default: int) -> int:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise InvalidInput(f"{where}: '{key}' must be a non-negative number of milliseconds")
    return int(value)


def parse_assertion(data: Any, where: str = "test") -> Assertion:
    if not isinstance(data, dict):
        raise InvalidInput(f"{where}: assertion must be an object")

    kind = data.get("type")
    test_id = data.get("id")
    name = data.get("name") or ""
    description = data.get("description")

    if kind == "requestMatchRegex":
        match = data.get("match")
        if not isinstance(match, dict):
            raise InvalidInput(f"{where}: 'match' must be an object with 'key' and 'value'")
        options = data.get("options") or {}
        if not isinstance(options, dict):
            raise InvalidInput(f"{where}: 'options' must be an object")
        pattern = match.get("value")
        if not isinstance(pattern, str):
            raise InvalidInput(f"{where}: 'match.value' must be a string pattern")
        return RequestMatchRegex(
            id=test_id,
            name=name,
            tracker=_require_str(data, "for", where),
            key=_require_str(match, "key", f"{where}.match"),
            pattern=pattern,
            match_any=_optional_bool(options, "matchAnyRequest", f"{where}.options"),
            description=description,
        )

    if kind == "matchDataLayerKeyValue":
        if "value" not in data:
            raise InvalidInput(f"{where}: 'value' is required")
        return DataLayerKeyEquals(
            id=test_id,
            name=name,
            key=_require_str(data, "key", where),
            expected=data["value"],
            description=description,
        )

    raise InvalidInput(f"{where}: unknown assertion type {kind!r}")


def parse_step(data: Any, index: int) -> Step:
    where = f"step {index}"
    if not isinstance(data, dict):
        raise InvalidInput(f"{where}: must be an object")

    action = data.get("action")
    if action == "goto":
        return GotoStep(url=_require_str(data, "value", where))
    if action == "click":
        return ClickStep(selector=_require_str(data, "element", where))
    if action == "wait":
        value = data.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float, str)) or value == "":
            raise InvalidInput(f"{where}: 'value' must be milliseconds or a selector")
        if isinstance(value, (int, float)) and value < 0:
            raise InvalidInput(f"{where}: 'value' must not be negative")
        return WaitStep(value=value)
    if action == "type":
        text = data.get("value")
        if not isinstance(text, str):
            raise InvalidInput(f"{where}: 'value' must be a string")
        return TypeStep(
            selector=_require_str(data, "element", where),
            text=text,
            clear_first=_optional_bool(data, "clear", where),
        )
    if action == "test":
        return TestStep(assertion=parse_assertion(data.get("test"), where))
    if action == "waitForRequest":
        count = data.get("count", WAIT_FOR_REQUESTS_COUNT)
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidInput(f"{where}: 'count' must be a positive integer")
        return WaitForRequestsStep(
            tracker=_require_str(data, "for", where),
            count=count,
            timeout_ms=_optional_ms(data, "timeout", where, WAIT_FOR_REQUESTS_TIMEOUT_MS),
        )

    raise UnrecognizedStep(action, index)


def parse_test_definition(data: Any) -> TestDefinition:
    if not isinstance(data, dict):
        raise InvalidInput("Invalid test sequence")
    steps = data.get("steps")
    if not isinstance(steps, list):
        raise InvalidInput("Invalid test sequence: 'steps' must be a list")
    name = data.get("name") or ""
    return TestDefinition(
        name=str(name),
        steps=tuple(parse_step(step, i) for i, step in enumerate(steps)),
    )


def parse_trackers(data: Any) -> Tuple[TrackerConfig, ...]:
    if data is None:
        return ()
    if not isinstance(data, list):
        raise InvalidInput("Invalid options: 'trackRequests' must be a list")

    trackers: List[TrackerConfig] = []
    seen = set()
    for i, item in enumerate(data):
        where = f"trackRequests[{i}]"
        if not isinstance(item, dict):
            raise InvalidInput(f"{where}: must be an object")
        tracker = TrackerConfig(
            name=_require_str(item, "name", where),
            url_substring=_require_str(item, "url", where),
            abort_on_match=_optional_bool(item, "abortRequest", where),
        )
        if tracker.name in seen:
            raise InvalidInput(f"{where}: duplicate tracker name '{tracker.name}'")
        seen.add(tracker.name)
        trackers.append(tracker)
    return tuple(trackers)


def parse_options(data: Any) -> RunOptions:
    if data is None:
        return RunOptions()
    if not isinstance(data, dict):
        raise InvalidInput("Invalid options")

    data_layer_name = data.get("dataLayerName", DATA_LAYER_NAME)
    if not isinstance(data_layer_name, str) or not data_layer_name:
        raise InvalidInput("Invalid options: 'dataLayerName' must be a non-empty string")

    return RunOptions(
        headless=_optional_bool(data, "headless", "options", default=HEADLESS),
        trackers=parse_trackers(data.get("trackRequests")),
        settle_delay_ms=_optional_ms(data, "settleDelay", "options", SETTLE_DELAY_MS),
        type_delay_ms=_optional_ms(data, "typeDelay", "options", TYPE_DELAY_MS),
        timeout_ms=_optional_ms(data, "timeout", "options", DEFAULT_TIMEOUT_MS),
        data_layer_name=data_layer_name,
    )
