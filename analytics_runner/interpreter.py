# interpreter.py
import logging
from typing import List, Optional

from playwright.async_api import Page

from . import actions
from .capture import RequestCapture
from .errors import AssertionEvaluationError, StepExecutionError, UnknownTracker, UnrecognizedStep
from .evaluator import evaluate_data_layer, evaluate_request_match
from .models import (
    AssertionResult,
    ClickStep,
    DataLayerKeyEquals,
    GotoStep,
    RequestMatchRegex,
    RunOptions,
    Step,
    TestDefinition,
    TestStep,
    TypeStep,
    WaitForRequestsStep,
    WaitStep,
)

logger = logging.getLogger(__name__)


class StepInterpreter:
    """Executes the steps of a test definition one at a time.

    Browser-control errors propagate and end the run. Errors raised while
    evaluating an assertion are logged and recorded in that step's result.
    """

    def __init__(self, page: Page, capture: RequestCapture, options: RunOptions):
        self.page = page
        self.capture = capture
        self.options = options
        self.results: List[AssertionResult] = []

    async def run(self, test: TestDefinition) -> List[AssertionResult]:
        logger.info(f"Running test '{test.name}' ({len(test.steps)} steps)")
        for index, step in enumerate(test.steps):
            await self.execute(step, index)
        return self.results

    async def execute(self, step: Step, index: int):
        options = self.options

        if isinstance(step, GotoStep):
            logger.info(f"Go to page: {step.url}")
            await actions.goto(self.page, step.url, options.timeout_ms)
            await self._settle()

        elif isinstance(step, ClickStep):
            logger.info(f"Click element: {step.selector}")
            await actions.click(self.page, step.selector, options.timeout_ms)
            await self._settle()

        elif isinstance(step, WaitStep):
            logger.info(f"Waiting for: {step.value}")
            if isinstance(step.value, str):
                await actions.wait_for_element(self.page, step.value, options.timeout_ms)
            else:
                await actions.pause(self.page, step.value)

        elif isinstance(step, TypeStep):
            logger.info(f"Typing '{step.text}' on element: {step.selector}")
            await actions.type_text(
                self.page,
                step.selector,
                step.text,
                clear_first=step.clear_first,
                delay_ms=options.type_delay_ms,
                timeout_ms=options.timeout_ms,
            )

        elif isinstance(step, WaitForRequestsStep):
            logger.info(f"Waiting for {step.count} '{step.tracker}' request(s)")
            try:
                await self.capture.wait_for_requests(step.tracker, step.count, step.timeout_ms)
            except UnknownTracker as e:
                raise StepExecutionError(str(e)) from e

        elif isinstance(step, TestStep):
            self.results.append(await self.evaluate(step))

        else:
            logger.warning(str(UnrecognizedStep(type(step).__name__, index)))

    async def evaluate(self, step: TestStep) -> AssertionResult:
        assertion = step.assertion
        logger.info(f"Testing: {assertion.name}")

        message: Optional[str] = None
        try:
            if isinstance(assertion, RequestMatchRegex):
                outcome = evaluate_request_match(assertion, self.capture)
            elif isinstance(assertion, DataLayerKeyEquals):
                name = self.options.data_layer_name
                events = await actions.read_data_layer(self.page, name)
                outcome = evaluate_data_layer(assertion, events, name)
            else:
                raise AssertionEvaluationError(f"Unsupported assertion: {type(assertion).__name__}")
        except AssertionEvaluationError as e:
            logger.error(f"Test '{assertion.name}' could not be evaluated: {e}")
            outcome = e.outcome
            message = str(e)

        result = AssertionResult(id=assertion.id, name=assertion.name, outcome=outcome, message=message)
        logger.info(f"Test '{assertion.name}': {outcome}")
        return result

    async def _settle(self):
        if self.options.settle_delay_ms > 0:
            await actions.pause(self.page, self.options.settle_delay_ms)
