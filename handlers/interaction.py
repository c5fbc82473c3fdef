"""
Scripted page interactions as flat action sequences.

Some product pages only reveal sizes after a click (a modal, a dropdown).
Instead of nesting try/except around each Playwright call, extractors
describe the interaction as a list of actions::

    result = await run_actions(page, [
        Click('button[data-qa-action="open-size-selector"]'),
        WaitFor(".product-detail-size-selector__size-list-item", timeout_ms=7_000),
    ])

Every step has a bounded timeout and reports one of three outcomes:

  - ``ok``       the step completed
  - ``missing``  the element is not on the page (structural; the caller
                 should use its fallback)
  - ``timeout``  the element existed or was expected but the step did not
                 complete in time (transient; the caller should fail)

The sequence stops at the first step that is not ``ok``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Union

from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeout

from config.settings import INTERACTION_TIMEOUT_MS
from errors import ScrapeTimeoutError

logger = logging.getLogger(__name__)

OK = "ok"
MISSING = "missing"
TIMEOUT = "timeout"


@dataclass(frozen=True)
class Click:
    selector: str
    timeout_ms: int = INTERACTION_TIMEOUT_MS


@dataclass(frozen=True)
class WaitFor:
    selector: str
    timeout_ms: int = INTERACTION_TIMEOUT_MS
    state: str = "visible"


@dataclass(frozen=True)
class Pause:
    seconds: float


Action = Union[Click, WaitFor, Pause]


@dataclass
class StepResult:
    action: Action
    status: str
    detail: str = ""


@dataclass
class SequenceResult:
    steps: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(s.status == OK for s in self.steps)

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if step.status != OK:
                return step
        return None

    @property
    def missing(self) -> bool:
        step = self.failed_step
        return step is not None and step.status == MISSING

    @property
    def timed_out(self) -> bool:
        step = self.failed_step
        return step is not None and step.status == TIMEOUT

    def raise_for_timeout(self) -> None:
        step = self.failed_step
        if step is not None and step.status == TIMEOUT:
            raise ScrapeTimeoutError(
                f"Timed out after {step.action.timeout_ms}ms waiting for {step.action.selector}"
            )


async def _run_step(page: Page, action: Action) -> StepResult:
    if isinstance(action, Pause):
        await asyncio.sleep(action.seconds)
        return StepResult(action, OK)

    if isinstance(action, Click):
        try:
            element = await page.query_selector(action.selector)
            if element is None:
                return StepResult(action, MISSING, "no element")
            await element.click(timeout=action.timeout_ms)
        except PlaywrightTimeout as exc:
            return StepResult(action, TIMEOUT, str(exc))
        except PlaywrightError as exc:
            # Detached / not clickable: the structure is not what we expect.
            return StepResult(action, MISSING, str(exc))
        return StepResult(action, OK)

    try:
        await page.wait_for_selector(action.selector, timeout=action.timeout_ms, state=action.state)
    except PlaywrightTimeout as exc:
        return StepResult(action, TIMEOUT, str(exc))
    return StepResult(action, OK)


async def run_actions(page: Page, actions: list[Action]) -> SequenceResult:
    """Run *actions* in order, stopping at the first step that is not ok."""
    result = SequenceResult()
    for action in actions:
        step = await _run_step(page, action)
        result.steps.append(step)
        if step.status != OK:
            logger.debug("Interaction step %s -> %s (%s)", action, step.status, step.detail)
            break
    return result


async def exists(page: Page, selector: str) -> bool:
    return await page.query_selector(selector) is not None


async def is_enabled(page: Page, selector: str) -> bool | None:
    """``None`` if absent, else whether the control accepts clicks."""
    element = await page.query_selector(selector)
    if element is None:
        return None
    return await element.is_enabled()
