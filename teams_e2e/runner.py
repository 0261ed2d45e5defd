"""Scenarios, their named steps, and the per-scenario fixture context."""
from __future__ import annotations

import enum
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence, Tuple

import anyio

from teams_e2e.browser import Browser
from teams_e2e.errors import TeardownError
from teams_e2e.identity import UserFixtures
from teams_e2e.invites import InviteLedger
from teams_e2e.orgs import OrgFixtures
from teams_e2e.registry import ResourceRegistry
from teams_e2e.store import FixtureStore

logger = logging.getLogger(__name__)

StepAction = Callable[[], Awaitable[None]]


class StepStatus(enum.Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    name: str
    status: StepStatus
    duration: float = 0.0
    error: Optional[str] = None


@dataclass
class ScenarioReport:
    name: str
    steps: List[StepResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(step.status is StepStatus.PASSED for step in self.steps)

    @property
    def failed_step(self) -> Optional[StepResult]:
        for step in self.steps:
            if step.status is StepStatus.FAILED:
                return step
        return None

    def step_names(self, status: StepStatus) -> List[str]:
        return [step.name for step in self.steps if step.status is status]


class Scenario:
    """Records named steps of one scenario in the order they run.

    Usage:
        async with scenario.step("Can add members"):
            ...
    A step that raises is recorded as FAILED and the error propagates, so
    nothing after it runs.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.report = ScenarioReport(name)

    @asynccontextmanager
    async def step(self, name: str) -> AsyncIterator[None]:
        if self.report.failed_step is not None:
            raise RuntimeError(f"{self.name}: step {name!r} started after a failed step")
        started = anyio.current_time()
        logger.info("[%s] %s ...", self.name, name)
        try:
            yield
        except BaseException as exc:
            duration = anyio.current_time() - started
            self.report.steps.append(StepResult(name, StepStatus.FAILED, duration, repr(exc)))
            logger.error("[%s] %s FAILED after %.2fs: %r", self.name, name, duration, exc)
            raise
        duration = anyio.current_time() - started
        self.report.steps.append(StepResult(name, StepStatus.PASSED, duration))
        logger.info("[%s] %s passed in %.2fs", self.name, name, duration)

    def skip(self, names: Sequence[str]) -> None:
        for name in names:
            self.report.steps.append(StepResult(name, StepStatus.SKIPPED))
            logger.info("[%s] %s skipped", self.name, name)


class ScenarioContext:
    """Everything one scenario owns: fixtures, their registry, and its browser.

    Passed explicitly to every fixture call; nothing is shared between
    scenarios except the database. `close()` tears the fixtures down once.
    """

    def __init__(self, name: str, store: FixtureStore, browser: Optional[Browser] = None) -> None:
        self.name = name
        self.store = store
        self.browser = browser
        self.registry = ResourceRegistry(store)
        self.orgs = OrgFixtures(store, self.registry)
        self.users = UserFixtures(store, self.registry, self.orgs)
        self.invites = InviteLedger(self.registry)
        self.scenario = Scenario(name)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def step(self, name: str):
        """Shortcut for `self.scenario.step(name)`."""
        return self.scenario.step(name)

    async def close(self) -> None:
        """Tear down every registered fixture. Later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        with anyio.CancelScope(shield=True):
            try:
                await anyio.to_thread.run_sync(self.registry.teardown_all)
            except Exception as exc:
                error = TeardownError(kind="scenario", target=self.name, cause=exc)
                self.registry.errors.append(error)
                logger.error("%s", error)


async def run_scenario(
    name: str,
    steps: Sequence[Tuple[str, StepAction]],
    context: Optional[ScenarioContext] = None,
) -> ScenarioReport:
    """Run `steps` strictly in order, then tear the context down.

    The first failing step aborts the scenario: later steps are reported as
    skipped, teardown still runs, and the step's error is re-raised.
    Steps are logged and reported under `name`, also when `context` was
    created under another one.
    """
    scenario = context.scenario if context is not None else Scenario(name)
    scenario.name = scenario.report.name = name
    try:
        for index, (step_name, action) in enumerate(steps):
            try:
                async with scenario.step(step_name):
                    await action()
            except BaseException:
                scenario.skip([later for later, _ in steps[index + 1:]])
                raise
    finally:
        if context is not None:
            await context.close()
    return scenario.report
