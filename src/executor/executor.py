"""Capture executor — renders every example per viewport and stores snapshots."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from src.browser.session import BrowserSession
from src.errors import NoExamplesError
from src.models.config import FrameworkConfig, ViewportConfig
from src.models.run_result import RunResult
from src.models.snapshot import ComparisonOutcome, Example, RasterImage
from src.snapshots.store import SnapshotStore

from .screenshot import take_cropped_screenshot

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[ComparisonOutcome], None]
ViewportCallback = Callable[[ViewportConfig, int], None]


@dataclass
class ViewportGroup:
    viewport: ViewportConfig
    examples: list[Example] = field(default_factory=list)


def group_examples_by_viewport(
    examples: list[Example], config: FrameworkConfig,
) -> dict[str, ViewportGroup]:
    """Bucket examples by the viewports they ask for.

    Examples that name no viewport go to the first configured one. Groups
    come out in the order their viewport is first seen.
    """
    if not examples:
        raise NoExamplesError("No examples found on the test page")

    groups: dict[str, ViewportGroup] = {}
    for example in examples:
        names = example.viewports or [config.default_viewport.name]
        for name in names:
            if name not in groups:
                groups[name] = ViewportGroup(viewport=config.get_viewport(name))
            groups[name].examples.append(example)
    return groups


async def _join(tasks: list[asyncio.Task]) -> None:
    """Wait for every task, then raise the first failure if any."""
    if not tasks:
        return
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result


class CaptureExecutor:
    """Drives the browser session through all viewports and examples.

    Rendering is strictly sequential since the session is a single shared
    page. Persisting a snapshot is spawned as a task and overlaps with the
    next example's render; all such tasks are joined at each viewport
    boundary.
    """

    def __init__(
        self,
        session: BrowserSession,
        store: SnapshotStore,
        on_outcome: OutcomeCallback | None = None,
        on_viewport: ViewportCallback | None = None,
    ):
        self.session = session
        self.store = store
        self.on_outcome = on_outcome
        self.on_viewport = on_viewport

    async def perform_diffs(self, groups: dict[str, ViewportGroup]) -> RunResult:
        combined = RunResult()
        for name, group in groups.items():
            viewport = group.viewport
            start = time.time()
            await self.session.resize_viewport(viewport.width, viewport.height)
            logger.info("Viewport %s (%dx%d): %d examples",
                        name, viewport.width, viewport.height, len(group.examples))
            if self.on_viewport:
                self.on_viewport(viewport, len(group.examples))

            viewport_result = await self._render_examples(name, group.examples)
            combined.merge(viewport_result)
            logger.info("Viewport %s done: %d new, %d diff in %.1fs",
                        name, len(viewport_result.new_images),
                        len(viewport_result.diff_images), time.time() - start)
        return combined

    async def _render_examples(self, viewport_name: str, examples: list[Example]) -> RunResult:
        run_result = RunResult()
        pending: list[asyncio.Task] = []

        async def _persist(description: str, image: RasterImage) -> None:
            outcome = await self.store.classify_and_persist(description, viewport_name, image)
            logger.debug("[%s] %s: %s", viewport_name, description, outcome.result)
            run_result.add(outcome)
            if self.on_outcome:
                self.on_outcome(outcome)

        try:
            for example in examples:
                box = await self.session.render(example.description)
                image = await take_cropped_screenshot(self.session, example.description, box)
                pending.append(asyncio.create_task(_persist(example.description, image)))
        except BaseException:
            # Captures that already finished rendering stay durable.
            await asyncio.gather(*pending, return_exceptions=True)
            raise

        await _join(pending)
        return run_result
