"""Run orchestrator — sequences a full snapshot run around one browser session."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from src.browser.session import BrowserSession
from src.errors import PageScriptError
from src.executor.executor import (
    CaptureExecutor,
    OutcomeCallback,
    ViewportCallback,
    group_examples_by_viewport,
)
from src.imaging.codec import encode
from src.imaging.row_alignment import ProgressCallback, compute_and_inject_diffs_async
from src.models.config import FrameworkConfig
from src.models.run_result import RunSummary
from src.reporter.summary import load_run_summary, save_run_summary
from src.snapshots.store import SnapshotStore

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates session setup, capture, and summary persistence."""

    def __init__(
        self,
        config: FrameworkConfig,
        session: BrowserSession | None = None,
        on_outcome: OutcomeCallback | None = None,
        on_viewport: ViewportCallback | None = None,
    ):
        self.config = config
        self.snapshots_dir = Path(config.snapshots_folder)
        self.summary_path = self.snapshots_dir / config.result_summary_filename
        self.store = SnapshotStore(self.snapshots_dir)
        self.session = session or BrowserSession(config)
        self.on_outcome = on_outcome
        self.on_viewport = on_viewport

    def run(self) -> RunSummary:
        """Render and compare every example, then write the run summary."""
        return asyncio.run(self._run())

    async def _run(self) -> RunSummary:
        start = time.time()
        logger.info("=== Starting snapshot run against %s ===", self.config.test_page_url)
        try:
            await self.session.start()
            await self.session.load_test_page()

            errors = await self.session.get_initialization_errors()
            if errors:
                raise PageScriptError(errors)

            examples = await self.session.get_all_examples()
            groups = group_examples_by_viewport(examples, self.config)
            logger.info("Found %d examples across %d viewports", len(examples), len(groups))

            executor = CaptureExecutor(
                self.session, self.store,
                on_outcome=self.on_outcome, on_viewport=self.on_viewport,
            )
            run_result = await executor.perform_diffs(groups)
            summary = save_run_summary(run_result, self.summary_path)
        finally:
            await self.session.close()

        logger.info("=== Run complete in %.1fs: %d new, %d diff ===",
                    time.time() - start, len(summary.new_images), len(summary.diff_images))
        return summary

    def load_summary(self) -> RunSummary:
        return load_run_summary(self.summary_path)

    def align(
        self,
        description: str,
        viewport_name: str,
        output_dir: Path,
        progress: ProgressCallback | None = None,
    ) -> tuple[Path, Path]:
        """Write row-aligned previous/current images for a changed snapshot."""
        return asyncio.run(self._align(description, viewport_name, Path(output_dir), progress))

    async def _align(
        self,
        description: str,
        viewport_name: str,
        output_dir: Path,
        progress: ProgressCallback | None,
    ) -> tuple[Path, Path]:
        self.config.get_viewport(viewport_name)
        previous, current = self.store.load_pair(description, viewport_name)
        aligned = await compute_and_inject_diffs_async(
            previous, current, progress=progress,
            max_rows=self.config.max_alignment_rows,
        )
        output_dir.mkdir(parents=True, exist_ok=True)
        previous_out = output_dir / "previous.aligned.png"
        current_out = output_dir / "current.aligned.png"
        previous_out.write_bytes(encode(aligned.previous))
        current_out.write_bytes(encode(aligned.current))
        logger.info("Aligned %s [%s]: %d rows", description, viewport_name, aligned.current.height)
        return previous_out, current_out
