"""Run summary output — the machine-readable record of the last run."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

from pydantic import ValidationError

from src.errors import PersistenceError
from src.models.run_result import RunResult, RunSummary

logger = logging.getLogger(__name__)


def save_run_summary(
    run_result: RunResult,
    output_path: Path,
    generated_at: int | None = None,
) -> RunSummary:
    """Write the summary for a completed run, replacing any earlier one."""
    summary = RunSummary(
        generated_at=generated_at if generated_at is not None else int(time.time() * 1000),
        new_images=run_result.new_images,
        diff_images=run_result.diff_images,
    )
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(summary.model_dump(by_alias=True), f, indent=2)
    except OSError as e:
        raise PersistenceError(f"Could not write run summary {output_path}: {e}") from e
    logger.debug("Saved run summary to %s", output_path)
    return summary


def load_run_summary(path: Path) -> RunSummary:
    """Load a summary written by ``save_run_summary``."""
    if not path.exists():
        raise FileNotFoundError(f"No run summary at {path}. Run 'snapdiff run' first.")
    try:
        with open(path) as f:
            return RunSummary.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise PersistenceError(f"Could not read run summary {path}: {e}") from e
