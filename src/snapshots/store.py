"""Snapshot store — classifies fresh captures against on-disk baselines."""

from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path

from PIL import UnidentifiedImageError

from src.errors import PersistenceError
from src.imaging.codec import decode, encode
from src.models.snapshot import ComparisonOutcome, RasterImage

logger = logging.getLogger(__name__)

CURRENT_FILE = "current.png"
PREVIOUS_FILE = "previous.png"


def snapshot_path(folder: Path, description: str, viewport_name: str, file_name: str) -> Path:
    """Deterministic artifact path for a (description, viewport) key."""
    encoded = base64.urlsafe_b64encode(description.encode("utf-8")).decode("ascii")
    return Path(folder) / encoded / viewport_name / file_name


class SnapshotStore:
    """Owns the ``current.png`` / ``previous.png`` pair for every snapshot key."""

    def __init__(self, snapshots_folder: Path):
        self.snapshots_folder = Path(snapshots_folder)

    def current_path(self, description: str, viewport_name: str) -> Path:
        return snapshot_path(self.snapshots_folder, description, viewport_name, CURRENT_FILE)

    def previous_path(self, description: str, viewport_name: str) -> Path:
        return snapshot_path(self.snapshots_folder, description, viewport_name, PREVIOUS_FILE)

    async def classify_and_persist(
        self, description: str, viewport_name: str, image: RasterImage,
    ) -> ComparisonOutcome:
        """Compare ``image`` with the stored baseline and rotate artifacts.

        Disk work happens in a worker thread, so sibling tasks and the
        browser round-trip keep running meanwhile.
        """
        return await asyncio.to_thread(self._classify_and_persist, description, viewport_name, image)

    def _classify_and_persist(
        self, description: str, viewport_name: str, image: RasterImage,
    ) -> ComparisonOutcome:
        previous_path = self.previous_path(description, viewport_name)
        current_path = self.current_path(description, viewport_name)

        # This runs once per snapshot, so keep the common path cheap:
        # 1. drop a stale previous.png
        # 2. compare in memory against current.png if there is one
        # 3. on a diff, move current.png to previous.png and write the new one
        # 4. on no diff, leave current.png alone
        try:
            previous_path.unlink(missing_ok=True)

            if not current_path.exists():
                current_path.parent.mkdir(parents=True, exist_ok=True)
                current_path.write_bytes(encode(image))
                logger.debug("New snapshot %s [%s]", description, viewport_name)
                return ComparisonOutcome(
                    result="new", description=description,
                    viewport_name=viewport_name, height=image.height,
                )

            stored = decode(current_path.read_bytes())
            if stored.same_pixels(image):
                return ComparisonOutcome(
                    result="equal", description=description, viewport_name=viewport_name,
                )

            current_path.replace(previous_path)
            current_path.write_bytes(encode(image))
        except (OSError, UnidentifiedImageError) as e:
            raise PersistenceError(
                f"Could not persist snapshot {description!r} [{viewport_name}]: {e}"
            ) from e

        logger.debug("Snapshot changed %s [%s]", description, viewport_name)
        return ComparisonOutcome(
            result="diff", description=description, viewport_name=viewport_name,
            height=max(stored.height, image.height),
        )

    def load_pair(self, description: str, viewport_name: str) -> tuple[RasterImage, RasterImage]:
        """Load ``(previous, current)`` for a key that was classified as a diff."""
        previous_path = self.previous_path(description, viewport_name)
        current_path = self.current_path(description, viewport_name)
        if not current_path.exists():
            raise FileNotFoundError(f"No snapshot for {description!r} [{viewport_name}]")
        if not previous_path.exists():
            raise FileNotFoundError(
                f"No previous snapshot for {description!r} [{viewport_name}] (snapshot is unchanged or new)"
            )
        try:
            return decode(previous_path.read_bytes()), decode(current_path.read_bytes())
        except (OSError, UnidentifiedImageError) as e:
            raise PersistenceError(f"Could not read snapshots for {description!r}: {e}") from e
