"""Row alignment — lines up two images of different height before diffing.

Each pixel row is reduced to a fingerprint and the two fingerprint sequences
are aligned on their longest common subsequence. Rows that exist on one side
only get a fully transparent gap row on the other side, so that content which
merely shifted up or down lines up again and only real changes show in the
diff.

The engine is pure. It never mutates its inputs and reports progress through
an optional callback, so the caller decides where it runs (inline, a worker
thread via ``compute_and_inject_diffs_async``, or a separate process).
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from typing import Callable, Hashable, Optional, Sequence, Union

from src.errors import AlignmentTooLargeError
from src.models.snapshot import BYTES_PER_PIXEL, RasterImage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

PROGRESS_ROWS_CONVERTED = 20
PROGRESS_PREVIOUS_HASHED = 40
PROGRESS_CURRENT_HASHED = 60
PROGRESS_ALIGNED = 85
PROGRESS_DONE = 100


@dataclass(frozen=True)
class Real:
    """A position holding original row ``index`` of its sequence."""

    index: int


class _Gap:
    _instance: Optional["_Gap"] = None

    def __new__(cls) -> "_Gap":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "GAP"


GAP = _Gap()

AlignedRow = Union[Real, _Gap]


def row_fingerprint(row: bytes) -> bytes:
    """Content hash of one pixel row. Equal hashes are treated as equal rows."""
    return hashlib.sha256(row).digest()


def _lcs_suffix_table(a: Sequence[Hashable], b: Sequence[Hashable]) -> list[list[int]]:
    """table[i][j] is the LCS length of a[i:] and b[j:]."""
    n, m = len(a), len(b)
    table = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = table[i], table[i + 1]
        ai = a[i]
        for j in range(m - 1, -1, -1):
            if ai == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = below[j] if below[j] >= row[j + 1] else row[j + 1]
    return table


def align(
    previous: Sequence[Hashable], current: Sequence[Hashable],
) -> tuple[list[AlignedRow], list[AlignedRow]]:
    """Align two fingerprint sequences on their longest common subsequence.

    Returns two lists of equal length. At every position either both sides
    are ``Real`` rows with equal fingerprints, or one side is ``Real`` and the
    other is ``GAP``.

    The walk goes front to back, so a match is always taken at the earliest
    position where it still yields a longest common subsequence. When a row
    can be skipped on either side without shortening the LCS, the previous
    side's row is emitted first (removals before insertions).
    """
    table = _lcs_suffix_table(previous, current)
    n, m = len(previous), len(current)
    aligned_previous: list[AlignedRow] = []
    aligned_current: list[AlignedRow] = []
    i = j = 0
    while i < n and j < m:
        if previous[i] == current[j]:
            aligned_previous.append(Real(i))
            aligned_current.append(Real(j))
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            aligned_previous.append(Real(i))
            aligned_current.append(GAP)
            i += 1
        else:
            aligned_previous.append(GAP)
            aligned_current.append(Real(j))
            j += 1
    for k in range(i, n):
        aligned_previous.append(Real(k))
        aligned_current.append(GAP)
    for k in range(j, m):
        aligned_previous.append(GAP)
        aligned_current.append(Real(k))
    return aligned_previous, aligned_current


@dataclass(frozen=True)
class AlignedImages:
    previous: RasterImage
    current: RasterImage

    def to_message(self) -> dict:
        """The final message of the alignment channel.

        This is the wire format handed to downstream diff renderers:
        ``{previousData: {data, width, height}, currentData: {...}}``.
        """
        return {
            "previousData": {
                "data": self.previous.data,
                "width": self.previous.width,
                "height": self.previous.height,
            },
            "currentData": {
                "data": self.current.data,
                "width": self.current.width,
                "height": self.current.height,
            },
        }


def _padded_rows(image: RasterImage, width: int) -> list[bytes]:
    padding = bytes((width - image.width) * BYTES_PER_PIXEL)
    return [row + padding for row in image.rows()]


def _inject_gaps(rows: list[bytes], trace: list[AlignedRow], gap_row: bytes) -> list[bytes]:
    return [gap_row if entry is GAP else rows[entry.index] for entry in trace]


def compute_and_inject_diffs(
    previous: RasterImage,
    current: RasterImage,
    progress: ProgressCallback | None = None,
    max_rows: int | None = None,
) -> AlignedImages:
    """Align ``previous`` and ``current`` row-wise and return padded copies.

    Both returned images have the same height and the same width (the wider
    of the two inputs; narrower rows are right-padded with transparent
    pixels). Gap rows are fully transparent.
    """
    report = progress or (lambda _pct: None)
    if max_rows is not None and max(previous.height, current.height) > max_rows:
        raise AlignmentTooLargeError(
            f"Refusing to align {previous.height} x {current.height} rows "
            f"(limit {max_rows})"
        )

    max_width = max(previous.width, current.width)
    previous_rows = _padded_rows(previous, max_width)
    current_rows = _padded_rows(current, max_width)
    report(PROGRESS_ROWS_CONVERTED)

    previous_hashes = [row_fingerprint(r) for r in previous_rows]
    report(PROGRESS_PREVIOUS_HASHED)
    current_hashes = [row_fingerprint(r) for r in current_rows]
    report(PROGRESS_CURRENT_HASHED)

    previous_trace, current_trace = align(previous_hashes, current_hashes)
    report(PROGRESS_ALIGNED)

    gap_row = bytes(max_width * BYTES_PER_PIXEL)
    result = AlignedImages(
        previous=RasterImage.from_rows(_inject_gaps(previous_rows, previous_trace, gap_row), max_width),
        current=RasterImage.from_rows(_inject_gaps(current_rows, current_trace, gap_row), max_width),
    )
    logger.debug(
        "Aligned %d/%d rows into %d rows (width %d)",
        previous.height, current.height, result.previous.height, max_width,
    )
    report(PROGRESS_DONE)
    return result


async def compute_and_inject_diffs_async(
    previous: RasterImage,
    current: RasterImage,
    progress: ProgressCallback | None = None,
    max_rows: int | None = None,
) -> AlignedImages:
    """Run the alignment in a worker thread.

    Progress milestones are posted back to the event loop, so ``progress``
    always runs on the loop thread.
    """
    loop = asyncio.get_running_loop()

    def _post(pct: int) -> None:
        if progress is not None:
            loop.call_soon_threadsafe(progress, pct)

    result = await asyncio.to_thread(compute_and_inject_diffs, previous, current, _post, max_rows)
    # let queued progress callbacks run before handing back the result
    await asyncio.sleep(0)
    return result
