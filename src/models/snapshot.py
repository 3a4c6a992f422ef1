"""Snapshot data structures: examples, render boxes, raster images, outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

BYTES_PER_PIXEL = 4


class Example(BaseModel):
    """An example enumerated by the harness page."""

    model_config = ConfigDict(frozen=True)

    description: str
    viewports: Optional[list[str]] = None  # None means "default viewport only"

    @classmethod
    def from_harness(cls, payload: dict) -> "Example":
        """Build from the harness' ``{description, options: {viewports?}}`` shape."""
        options = payload.get("options") or {}
        return cls(description=payload["description"], viewports=options.get("viewports") or None)


class RenderBox(BaseModel):
    """Bounding box of a rendered example, in screenshot pixels."""

    width: int = Field(ge=0)
    height: int = Field(ge=0)
    top: int = 0
    left: int = 0

    @classmethod
    def from_harness(cls, payload: dict) -> "RenderBox":
        # getBoundingClientRect() hands back fractional pixels
        return cls(
            width=round(payload["width"]),
            height=round(payload["height"]),
            top=round(payload.get("top") or 0),
            left=round(payload.get("left") or 0),
        )


@dataclass(frozen=True)
class RasterImage:
    """Decoded RGBA image; ``data`` is row-major, 4 bytes per pixel."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        expected = self.width * self.height * BYTES_PER_PIXEL
        if len(self.data) != expected:
            raise ValueError(
                f"Pixel buffer is {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height}"
            )

    @property
    def row_size(self) -> int:
        return self.width * BYTES_PER_PIXEL

    def rows(self) -> Iterator[bytes]:
        size = self.row_size
        for start in range(0, size * self.height, size):
            yield self.data[start:start + size]

    @classmethod
    def from_rows(cls, rows: Iterable[bytes], width: int) -> "RasterImage":
        rows = list(rows)
        return cls(width=width, height=len(rows), data=b"".join(rows))

    def same_pixels(self, other: "RasterImage") -> bool:
        """Strict equality: height, then width, then every byte."""
        if self.height != other.height:
            return False
        if self.width != other.width:
            return False
        return self.data == other.data


ComparisonResult = Literal["equal", "diff", "new"]


class ComparisonOutcome(BaseModel):
    result: ComparisonResult
    description: str
    viewport_name: str
    height: Optional[int] = None  # max(old, new) for diff, new height for new
