"""Run result data structures produced by the capture executor."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.snapshot import ComparisonOutcome


class ImageEntry(BaseModel):
    """A new or changed snapshot, as listed in the run summary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    description: str
    viewport_name: str
    height: int | None = None


class RunResult(BaseModel):
    new_images: list[ImageEntry] = Field(default_factory=list)
    diff_images: list[ImageEntry] = Field(default_factory=list)

    def add(self, outcome: ComparisonOutcome) -> None:
        """Record an outcome; ``equal`` outcomes are dropped."""
        if outcome.result == "equal":
            return
        entry = ImageEntry(
            description=outcome.description,
            viewport_name=outcome.viewport_name,
            height=outcome.height,
        )
        if outcome.result == "new":
            self.new_images.append(entry)
        else:
            self.diff_images.append(entry)

    def merge(self, other: "RunResult") -> None:
        self.new_images.extend(other.new_images)
        self.diff_images.extend(other.diff_images)


class RunSummary(BaseModel):
    """Persisted record of a completed run (camelCase on disk)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    generated_at: int  # epoch milliseconds
    new_images: list[ImageEntry] = Field(default_factory=list)
    diff_images: list[ImageEntry] = Field(default_factory=list)
