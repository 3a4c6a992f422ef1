"""Configuration models for snapdiff."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.errors import ConfigurationError


class ViewportConfig(BaseModel):
    name: str = "large"
    width: int = Field(default=1024, gt=0)
    height: int = Field(default=768, gt=0)


class FrameworkConfig(BaseModel):
    # Harness page
    target_url: str = "http://localhost:4567"
    snapshot_route: str = "/snapshot"
    harness_global: str = "happo"  # window.<harness_global> exposes errors/getAllExamples/renderExample

    # Browser
    browser: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = True
    script_timeout_seconds: float = Field(default=3.0, gt=0)

    # Viewports, in processing order. The first one is the default.
    viewports: list[ViewportConfig] = Field(
        default_factory=lambda: [
            ViewportConfig(name="large", width=1024, height=768),
            ViewportConfig(name="medium", width=640, height=888),
            ViewportConfig(name="small", width=320, height=444),
        ]
    )

    # Storage
    snapshots_folder: str = "./snapshots"
    result_summary_filename: str = "resultSummary.json"

    # Diff rendering
    max_alignment_rows: int = Field(default=10000, gt=0)

    @field_validator("viewports")
    @classmethod
    def check_viewports(cls, v: list[ViewportConfig]) -> list[ViewportConfig]:
        if not v:
            raise ValueError("At least one viewport must be configured")
        names = [vp.name for vp in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate viewport names: {', '.join(duplicates)}")
        return v

    @property
    def test_page_url(self) -> str:
        return self.target_url.rstrip("/") + "/" + self.snapshot_route.lstrip("/")

    @property
    def default_viewport(self) -> ViewportConfig:
        return self.viewports[0]

    def get_viewport(self, name: str) -> ViewportConfig:
        for viewport in self.viewports:
            if viewport.name == name:
                return viewport
        known = ", ".join(vp.name for vp in self.viewports)
        raise ConfigurationError(f"Unknown viewport '{name}' (configured: {known})")

    @classmethod
    def load(cls, path: str | Path) -> "FrameworkConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
