"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable, Sequence
from unittest.mock import AsyncMock

import pytest

from src.errors import RenderError
from src.imaging.codec import encode
from src.models.config import FrameworkConfig, ViewportConfig
from src.models.snapshot import Example, RasterImage, RenderBox
from src.snapshots.store import SnapshotStore

Color = tuple[int, int, int, int]

RED: Color = (255, 0, 0, 255)
GREEN: Color = (0, 255, 0, 255)
BLUE: Color = (0, 0, 255, 255)
WHITE: Color = (255, 255, 255, 255)
BLACK: Color = (0, 0, 0, 255)


def striped_image(colors: Sequence[Color], width: int) -> RasterImage:
    """One solid-colored row per entry in ``colors``."""
    return RasterImage.from_rows((bytes(c) * width for c in colors), width)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def viewports() -> list[ViewportConfig]:
    return [
        ViewportConfig(name="large", width=1024, height=768),
        ViewportConfig(name="small", width=320, height=444),
    ]


@pytest.fixture
def framework_config(viewports: list[ViewportConfig], tmp_path: Path) -> FrameworkConfig:
    """Create a test framework configuration writing into tmp_path."""
    return FrameworkConfig(
        target_url="http://localhost:4567",
        viewports=viewports,
        snapshots_folder=str(tmp_path / "snapshots"),
        script_timeout_seconds=1.0,
    )


@pytest.fixture
def temp_config_file(framework_config: FrameworkConfig, tmp_path: Path) -> Path:
    config_file = tmp_path / "snapdiff.json"
    framework_config.save(config_file)
    return config_file


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def make_image() -> Callable[[Sequence[Color], int], RasterImage]:
    return striped_image


@pytest.fixture
def store(tmp_path: Path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "snapshots")


# ============================================================================
# Browser Session Fixtures
# ============================================================================


class FakeSession:
    """Stands in for BrowserSession.

    ``pages`` maps an example description to the image its render produces;
    a string value is treated as the harness error for that example.
    """

    def __init__(self, pages: dict[str, RasterImage | str], init_errors: list[str] | None = None):
        self.pages = pages
        self.init_errors = init_errors or []
        self.calls: list[tuple] = []
        self._current: RasterImage | None = None
        self.start = AsyncMock(side_effect=lambda: self.calls.append(("start",)))
        self.load_test_page = AsyncMock(side_effect=lambda: self.calls.append(("load",)))
        self.close = AsyncMock(side_effect=lambda: self.calls.append(("close",)))
        self.examples: list[Example] = [Example(description=d) for d in pages]

    async def get_initialization_errors(self) -> list[str]:
        return self.init_errors

    async def get_all_examples(self) -> list[Example]:
        return self.examples

    async def resize_viewport(self, width: int, height: int) -> None:
        self.calls.append(("resize", width, height))

    async def render(self, description: str) -> RenderBox:
        self.calls.append(("render", description))
        page = self.pages[description]
        if isinstance(page, str):
            raise RenderError(description, page)
        self._current = page
        return RenderBox(width=page.width, height=page.height, top=0, left=0)

    async def take_screenshot(self, description: str) -> bytes:
        self.calls.append(("screenshot",))
        return encode(self._current)


@pytest.fixture
def fake_session_factory() -> Callable[..., FakeSession]:
    return FakeSession
