"""Cropped screenshots of a rendered example."""

from __future__ import annotations

import asyncio

from src.browser.session import BrowserSession
from src.errors import RenderError
from src.imaging.codec import crop, decode
from src.models.snapshot import RasterImage, RenderBox


def _crop_and_decode(screenshot: bytes, box: RenderBox) -> RasterImage:
    return decode(crop(screenshot, box))


async def take_cropped_screenshot(
    session: BrowserSession, description: str, box: RenderBox,
) -> RasterImage:
    """Screenshot the page and cut out the example's bounding box."""
    if box.width == 0 or box.height == 0:
        raise RenderError(description, f"rendered an empty box ({box.width}x{box.height})")
    screenshot = await session.take_screenshot(description)
    return await asyncio.to_thread(_crop_and_decode, screenshot, box)
