"""PNG codec and screenshot cropping on top of Pillow."""

from __future__ import annotations

import io

from PIL import Image

from src.models.snapshot import RasterImage, RenderBox


def decode(png_bytes: bytes) -> RasterImage:
    """Decode PNG bytes into an RGBA raster."""
    with Image.open(io.BytesIO(png_bytes)) as img:
        rgba = img.convert("RGBA")
        return RasterImage(width=rgba.width, height=rgba.height, data=rgba.tobytes())


def encode(image: RasterImage) -> bytes:
    """Encode an RGBA raster as PNG bytes."""
    buf = io.BytesIO()
    Image.frombytes("RGBA", (image.width, image.height), image.data).save(buf, format="PNG")
    return buf.getvalue()


def crop(png_bytes: bytes, box: RenderBox) -> bytes:
    """Cut ``box`` out of a PNG screenshot and return it as PNG bytes.

    Areas of the box that fall outside the screenshot come back as
    transparent pixels.
    """
    with Image.open(io.BytesIO(png_bytes)) as img:
        region = img.convert("RGBA").crop(
            (box.left, box.top, box.left + box.width, box.top + box.height)
        )
    buf = io.BytesIO()
    region.save(buf, format="PNG")
    return buf.getvalue()
