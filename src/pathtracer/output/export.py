"""Image output: 8-bit encoding and pixel sinks.

A render result stores rows bottom-up (row 0 is the bottom scanline).
Image formats store the top scanline first, so ``write_image`` hands rows
to a sink from the highest row index down to 0.

Supported formats:
    - PPM (plain-text P3)
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from src.pathtracer.output.export import save_ppm, save_png
    >>> result = render(scene, camera, settings)
    >>> save_ppm(result, "image.ppm")
    >>> save_png(result, "image.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from src.pathtracer.core.scheduler import RenderResult

# Largest value kept before scaling, so 1.0 maps to 255 rather than 256
MAX_INTENSITY = 0.999


def to_8bit(color: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Map gamma-corrected colors in [0, 1] to 8-bit integers.

    Each component becomes ``floor(256 * clamp(value, 0, 0.999))``.

    Args:
        color: A single color or an array of colors with values in [0, 1].
            Values outside that range are clamped.

    Returns:
        Array of the same shape with dtype uint8.
    """
    values = np.asarray(color, dtype=np.float64)
    return np.floor(256.0 * np.clip(values, 0.0, MAX_INTENSITY)).astype(np.uint8)


def _check_row(colors: npt.ArrayLike, width: int) -> npt.NDArray[np.float64]:
    row = np.asarray(colors, dtype=np.float64)
    if row.shape != (width, 3):
        raise ValueError(f"Row must have shape ({width}, 3), got {row.shape}")
    return row


class PixelSink(Protocol):
    """Destination for finished scanlines."""

    def write(self, row: int, colors: npt.ArrayLike) -> None:
        """Accept the colors of scanline ``row`` (shape (width, 3))."""
        ...


class PPMWriter:
    """Streams rows to a plain-text P3 image.

    The header is written on construction. Rows must arrive top scanline
    first, i.e. with row indices ``height - 1`` down to ``0``.

    Args:
        stream: Text stream to write to.
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, stream: TextIO, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        self.stream = stream
        self.width = width
        self.height = height
        self._next_row = height - 1
        stream.write(f"P3\n{width} {height}\n255\n")

    @property
    def complete(self) -> bool:
        return self._next_row < 0

    def write(self, row: int, colors: npt.ArrayLike) -> None:
        if row != self._next_row:
            raise ValueError(f"Expected row {self._next_row}, got {row}")
        pixels = to_8bit(_check_row(colors, self.width))
        self.stream.write("".join(f"{r} {g} {b}\n" for r, g, b in pixels.tolist()))
        self._next_row -= 1


class PNGWriter:
    """Collects rows by index and saves them as an 8-bit PNG.

    Rows may arrive in any order. Saving requires every row to be present.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._buffer = np.zeros((height, width, 3), dtype=np.uint8)
        self._filled = np.zeros(height, dtype=bool)

    @property
    def complete(self) -> bool:
        return bool(self._filled.all())

    def write(self, row: int, colors: npt.ArrayLike) -> None:
        if not 0 <= row < self.height:
            raise ValueError(f"Row {row} out of range [0, {self.height})")
        # Image row 0 is the top of the file
        self._buffer[self.height - 1 - row] = to_8bit(_check_row(colors, self.width))
        self._filled[row] = True

    def save(self, filepath: str) -> None:
        if not self.complete:
            missing = np.flatnonzero(~self._filled)
            raise ValueError(f"Cannot save incomplete image; missing rows {missing.tolist()[:10]}")
        PILImage.fromarray(self._buffer).save(filepath)


def write_image(result: RenderResult, sink: PixelSink) -> None:
    """Feed every row of a render result to a sink, top scanline first."""
    for row in range(result.height - 1, -1, -1):
        sink.write(row, result.rows[row])


def save_ppm(result: RenderResult, filepath: str) -> None:
    """Save a render result as a plain-text PPM (P3) file."""
    with open(filepath, "w", encoding="ascii") as f:
        write_image(result, PPMWriter(f, result.width, result.height))


def save_png(result: RenderResult, filepath: str) -> None:
    """Save a render result as an 8-bit PNG file."""
    writer = PNGWriter(result.width, result.height)
    write_image(result, writer)
    writer.save(filepath)
