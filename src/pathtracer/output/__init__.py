"""Output module: 8-bit encoding and image writers."""

from .export import (
    PixelSink,
    PNGWriter,
    PPMWriter,
    save_png,
    save_ppm,
    to_8bit,
    write_image,
)

__all__ = [
    "PixelSink",
    "PPMWriter",
    "PNGWriter",
    "to_8bit",
    "write_image",
    "save_ppm",
    "save_png",
]
