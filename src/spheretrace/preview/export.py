"""PNG export of the final pixel grid.

The writer takes a finished 8-bit image and its dimensions and reports
success or failure instead of raising: by the time it runs, rendering has
already completed in memory, and a failed write should not lose that work.

Example:
    >>> from spheretrace.preview.export import write_png
    >>> result = write_png("out.png", pixels, width=64, height=48)
    >>> if not result.success:
    ...     print(result.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


@dataclass(frozen=True)
class ImageWriteResult:
    """Outcome of an image write.

    Attributes:
        success: True if the file was written.
        message: Human-readable description of the outcome.
    """

    success: bool
    message: str

    def __bool__(self) -> bool:
        return self.success


def pixels_to_array(
    pixels: npt.ArrayLike,
    width: int,
    height: int,
) -> npt.NDArray[np.uint8]:
    """Reshape row-major RGB triples into an (height, width, 3) uint8 array.

    Args:
        pixels: Either height*width triples in row-major order (y outer,
            x inner) or an array already shaped (height, width, 3).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The image array.

    Raises:
        ValueError: If the pixel data is not numeric, or the pixel count or
            value range does not match.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    try:
        array = np.asarray(pixels)
    except ValueError as e:
        raise ValueError(f"Pixel data is not a rectangular array: {e}") from None
    if not (np.issubdtype(array.dtype, np.integer) or np.issubdtype(array.dtype, np.floating)):
        raise ValueError(f"Pixel values must be numeric, got dtype {array.dtype}")
    if array.size != width * height * 3:
        raise ValueError(
            f"Expected {width * height} RGB triples for {width}x{height}, "
            f"got {array.size} values"
        )
    # NaN fails both comparisons and is rejected with the out-of-range values
    if not np.all((array >= 0) & (array <= 255)):
        raise ValueError("Pixel values must be in [0, 255]")
    return array.reshape(height, width, 3).astype(np.uint8)


def write_png(
    filepath: str | Path,
    pixels: npt.ArrayLike,
    width: int,
    height: int,
) -> ImageWriteResult:
    """Write 24-bit RGB pixels to a PNG file.

    Args:
        filepath: Output file path.
        pixels: Row-major RGB triples, see pixels_to_array().
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        An ImageWriteResult; never raises for bad input or I/O errors.
    """
    try:
        image = pixels_to_array(pixels, width, height)
    except ValueError as e:
        return ImageWriteResult(False, f"Invalid pixel data for \"{filepath}\": {e}")

    try:
        PILImage.fromarray(image).save(str(filepath), format="PNG")
    except (OSError, ValueError) as e:
        return ImageWriteResult(False, f"Error writing file \"{filepath}\": {e}")

    return ImageWriteResult(True, f"Wrote {width}x{height} image to \"{filepath}\"")


def read_png(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Read a PNG back as an (height, width, 3) uint8 array."""
    with PILImage.open(filepath) as image:
        return np.asarray(image.convert("RGB"), dtype=np.uint8)
