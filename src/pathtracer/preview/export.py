"""Image export utilities for rendered images.

Rendered images are 8-bit RGB arrays of shape (height, width, 3) with row 0
at the top, as returned by ``Renderer.get_image_uint8()``. They are written
with Pillow; the format follows the file extension.

Example:
    >>> from pathtracer.core.render import Renderer
    >>> from pathtracer.preview.export import save_png
    >>> renderer = Renderer(400, 225)
    >>> renderer.render(50)
    >>> save_png(renderer.get_image_uint8(), "output.png")
"""

from __future__ import annotations

import logging
from os import PathLike

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def save_png(image: npt.NDArray[np.uint8], filepath: str | PathLike[str]) -> None:
    """Save an 8-bit RGB image.

    Args:
        image: Array of shape (H, W, 3) with dtype uint8.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected dtype uint8, got {image.dtype}")

    pil_image = PILImage.fromarray(np.ascontiguousarray(image))
    pil_image.save(filepath)
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def load_png(filepath: str | PathLike[str]) -> npt.NDArray[np.uint8]:
    """Load an image file as an (H, W, 3) uint8 array."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGB"), dtype=np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.number],
    image_b: npt.NDArray[np.number],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
