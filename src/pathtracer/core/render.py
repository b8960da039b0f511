"""Parallel render driver and progressive sample accumulation.

Every pixel is an independent task. A render pass launches one kernel whose
outermost loop runs over all pixels in parallel; each task owns the random
stream of its pixel, traces its samples through ``ray_color`` and adds them
to the pixel's slot in the accumulation buffer. The kernel returning is the
only synchronisation point.

Pixel (i, j) is sampled at normalized camera coordinates

    u = (i + rand) / width,  v = (j + rand) / height

with j = 0 the bottom row. Images returned to Python have row 0 at the top.

Linear radiance is converted to 8-bit colour with a gamma of 2 (square
root), clamped to [0, 0.999] and scaled by 256.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.render import RenderSettings, render_image
    >>> from pathtracer.scene.presets import simple_scene
    >>> settings = RenderSettings(width=400, height=225, samples_per_pixel=50)
    >>> scene, camera = simple_scene(settings.width / settings.height)
    >>> image = render_image(settings, camera)  # (225, 400, 3) uint8
"""

import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import ThinLensCamera, get_ray, setup_camera
from pathtracer.core.integrator import MAX_DEPTH, ray_color
from pathtracer.core.sampler import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    make_sampler,
    seed_samplers,
    uniform01,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Parameters of a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of camera rays averaged per pixel.
        max_depth: Maximum number of bounces per path.
        seed: Seed for the per-pixel random streams.
        batch_size: Samples per pixel rendered between progress reports.
    """

    width: int
    height: int
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH
    seed: int = 0
    batch_size: int = 10

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any value is out of range.
        """
        for name in ("width", "height", "samples_per_pixel", "batch_size"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        _check_dimensions(self.width, self.height)


def _check_dimensions(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )


# =============================================================================
# Render Target (Accumulation Buffer)
# =============================================================================

# Active image dimensions
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of all samples per pixel (preallocated to max size)
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Samples discarded by the last pass because a channel was NaN or Inf
_dropped_samples = ti.field(dtype=ti.i32, shape=())

# f32 exponent bits; all set means Inf or NaN
_F32_EXPONENT_MASK = 0x7F800000


def setup_render_target(width: int, height: int) -> None:
    """Set the active image dimensions and clear the accumulation buffer.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    _check_dimensions(width, height)
    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the accumulation buffer to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


@ti.kernel
def _accumulate(width: ti.i32, height: ti.i32, samples: ti.i32, max_depth: ti.i32):
    """Trace `samples` camera rays through every pixel and accumulate them."""
    for i, j in ti.ndrange(width, height):
        sampler = make_sampler(i, j)
        pixel_sum = vec3(0.0, 0.0, 0.0)

        for _ in range(samples):
            u = (ti.cast(i, ti.f32) + uniform01(sampler)) / ti.cast(width, ti.f32)
            v = (ti.cast(j, ti.f32) + uniform01(sampler)) / ti.cast(height, ti.f32)
            color = ray_color(get_ray(u, v, sampler), sampler, max_depth)

            # Integer test; fast-math float compares may fold isnan away
            finite = 1
            for c in ti.static(range(3)):
                if (ti.bit_cast(color[c], ti.u32) & _F32_EXPONENT_MASK) == _F32_EXPONENT_MASK:
                    finite = 0

            if finite == 1:
                pixel_sum += color
            else:
                ti.atomic_add(_dropped_samples[None], 1)

        _color_sum[i, j] += pixel_sum
        _sample_count[i, j] += samples


def accumulate_samples(samples: int, max_depth: int = MAX_DEPTH) -> int:
    """Add `samples` samples per pixel to the render target.

    Samples with a NaN or Inf channel are discarded but still counted, so
    they pull the pixel mean toward black.

    Returns:
        The number of samples discarded in this pass.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _dropped_samples[None] = 0
    _accumulate(width, height, samples, max_depth)

    dropped = int(_dropped_samples[None])
    if dropped > 0:
        logger.debug(
            "Discarded %d non-finite samples out of %d", dropped, width * height * samples
        )
    return dropped


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_image_linear() -> npt.NDArray[np.float32]:
    """Get the per-pixel mean radiance as a NumPy array.

    Returns:
        Array of shape (height, width, 3), row 0 at the top. Pixels without
        samples are black.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    color_sum = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]
    image = color_sum / np.maximum(counts, 1)[:, :, np.newaxis]

    # (width, height, 3) -> (height, width, 3), then put v = 1 at row 0
    image = np.flipud(np.transpose(image, (1, 0, 2)))
    return np.ascontiguousarray(image, dtype=np.float32)


def quantize_rgb8(linear: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert linear radiance to 8-bit colour.

    Applies gamma 2 (square root per channel), clamps to [0, 0.999] and
    scales by 256.
    """
    gamma_corrected = np.sqrt(np.maximum(linear, 0.0))
    return (256.0 * np.clip(gamma_corrected, 0.0, 0.999)).astype(np.uint8)


class Renderer:
    """Progressive renderer that accumulates samples in batches.

    Wraps the module-level render target. Samples are added in batches so
    callers can report progress or stop between batches; the accumulated
    image is valid after every batch. Because each pixel draws from its own
    stream in order, splitting a render into batches does not change which
    random numbers each pixel uses.

    The camera and scene must be set up before rendering.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of bounces per path.
        seed: Seed of the per-pixel random streams.
    """

    def __init__(
        self,
        width: int,
        height: int,
        max_depth: int = MAX_DEPTH,
        seed: int = 0,
    ) -> None:
        """Initialize the renderer, its render target and random streams.

        Raises:
            ValueError: If dimensions are invalid or max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.seed = seed
        setup_render_target(width, height)
        seed_samplers(seed)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> "Renderer":
        """Create a renderer from validated settings."""
        settings.validate()
        return cls(settings.width, settings.height, settings.max_depth, settings.seed)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples and restart the random streams."""
        clear_render_target()
        seed_samplers(self.seed)

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and discard accumulated samples.

        Raises:
            ValueError: If dimensions are invalid.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        seed_samplers(self.seed)

    def render(
        self,
        num_samples: int,
        batch_size: int = 10,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples with an optional progress callback.

        Accumulates into the existing buffer, so repeated calls keep refining
        the image.

        Args:
            num_samples: Number of samples per pixel to add.
            batch_size: Samples per pixel rendered before each callback.
            callback: Called after each batch with
                (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int,
        batch_size: int = 10,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples, yielding progress after each batch.

        Closing the generator (or simply not resuming it) stops the render
        between batches and leaves a valid, partially converged image.

        Args:
            num_samples: Number of samples per pixel to add.
            batch_size: Samples per pixel rendered before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples
        logger.info(
            "Rendering %dx%d, %d samples per pixel, max depth %d",
            self.width,
            self.height,
            num_samples,
            self.max_depth,
        )
        start = time.perf_counter()

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            accumulate_samples(batch, self.max_depth)
            remaining -= batch
            current = self.sample_count
            logger.debug("Accumulated %d/%d samples", current, target_samples)
            yield (current, target_samples)

        logger.info("Render finished in %.2fs", time.perf_counter() - start)

    def get_image_linear(self) -> npt.NDArray[np.float32]:
        """Get the mean linear radiance, shape (height, width, 3)."""
        return get_image_linear()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-corrected 8-bit image, shape (height, width, 3)."""
        return quantize_rgb8(self.get_image_linear())

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )


def render_image(
    settings: RenderSettings,
    camera: ThinLensCamera,
    callback: ProgressCallback | None = None,
) -> npt.NDArray[np.uint8]:
    """Render the current scene in one call.

    Args:
        settings: Render parameters.
        camera: Camera configuration.
        callback: Optional progress callback, see Renderer.render().

    Returns:
        An 8-bit RGB image of shape (height, width, 3), row 0 at the top.

    Raises:
        ValueError: If settings or camera are invalid.
    """
    settings.validate()
    setup_camera(camera)
    renderer = Renderer.from_settings(settings)
    renderer.render(settings.samples_per_pixel, settings.batch_size, callback)
    return renderer.get_image_uint8()
