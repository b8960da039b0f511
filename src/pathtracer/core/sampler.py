"""Per-task pseudo-random sampling for Monte Carlo path tracing.

Every parallel task in a render (one pixel) owns one random stream. The
stream state lives in a Taichi field and a ``Sampler`` is nothing more than
the index of its stream, so materials and the integrator can draw numbers
without sharing a generator across tasks. Only the task holding a stream
index ever reads or writes that slot, which keeps draws free of locks and
atomics.

Each stream is an xorshift32 generator. Streams are seeded host-side from
NumPy's ``default_rng`` so no two tasks start from correlated states and no
stream starts from the all-zero state (a fixed point of xorshift).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampler import Sampler, seed_samplers, uniform01
    >>> seed_samplers(42)
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     return uniform01(Sampler(stream=0))
"""

import numpy as np
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Maximum supported image dimensions; one stream per pixel
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048
MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# xorshift32 state, one slot per stream
_rng_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)

# Seed last used by seed_samplers()
_seed: int | None = None


@ti.dataclass
class Sampler:
    """Handle to an exclusively owned random stream.

    Attributes:
        stream: Index of the stream state in the sampler storage. Two tasks
            running concurrently must never hold the same stream index.
    """

    stream: ti.i32


def seed_samplers(seed: int) -> None:
    """Seed every random stream from a single integer seed.

    Args:
        seed: Seed for NumPy's generator. The same seed reproduces the same
            per-stream sequences.
    """
    global _seed

    rng = np.random.default_rng(seed)
    states = rng.integers(
        1,
        np.iinfo(np.uint32).max,
        size=MAX_STREAMS,
        dtype=np.uint32,
        endpoint=True,
    )
    _rng_states.from_numpy(states)
    _seed = seed


def get_seed() -> int | None:
    """Return the seed last passed to seed_samplers(), or None."""
    return _seed


def get_stream_count() -> int:
    """Get the number of independent random streams available."""
    return MAX_STREAMS


@ti.func
def stream_index(pixel_i: ti.i32, pixel_j: ti.i32) -> ti.i32:
    """Map a pixel coordinate to its dedicated stream index."""
    return pixel_j * MAX_IMAGE_WIDTH + pixel_i


@ti.func
def make_sampler(pixel_i: ti.i32, pixel_j: ti.i32) -> Sampler:
    """Create the sampler owned by the task rendering pixel (i, j)."""
    return Sampler(stream=stream_index(pixel_i, pixel_j))


@ti.func
def _next_state(stream: ti.i32) -> ti.u32:
    """Advance one xorshift32 stream and return its new state."""
    x = _rng_states[stream]
    x ^= x << 13
    # Mask keeps the right shift logical
    x ^= (x >> 17) & 0x7FFF
    x ^= x << 5
    _rng_states[stream] = x
    return x


@ti.func
def uniform01(sampler: Sampler) -> ti.f32:
    """Draw a uniform float in [0, 1).

    The top 24 bits of the state are used so that every value is exactly
    representable in f32 and the result never rounds up to 1.0.

    Args:
        sampler: The sampler to draw from. Its stream state is advanced.

    Returns:
        A float in [0, 1).
    """
    bits = (_next_state(sampler.stream) >> 8) & 0xFFFFFF
    return ti.cast(bits, ti.f32) * (1.0 / 16777216.0)


@ti.func
def unit_sphere_point(sampler: Sampler) -> vec3:
    """Draw a point uniformly distributed on the surface of the unit sphere.

    Uses the closed-form area-preserving map: z is uniform in [-1, 1] and
    the azimuth is uniform in [0, 2*pi).

    Args:
        sampler: The sampler to draw from.

    Returns:
        A unit-length vector.
    """
    z = 1.0 - 2.0 * uniform01(sampler)
    phi = 2.0 * tm.pi * uniform01(sampler)
    r = ti.sqrt(tm.max(0.0, 1.0 - z * z))
    return vec3(r * ti.cos(phi), r * ti.sin(phi), z)


@ti.func
def hemisphere_point(sampler: Sampler, normal: vec3) -> vec3:
    """Draw a unit vector in the hemisphere oriented by a normal.

    A unit-sphere sample is negated when it falls in the opposite hemisphere,
    so the result always satisfies dot(result, normal) >= 0.

    Args:
        sampler: The sampler to draw from.
        normal: The vector defining the hemisphere (need not be unit length).

    Returns:
        A unit vector in the hemisphere around the normal.
    """
    on_sphere = unit_sphere_point(sampler)
    result = on_sphere
    if tm.dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result


@ti.func
def unit_disk_point(sampler: Sampler) -> vec3:
    """Draw a point uniformly distributed inside the unit disk (z = 0).

    Used by the thin-lens camera to jitter ray origins across the aperture.

    Returns:
        A point (x, y, 0) with x^2 + y^2 < 1.
    """
    r = ti.sqrt(uniform01(sampler))
    theta = 2.0 * tm.pi * uniform01(sampler)
    return vec3(r * ti.cos(theta), r * ti.sin(theta), 0.0)
