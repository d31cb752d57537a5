"""
Mathematical utilities for motion capture data.

Provides functions for:
- Vector operations
- Capture-to-target coordinate conversion
- Quaternion construction, composition and inversion

Quaternions are stored as [x, y, z, w], the layout animation tracks use.
Every function accepts a single value or a stack of values along the
leading axes.
"""

import numpy as np
from scipy.spatial.transform import Rotation


# Only directions opposite to within rounding take the half-turn branch
EPSILON = float(np.finfo(np.float64).eps)

IDENTITY_QUATERNION = np.array([0.0, 0.0, 0.0, 1.0])


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """
    Normalize vectors to unit length along the last axis.

    Args:
        v: Input vector(s), shape (..., 3)

    Returns:
        Normalized vector(s) (zero where the input has zero length)
    """
    v = np.asarray(v, dtype=np.float64)
    norm = np.linalg.norm(v, axis=-1, keepdims=True)
    safe = np.where(norm < 1e-10, 1.0, norm)
    return np.where(norm < 1e-10, 0.0, v / safe)


def lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Linear interpolation between a and b."""
    return a + (b - a) * t


def to_target_space(positions: np.ndarray, scale: float = 100.0) -> np.ndarray:
    """
    Convert capture-space positions to the exported coordinate frame.

    The capture frame has X mirrored and Y pointing down relative to the
    authoring tools, and is in meters. X and Y are negated and every axis
    is scaled (meters to centimeters by default).

    Args:
        positions: Positions with shape (..., 3)
        scale: Unit conversion factor

    Returns:
        Converted positions with the same shape
    """
    return np.asarray(positions, dtype=np.float64) * np.array([-scale, -scale, scale])


def quaternion_from_unit_vectors(v_from: np.ndarray, v_to: np.ndarray) -> np.ndarray:
    """
    Shortest-arc rotation taking one unit vector onto another.

    Uses the half-way formulation q = [v_from x v_to, 1 + v_from . v_to],
    normalized, which yields identity for parallel vectors. For
    antiparallel vectors any axis perpendicular to v_from is valid; one
    is picked from the larger of the x/z components.

    Args:
        v_from: Unit vector(s), shape (..., 3)
        v_to: Unit vector(s), shape (..., 3)

    Returns:
        Quaternion(s) [x, y, z, w], shape (..., 4)
    """
    v_from, v_to = np.broadcast_arrays(
        np.asarray(v_from, dtype=np.float64),
        np.asarray(v_to, dtype=np.float64),
    )

    r = np.sum(v_from * v_to, axis=-1) + 1.0
    q = np.concatenate([np.cross(v_from, v_to), r[..., np.newaxis]], axis=-1)

    opposite = r < EPSILON
    if np.any(opposite):
        fx, fy, fz = v_from[..., 0], v_from[..., 1], v_from[..., 2]
        zeros = np.zeros_like(fx)
        use_xy = np.abs(fx) > np.abs(fz)
        # 180 degrees about an axis perpendicular to v_from
        perpendicular = np.where(
            use_xy[..., np.newaxis],
            np.stack([-fy, fx, zeros, zeros], axis=-1),
            np.stack([zeros, -fz, fy, zeros], axis=-1),
        )
        q = np.where(opposite[..., np.newaxis], perpendicular, q)

    return q / np.linalg.norm(q, axis=-1, keepdims=True)


def _as_rotation(q: np.ndarray) -> Rotation:
    # scipy rejects read-only buffers such as broadcast views
    return Rotation.from_quat(np.array(q, dtype=np.float64).reshape(-1, 4))


def quaternion_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """
    Hamilton product q1 * q2 (apply q2, then q1).

    Args:
        q1: Quaternion(s) [x, y, z, w], shape (..., 4)
        q2: Quaternion(s) with the same shape as q1

    Returns:
        Product quaternion(s), shape (..., 4)
    """
    q1, q2 = np.broadcast_arrays(np.asarray(q1, dtype=np.float64), np.asarray(q2, dtype=np.float64))
    product = (_as_rotation(q1) * _as_rotation(q2)).as_quat()
    return product.reshape(q1.shape)


def quaternion_inverse(q: np.ndarray) -> np.ndarray:
    """Inverse of unit quaternion(s), i.e. the conjugate."""
    q = np.asarray(q, dtype=np.float64)
    return q * np.array([-1.0, -1.0, -1.0, 1.0])


def rotate_vector(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Rotate vector(s) by quaternion(s).

    Args:
        q: Quaternion(s) [x, y, z, w], shape (..., 4)
        v: Vector(s), shape (..., 3)

    Returns:
        Rotated vector(s), shape (..., 3)
    """
    q = np.asarray(q, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    shape = np.broadcast_shapes(q.shape[:-1], v.shape[:-1]) + (3,)
    q = np.broadcast_to(q, shape[:-1] + (4,))
    v = np.array(np.broadcast_to(v, shape)).reshape(-1, 3)
    return _as_rotation(q).apply(v).reshape(shape)


def is_unit_quaternion(q: np.ndarray, tolerance: float = 1e-6) -> bool:
    norms = np.linalg.norm(np.asarray(q, dtype=np.float64), axis=-1)
    return bool(np.all(np.abs(norms - 1.0) < tolerance))
