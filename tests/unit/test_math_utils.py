"""Unit tests for vector and quaternion helpers."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from mocap_export.utils.math_utils import (
    IDENTITY_QUATERNION,
    is_unit_quaternion,
    normalize_vector,
    quaternion_from_unit_vectors,
    quaternion_inverse,
    quaternion_multiply,
    rotate_vector,
    to_target_space,
)


AXES = [
    (1.0, 0.0, 0.0),
    (-1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (0.0, -1.0, 0.0),
    (0.0, 0.0, 1.0),
    (0.0, 0.0, -1.0),
]


def test_normalize_vector():
    np.testing.assert_allclose(normalize_vector([3.0, 0.0, 4.0]), [0.6, 0.0, 0.8])
    np.testing.assert_array_equal(normalize_vector([0.0, 0.0, 0.0]), [0.0, 0.0, 0.0])


def test_normalize_vector_batch():
    result = normalize_vector(np.array([[2.0, 0.0, 0.0], [0.0, 0.0, 0.0]]))
    np.testing.assert_array_equal(result, [[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])


def test_to_target_space():
    np.testing.assert_allclose(to_target_space([0.1, 0.5, -0.2]), [-10.0, -50.0, -20.0])
    np.testing.assert_allclose(to_target_space([1.0, 1.0, 1.0], scale=2.0), [-2.0, -2.0, 2.0])


class TestShortestArc:
    def test_parallel_is_identity(self):
        q = quaternion_from_unit_vectors([0.0, 1.0, 0.0], [0.0, 1.0, 0.0])
        np.testing.assert_allclose(q, IDENTITY_QUATERNION)

    def test_quarter_turn(self):
        q = quaternion_from_unit_vectors([1.0, 0.0, 0.0], [0.0, 1.0, 0.0])
        s = np.sqrt(0.5)
        np.testing.assert_allclose(q, [0.0, 0.0, s, s])

    @pytest.mark.parametrize("v_from", AXES)
    @pytest.mark.parametrize("v_to", AXES)
    def test_maps_from_onto_to(self, v_from, v_to):
        q = quaternion_from_unit_vectors(v_from, v_to)
        assert is_unit_quaternion(q)
        np.testing.assert_allclose(rotate_vector(q, v_from), v_to, atol=1e-9)

    def test_antiparallel_axis_choice(self):
        # Larger x component: axis from the x/y plane
        q = quaternion_from_unit_vectors([1.0, 0.0, 0.0], [-1.0, 0.0, 0.0])
        np.testing.assert_allclose(q, [0.0, 1.0, 0.0, 0.0])

        # Otherwise: axis from the y/z plane
        q = quaternion_from_unit_vectors([0.0, 1.0, 0.0], [0.0, -1.0, 0.0])
        np.testing.assert_allclose(q, [0.0, 0.0, 1.0, 0.0])

    def test_near_antiparallel_is_not_snapped(self):
        v_from = np.array([0.0, 1.0, 0.0])
        v_to = np.array([np.sin(1e-3), -np.cos(1e-3), 0.0])
        q = quaternion_from_unit_vectors(v_from, v_to)
        np.testing.assert_allclose(rotate_vector(q, v_from), v_to, atol=1e-9)

    def test_near_antiparallel_batch(self):
        angles = np.array([0.0, 1e-7, 1e-5, 1e-3])
        v_to = np.stack([np.sin(angles), -np.cos(angles), np.zeros(4)], axis=-1)
        q = quaternion_from_unit_vectors([0.0, 1.0, 0.0], v_to)
        np.testing.assert_allclose(rotate_vector(q, [0.0, 1.0, 0.0]), v_to, atol=1e-7)

    def test_batch(self):
        rng = np.random.default_rng(3)
        a = normalize_vector(rng.normal(size=(50, 3)))
        b = normalize_vector(rng.normal(size=(50, 3)))
        q = quaternion_from_unit_vectors(a, b)
        assert q.shape == (50, 4)
        np.testing.assert_allclose(rotate_vector(q, a), b, atol=1e-9)

    def test_shortest_arc_angle(self):
        a = normalize_vector([1.0, 0.2, 0.0])
        b = normalize_vector([0.1, 1.0, 0.3])
        q = quaternion_from_unit_vectors(a, b)
        rotation_angle = Rotation.from_quat(q).magnitude()
        assert rotation_angle == pytest.approx(np.arccos(np.dot(a, b)))


def test_multiply_matches_sequential_rotation():
    q1 = Rotation.from_euler("x", 30, degrees=True).as_quat()
    q2 = Rotation.from_euler("y", 45, degrees=True).as_quat()
    v = np.array([0.3, -0.2, 0.9])

    combined = rotate_vector(quaternion_multiply(q1, q2), v)
    sequential = rotate_vector(q1, rotate_vector(q2, v))
    np.testing.assert_allclose(combined, sequential, atol=1e-12)


def test_multiply_broadcasts():
    q = np.tile(IDENTITY_QUATERNION, (4, 3, 1))
    assert quaternion_multiply(q, q).shape == (4, 3, 4)


def test_inverse_cancels():
    q = Rotation.from_euler("xyz", [10, 20, 30], degrees=True).as_quat()
    product = quaternion_multiply(quaternion_inverse(q), q)
    # q and -q are the same rotation
    assert abs(product[3]) == pytest.approx(1.0)
    np.testing.assert_allclose(product[:3], 0.0, atol=1e-12)


def test_rotate_vector_single():
    np.testing.assert_allclose(rotate_vector(IDENTITY_QUATERNION, [1.0, 0.0, 0.0]), [1.0, 0.0, 0.0])


def test_rotate_vector_broadcasts_one_rotation():
    q = Rotation.from_euler("z", 90, degrees=True).as_quat()
    vectors = np.eye(3)
    rotated = rotate_vector(q, vectors)
    np.testing.assert_allclose(rotated, [[0.0, 1.0, 0.0], [-1.0, 0.0, 0.0], [0.0, 0.0, 1.0]], atol=1e-12)


def test_rotate_vector_broadcasts_one_vector():
    q = np.stack([IDENTITY_QUATERNION, Rotation.from_euler("x", 180, degrees=True).as_quat()])
    rotated = rotate_vector(q, [0.0, 1.0, 0.0])
    np.testing.assert_allclose(rotated, [[0.0, 1.0, 0.0], [0.0, -1.0, 0.0]], atol=1e-12)


def test_multiply_broadcast_views():
    q = Rotation.from_euler("y", 30, degrees=True).as_quat()
    many = np.broadcast_to(IDENTITY_QUATERNION, (5, 4))
    np.testing.assert_allclose(quaternion_multiply(many, q), np.tile(q, (5, 1)), atol=1e-12)
