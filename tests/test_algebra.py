import math

import numpy as np
import pytest

from fbik.algebra import (
    Quat,
    ang_diff,
    from_rotation_translation,
    get_rotation_axis,
    rotation,
    swing_twist_decompose,
    transform_vector,
    translation,
)

PROBE = np.array([0.3, -0.8, 1.7])


def test_identity_leaves_vectors_unchanged():
    v = np.array([0.3, -1.2, 4.0])
    assert np.allclose(Quat.identity().rotate(v), v)


def test_axis_angle_round_trip():
    axis = np.array([1.0, 2.0, -2.0]) / 3.0
    q = Quat.from_axis_angle(axis, 1.1)
    out_axis, out_angle = q.to_axis_angle()
    assert np.allclose(out_axis, axis)
    assert out_angle == pytest.approx(1.1)


def test_null_rotation_axis_angle():
    axis, angle = Quat.identity().to_axis_angle()
    assert np.allclose(axis, [1.0, 0.0, 0.0])
    assert angle == 0.0


def test_rotate_around_z():
    q = Quat.from_axis_angle([0.0, 0.0, 1.0], math.pi / 2)
    assert np.allclose(q.rotate([0.0, 1.0, 0.0]), [-1.0, 0.0, 0.0])
    assert np.allclose(q * np.array([0.0, 1.0, 0.0]), q.rotate([0.0, 1.0, 0.0]))


def test_inverse_composes_to_identity():
    q = Quat.from_axis_angle(np.array([0.0, 0.6, 0.8]), 2.3)
    product = q * q.inverse()
    assert np.allclose(product.rotate(PROBE), PROBE)
    assert np.allclose(q.inverse().rotate(q.rotate(PROBE)), PROBE)
    _, angle = product.to_axis_angle_180()
    assert angle == pytest.approx(0.0, abs=1e-6)


def test_product_composes_rotations():
    a = Quat.from_axis_angle([0.0, 1.0, 0.0], 0.4)
    b = Quat.from_axis_angle([1.0, 0.0, 0.0], -0.9)
    v = np.array([0.2, 0.5, -0.7])
    assert np.allclose((a * b).rotate(v), a.rotate(b.rotate(v)))


def test_negation_is_same_rotation():
    q = Quat.from_axis_angle([0.0, 0.0, 1.0], 0.8)
    v = np.array([1.0, 2.0, 3.0])
    assert np.allclose((-q).rotate(v), q.rotate(v))


def test_normalize_gives_unit_length():
    assert Quat(1.0, 2.0, 3.0, 4.0).normalize().length() == pytest.approx(1.0)


@pytest.mark.parametrize(
    "axis,angle",
    [
        ([0.0, 0.0, 1.0], 0.3),
        ([1.0, 0.0, 0.0], 3.0),
        ([0.0, 1.0, 0.0], -2.8),
        ([0.6, 0.0, -0.8], 1.9),
    ],
)
def test_matrix_round_trip(axis, angle):
    q = Quat.from_axis_angle(axis, angle)
    expected = q.rotate(PROBE)
    assert np.allclose(Quat.from_matrix(q.to_matrix()).rotate(PROBE), expected)
    assert np.allclose(Quat.from_matrix(q.to_matrix()[:3, :3]).rotate(PROBE), expected)


def test_from_matrix_rejects_bad_shape():
    with pytest.raises(ValueError):
        Quat.from_matrix(np.eye(2))


def test_rotation_arc_maps_start_onto_end():
    start = np.array([1.0, 0.0, 0.0])
    end = np.array([0.0, 0.6, 0.8])
    assert np.allclose(Quat.from_rotation_arc(start, end).rotate(start), end)


def test_rotation_arc_opposite_vectors():
    start = np.array([1.0, 0.0, 0.0])
    assert np.allclose(Quat.from_rotation_arc(start, -start).rotate(start), -start)


def test_rotation_arc_equal_vectors_is_identity():
    v = np.array([0.0, 1.0, 0.0])
    assert Quat.from_rotation_arc(v, v) == Quat.identity()


def test_axis_angle_180_wraps_large_angle():
    q = Quat.from_axis_angle([0.0, 0.0, 1.0], 1.5 * math.pi)
    _, angle = q.to_axis_angle_180()
    assert angle == pytest.approx(-math.pi / 2)


def test_euler_yaw_of_y_rotation():
    yaw, pitch, roll = Quat.from_axis_angle([0.0, 1.0, 0.0], 0.7).to_euler_yxz()
    assert yaw == pytest.approx(0.7)
    assert pitch == pytest.approx(0.0)
    assert roll == pytest.approx(0.0)


def test_transform_round_trip():
    q = Quat.from_axis_angle([0.0, 1.0, 0.0], 0.5)
    t = np.array([1.0, -2.0, 3.5])
    m = from_rotation_translation(q, t)
    assert np.allclose(translation(m), t)
    assert np.allclose(rotation(m).rotate(PROBE), q.rotate(PROBE))


def test_transform_vector_ignores_translation():
    q = Quat.from_axis_angle([1.0, 0.0, 0.0], 1.2)
    m = from_rotation_translation(q, [5.0, 6.0, 7.0])
    v = np.array([0.0, 1.0, 1.0])
    assert np.allclose(transform_vector(m, v), q.rotate(v))


def test_translation_rejects_non_4x4():
    with pytest.raises(ValueError):
        translation(np.eye(3))


def test_ang_diff_wraps_full_turn():
    assert ang_diff(0.0, 2.0 * math.pi + 0.1) == pytest.approx(0.1)
    assert ang_diff(0.2, 0.5) == pytest.approx(0.3)


def test_swing_twist_along_rotation_axis():
    q = Quat.from_axis_angle([0.0, 0.0, 1.0], 0.5)
    assert swing_twist_decompose(q, [0.0, 0.0, 1.0]) == pytest.approx(0.5)


def test_swing_twist_perpendicular_axis_is_zero():
    q = Quat.from_axis_angle([0.0, 0.0, 1.0], 0.5)
    assert swing_twist_decompose(q, [1.0, 0.0, 0.0]) == pytest.approx(0.0)


def test_rotation_axis_is_perpendicular_unit():
    to_e = np.array([1.0, 0.0, 0.0])
    target = np.array([0.0, 1.0, 0.0])
    axis = get_rotation_axis(to_e, target)
    assert np.linalg.norm(axis) == pytest.approx(1.0)
    assert np.dot(axis, to_e) == pytest.approx(0.0)
    assert np.dot(axis, target) == pytest.approx(0.0)
    assert np.allclose(axis, [0.0, 0.0, -1.0])


def test_rotation_axis_parallel_falls_back_to_y():
    axis = get_rotation_axis([1.0, 0.0, 0.0], [2.0, 0.0, 0.0])
    assert np.allclose(axis, [0.0, 0.0, 1.0])


def test_rotation_axis_zero_target():
    assert np.allclose(get_rotation_axis([1.0, 0.0, 0.0], [0.0, 0.0, 0.0]), np.zeros(3))