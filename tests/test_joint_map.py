import numpy as np
import pytest

from fbik.joint_map import JointMap


def translated(x):
    m = np.eye(4)
    m[0, 3] = x
    return m


@pytest.fixture
def joint_map():
    return JointMap([4, 7, 9], [translated(1.0), translated(2.0), translated(3.0)])


def test_get_known_joint(joint_map):
    assert np.allclose(joint_map.get(7), translated(2.0))


def test_get_unknown_joint_is_none(joint_map):
    assert joint_map.get(5) is None


def test_get_returns_independent_copy(joint_map):
    m = joint_map.get(4)
    m[0, 3] = 100.0
    assert np.allclose(joint_map.get(4), translated(1.0))


def test_set_replaces_transform(joint_map):
    joint_map.set(9, translated(8.0))
    assert np.allclose(joint_map.get(9), translated(8.0))


def test_set_unknown_joint_raises(joint_map):
    with pytest.raises(KeyError):
        joint_map.set(1, np.eye(4))


def test_set_all_partial(joint_map):
    joint_map.set_all(iter([translated(5.0), translated(6.0)]))
    assert np.allclose(joint_map.get(4), translated(5.0))
    assert np.allclose(joint_map.get(7), translated(6.0))
    assert np.allclose(joint_map.get(9), translated(3.0))


def test_set_all_too_many_raises(joint_map):
    with pytest.raises(IndexError):
        joint_map.set_all([np.eye(4)] * 4)


def test_iteration_order(joint_map):
    items = list(joint_map)
    assert [joint_id for joint_id, _ in items] == [4, 7, 9]
    assert np.allclose(items[2][1], translated(3.0))


def test_set_data_from(joint_map):
    other = JointMap([1, 2, 3], [np.eye(4)] * 3)
    joint_map.set_data_from(other)
    assert joint_map.joint_ids == (4, 7, 9)
    assert all(np.allclose(m, np.eye(4)) for _, m in joint_map)


def test_set_data_from_size_mismatch(joint_map):
    with pytest.raises(ValueError):
        joint_map.set_data_from(JointMap([1], [np.eye(4)]))


def test_copy_is_independent(joint_map):
    clone = joint_map.copy()
    clone.set(4, np.eye(4))
    assert np.allclose(joint_map.get(4), translated(1.0))
    assert np.allclose(clone.get(4), np.eye(4))


def test_constructor_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        JointMap([1, 2], [np.eye(4)])