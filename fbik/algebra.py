"""Quaternion and 4x4 matrix helpers used by the IK solver.

Matrices are 4x4 numpy arrays acting on column vectors, so the translation
lives in the last column. Vectors are numpy arrays of shape (3,).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

Vector = Union[Sequence[float], np.ndarray]

ROTATION_AXIS_EPSILON = 1e-4
_AXIS_ANGLE_EPSILON = 1e-8
_ARC_LIMIT = 1.0 - 2.0 * float(np.finfo(np.float32).eps)


def _as_vec3(vector: Vector) -> np.ndarray:
    arr = np.asarray(vector, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {arr.shape}")
    return arr


def _as_mat4(matrix) -> np.ndarray:
    arr = np.asarray(matrix, dtype=float)
    if arr.shape != (4, 4):
        raise ValueError(f"expected a 4x4 matrix, got shape {arr.shape}")
    return arr


def _any_orthonormal(v: np.ndarray) -> np.ndarray:
    sign = 1.0 if v[2] >= 0.0 else -1.0
    a = -1.0 / (sign + v[2])
    b = v[0] * v[1] * a
    return np.array([b, sign + v[1] * v[1] * a, -v[1]])


@dataclass(frozen=True)
class Quat:
    """A rotation quaternion with components x, y, z (vector part) and w."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def identity(cls) -> "Quat":
        return cls(0.0, 0.0, 0.0, 1.0)

    @classmethod
    def from_axis_angle(cls, axis: Vector, angle: float) -> "Quat":
        """Rotation of ``angle`` radians around the (unit) ``axis``."""
        a = _as_vec3(axis)
        s = math.sin(angle * 0.5)
        return cls(float(a[0]) * s, float(a[1]) * s, float(a[2]) * s, math.cos(angle * 0.5))

    @classmethod
    def from_rotation_arc(cls, start: Vector, end: Vector) -> "Quat":
        """Shortest rotation taking unit vector ``start`` onto unit vector ``end``."""
        s = _as_vec3(start)
        e = _as_vec3(end)
        dot = float(np.dot(s, e))
        if dot > _ARC_LIMIT:
            return cls.identity()
        if dot < -_ARC_LIMIT:
            return cls.from_axis_angle(_any_orthonormal(s), math.pi)
        c = np.cross(s, e)
        return cls(float(c[0]), float(c[1]), float(c[2]), 1.0 + dot).normalize()

    @classmethod
    def from_matrix(cls, matrix) -> "Quat":
        """Rotation part of a 3x3 or 4x4 matrix."""
        m = np.asarray(matrix, dtype=float)
        if m.shape not in ((3, 3), (4, 4)):
            raise ValueError(f"expected a 3x3 or 4x4 matrix, got shape {m.shape}")
        # mIJ is row J of column I.
        m00, m01, m02 = m[0, 0], m[1, 0], m[2, 0]
        m10, m11, m12 = m[0, 1], m[1, 1], m[2, 1]
        m20, m21, m22 = m[0, 2], m[1, 2], m[2, 2]
        if m22 <= 0.0:
            dif10 = m11 - m00
            omm22 = 1.0 - m22
            if dif10 <= 0.0:
                four_sq = omm22 - dif10
                inv = 0.5 / math.sqrt(four_sq)
                parts = (four_sq * inv, (m01 + m10) * inv, (m02 + m20) * inv, (m12 - m21) * inv)
            else:
                four_sq = omm22 + dif10
                inv = 0.5 / math.sqrt(four_sq)
                parts = ((m01 + m10) * inv, four_sq * inv, (m12 + m21) * inv, (m20 - m02) * inv)
        else:
            sum10 = m11 + m00
            opm22 = 1.0 + m22
            if sum10 <= 0.0:
                four_sq = opm22 - sum10
                inv = 0.5 / math.sqrt(four_sq)
                parts = ((m02 + m20) * inv, (m12 + m21) * inv, four_sq * inv, (m01 - m10) * inv)
            else:
                four_sq = opm22 + sum10
                inv = 0.5 / math.sqrt(four_sq)
                parts = ((m12 - m21) * inv, (m20 - m02) * inv, (m01 - m10) * inv, four_sq * inv)
        return cls(*(float(p) for p in parts))

    def inverse(self) -> "Quat":
        """Inverse of a unit quaternion (its conjugate)."""
        return Quat(-self.x, -self.y, -self.z, self.w)

    def length(self) -> float:
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2 + self.w ** 2)

    def normalize(self) -> "Quat":
        length = self.length()
        if length == 0.0:
            return Quat(math.nan, math.nan, math.nan, math.nan)
        return Quat(self.x / length, self.y / length, self.z / length, self.w / length)

    def dot(self, other: "Quat") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z + self.w * other.w

    def __mul__(self, other):
        if isinstance(other, Quat):
            x0, y0, z0, w0 = self.x, self.y, self.z, self.w
            x1, y1, z1, w1 = other.x, other.y, other.z, other.w
            return Quat(
                w0 * x1 + x0 * w1 + y0 * z1 - z0 * y1,
                w0 * y1 - x0 * z1 + y0 * w1 + z0 * x1,
                w0 * z1 + x0 * y1 - y0 * x1 + z0 * w1,
                w0 * w1 - x0 * x1 - y0 * y1 - z0 * z1,
            )
        return self.rotate(other)

    def __neg__(self) -> "Quat":
        return Quat(-self.x, -self.y, -self.z, -self.w)

    def rotate(self, vector: Vector) -> np.ndarray:
        """Rotate a 3-vector by this quaternion."""
        v = _as_vec3(vector)
        q = np.array([self.x, self.y, self.z])
        t = 2.0 * np.cross(q, v)
        return v + self.w * t + np.cross(q, t)

    def to_axis_angle(self) -> Tuple[np.ndarray, float]:
        """Axis and angle in [0, 2*pi]; the X axis for a null rotation."""
        v = np.array([self.x, self.y, self.z])
        length = float(np.linalg.norm(v))
        if length >= _AXIS_ANGLE_EPSILON:
            return v / length, 2.0 * math.atan2(length, self.w)
        return np.array([1.0, 0.0, 0.0]), 0.0

    def to_axis_angle_180(self) -> Tuple[np.ndarray, float]:
        """Axis and angle with the angle wrapped into [-pi, pi)."""
        axis, angle = self.to_axis_angle()
        return axis, math.fmod(angle + math.pi, 2.0 * math.pi) - math.pi

    def to_euler_yxz(self) -> Tuple[float, float, float]:
        """Euler angles (yaw around Y, then X, then Z)."""
        x, y, z, w = self.x, self.y, self.z, self.w
        first = math.atan2(2.0 * (x * z + w * y), w * w - x * x - y * y + z * z)
        second = math.asin(max(-1.0, min(1.0, -2.0 * (y * z - w * x))))
        third = math.atan2(2.0 * (x * y + w * z), w * w - x * x + y * y - z * z)
        return first, second, third

    def to_matrix(self) -> np.ndarray:
        """A 4x4 rotation matrix."""
        x2, y2, z2 = self.x + self.x, self.y + self.y, self.z + self.z
        xx, xy, xz = self.x * x2, self.x * y2, self.x * z2
        yy, yz, zz = self.y * y2, self.y * z2, self.z * z2
        wx, wy, wz = self.w * x2, self.w * y2, self.w * z2
        m = np.eye(4)
        m[:3, 0] = (1.0 - (yy + zz), xy + wz, xz - wy)
        m[:3, 1] = (xy - wz, 1.0 - (xx + zz), yz + wx)
        m[:3, 2] = (xz + wy, yz - wx, 1.0 - (xx + yy))
        return m


def translation(matrix) -> np.ndarray:
    """The translation part of a 4x4 transform."""
    return _as_mat4(matrix)[:3, 3].copy()


def rotation(matrix) -> Quat:
    """The rotation part of a 4x4 transform."""
    return Quat.from_matrix(_as_mat4(matrix))


def from_rotation_translation(rotation: Quat, translation: Vector) -> np.ndarray:
    """Build a 4x4 transform from a rotation and a translation."""
    m = rotation.to_matrix()
    m[:3, 3] = _as_vec3(translation)
    return m


def transform_vector(matrix, vector: Vector) -> np.ndarray:
    """Apply a 4x4 transform to a direction, ignoring its translation."""
    return _as_mat4(matrix)[:3, :3] @ _as_vec3(vector)


def ang_diff(a: float, b: float) -> float:
    """Difference ``b - a`` between two angles, wrapped around a full turn."""
    return math.fmod(b - a + math.pi, 2.0 * math.pi) - math.pi


def swing_twist_decompose(q: Quat, direction: Vector) -> float:
    """Angle of the twist of ``q`` around the unit vector ``direction``."""
    d = _as_vec3(direction)
    dot_prod = float(np.dot(d, [q.x, q.y, q.z]))
    p = d * dot_prod
    twist = Quat(float(p[0]), float(p[1]), float(p[2]), q.w).normalize()
    if dot_prod < 0.0:
        twist = -twist
    return twist.to_axis_angle_180()[1]


def get_rotation_axis(to_e: Vector, target_direction: Vector) -> np.ndarray:
    """Unit axis to rotate ``to_e`` towards ``target_direction``, or zero if none."""
    to_e = _as_vec3(to_e)
    target = _as_vec3(target_direction)
    for other in (to_e, np.array([0.0, 1.0, 0.0]), np.array([0.0, 0.0, 1.0])):
        raw_axis = np.cross(target, other)
        length_squared = float(np.dot(raw_axis, raw_axis))
        if length_squared > ROTATION_AXIS_EPSILON:
            return raw_axis / math.sqrt(length_squared)
    return np.zeros(3)