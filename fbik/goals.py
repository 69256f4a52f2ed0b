"""Goals that the IK solver drives end effectors towards.

Each goal contributes a fixed number of rows ("effector components") to the
solver's Jacobian. For every joint it reports the axis it wants that joint
to rotate around and the influence of such a rotation on its own rows. The
rows of the other goals are left at zero.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from fbik.algebra import (
    Quat,
    Vector,
    ang_diff,
    get_rotation_axis,
    rotation,
    transform_vector,
    translation,
)
from fbik.joints import IKJointControl, Skeleton

_Y_AXIS = np.array([0.0, 1.0, 0.0])


def _vec3(vector: Vector) -> np.ndarray:
    arr = np.array(vector, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {arr.shape}")
    return arr


def _normalize(vector: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", divide="ignore"):
        return vector / np.linalg.norm(vector)


def _joint_axis(skeleton: Skeleton, joint: IKJointControl) -> np.ndarray:
    """The joint's restricted rotation axis, in world space."""
    joint_rot = rotation(skeleton.current_pose(joint.joint_id))
    return joint_rot.rotate(joint.restrict_rotation_axis)


class GoalKind(ABC):
    """Behaviour shared by every kind of goal."""

    @abstractmethod
    def build_dof_data(
        self, end_effector_id: int, skeleton: Skeleton, joint: IKJointControl
    ) -> Tuple[List[float], np.ndarray]:
        """Influences on this goal's rows and the world-space rotation axis for ``joint``."""

    def secondary_influences(self) -> List[float]:
        """Influences on this goal's rows from a degree of freedom built for another goal."""
        return [0.0] * self.num_effector_components()

    @abstractmethod
    def num_effector_components(self) -> int:
        """Number of Jacobian rows this goal occupies."""

    @abstractmethod
    def effector_delta(self, end_effector_id: int, skeleton: Skeleton) -> List[float]:
        """The difference all the joints combined need to overcome to reach the goal."""


@dataclass(eq=False)
class PositionGoal(GoalKind):
    """Move the end effector to a world-space position."""

    target: np.ndarray

    def __post_init__(self) -> None:
        self.target = _vec3(self.target)

    def build_dof_data(self, end_effector_id, skeleton, joint):
        origin_of_rotation = translation(skeleton.current_pose(joint.joint_id))
        end_effector_pos = translation(skeleton.current_pose(end_effector_id))
        target_direction = self.target - end_effector_pos
        to_e = end_effector_pos - origin_of_rotation

        if joint.restrict_rotation_axis is not None:
            axis = _joint_axis(skeleton, joint)
        else:
            axis = get_rotation_axis(to_e, target_direction)

        influence = np.cross(axis, to_e)
        return [float(c) for c in influence], axis

    def num_effector_components(self) -> int:
        return 3

    def effector_delta(self, end_effector_id, skeleton):
        end_effector_pos = translation(skeleton.current_pose(end_effector_id))
        return [float(c) for c in self.target - end_effector_pos]


@dataclass(eq=False)
class DistanceGoal(GoalKind):
    """Reduce the distance between the end effector and a position."""

    target: np.ndarray

    def __post_init__(self) -> None:
        self.target = _vec3(self.target)

    def build_dof_data(self, end_effector_id, skeleton, joint):
        origin_of_rotation = translation(skeleton.current_pose(joint.joint_id))
        end_effector_pos = translation(skeleton.current_pose(end_effector_id))
        target_direction = self.target - end_effector_pos
        to_e = end_effector_pos - origin_of_rotation

        if joint.restrict_rotation_axis is not None:
            axis = _joint_axis(skeleton, joint)
        else:
            axis = get_rotation_axis(to_e, target_direction)

        influence = np.cross(axis, to_e)
        return [float(np.dot(influence, _normalize(target_direction)))], axis

    def num_effector_components(self) -> int:
        return 1

    def effector_delta(self, end_effector_id, skeleton):
        end_effector_pos = translation(skeleton.current_pose(end_effector_id))
        return [float(np.linalg.norm(self.target - end_effector_pos))]


@dataclass(eq=False)
class RotationGoal(GoalKind):
    """Give the end effector a world-space orientation."""

    rotation: Quat

    def __post_init__(self) -> None:
        if not isinstance(self.rotation, Quat):
            raise TypeError("rotation must be a Quat")

    def _remaining(self, end_effector_id: int, skeleton: Skeleton) -> Quat:
        end_effector_rot = rotation(skeleton.current_pose(end_effector_id))
        return self.rotation * end_effector_rot.inverse()

    def build_dof_data(self, end_effector_id, skeleton, joint):
        remaining = self._remaining(end_effector_id, skeleton)
        axis_180, angle = remaining.to_axis_angle_180()

        if joint.restrict_rotation_axis is not None:
            axis = _joint_axis(skeleton, joint)
        else:
            axis = -axis_180 if angle < 0.0 else axis_180

        return [angle], axis

    def num_effector_components(self) -> int:
        return 1

    def effector_delta(self, end_effector_id, skeleton):
        _, angle = self._remaining(end_effector_id, skeleton).to_axis_angle_180()
        return [angle]


@dataclass(eq=False)
class RotYGoal(GoalKind):
    """Orient the end effector around the world Y axis, leaving other axes free."""

    angle: float

    def build_dof_data(self, end_effector_id, skeleton, joint):
        if joint.restrict_rotation_axis is not None:
            axis = _joint_axis(skeleton, joint)
        else:
            axis = _Y_AXIS.copy()

        influence = Quat.from_axis_angle(axis, 1.0).to_euler_yxz()[0]
        return [influence], axis

    def num_effector_components(self) -> int:
        return 1

    def effector_delta(self, end_effector_id, skeleton):
        yaw = rotation(skeleton.current_pose(end_effector_id)).to_euler_yxz()[0]
        return [ang_diff(yaw, self.angle)]


@dataclass(eq=False)
class LookAtGoal(GoalKind):
    """Point the end effector's local ``local_lookat_axis`` at ``target``."""

    target: np.ndarray
    local_lookat_axis: np.ndarray

    def __post_init__(self) -> None:
        self.target = _vec3(self.target)
        self.local_lookat_axis = _vec3(self.local_lookat_axis)

    def build_dof_data(self, end_effector_id, skeleton, joint):
        origin_of_rotation = translation(skeleton.current_pose(joint.joint_id))
        axis, angle = lookat(
            origin_of_rotation,
            skeleton.current_pose(end_effector_id),
            self.target,
            self.local_lookat_axis,
        )
        return [angle], axis

    def num_effector_components(self) -> int:
        return 1

    def effector_delta(self, end_effector_id, skeleton):
        end_effector = skeleton.current_pose(end_effector_id)
        _, angle = lookat(
            translation(end_effector), end_effector, self.target, self.local_lookat_axis
        )
        return [angle]


@dataclass(eq=False)
class IKGoal:
    """A goal attached to one end-effector joint."""

    end_effector_id: int
    kind: GoalKind

    def __post_init__(self) -> None:
        if not isinstance(self.kind, GoalKind):
            raise TypeError("kind must be a GoalKind")


def lookat(
    origin: Vector, end_effector, target: Vector, local_lookat_axis: Vector
) -> Tuple[np.ndarray, float]:
    """Axis and angle to rotate around ``origin`` so the end effector's look axis hits ``target``.

    Returns a zero axis and angle when the look ray cannot reach the target's sphere.
    """
    origin = _vec3(origin)
    target = _vec3(target)
    hits = intersect_ray_sphere(
        translation(end_effector),
        transform_vector(end_effector, local_lookat_axis),
        origin,
        float(np.linalg.norm(target - origin)),
    )
    if not hits:
        return np.zeros(3), 0.0

    to_target = _normalize(target - origin)
    candidates = [
        Quat.from_rotation_arc(_normalize(hit - origin), to_target).to_axis_angle_180()
        for hit in hits
    ]
    if len(candidates) == 1:
        return candidates[0]
    first, second = candidates
    return first if first[1] < second[1] else second


def intersect_ray_sphere(
    ray_origin: Vector, ray_direction: Vector, sphere_center: Vector, sphere_radius: float
) -> Tuple[np.ndarray, ...]:
    """Points where a ray meets a sphere: none, one or two of them."""
    ray_origin = _vec3(ray_origin)
    ray_direction = _vec3(ray_direction)
    o_minus_c = ray_origin - _vec3(sphere_center)
    p = float(np.dot(ray_direction, o_minus_c))
    q = float(np.dot(o_minus_c, o_minus_c)) - sphere_radius * sphere_radius

    if q > 0.0 and p > 0.0:
        return ()

    discr = p * p - q
    if discr < 0.0:
        return ()

    root = math.sqrt(discr)
    dist1 = -p - root
    dist2 = -p + root
    dist = max(dist1, dist2)

    if dist < 0.0:
        return ()

    if dist1 > 0.0 and dist2 > 0.0:
        return (ray_origin + ray_direction * dist1, ray_origin + ray_direction * dist2)

    return (ray_origin + ray_direction * dist,)