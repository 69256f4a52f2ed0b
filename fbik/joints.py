"""Joint configuration and the skeleton interface the solver drives."""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from fbik.joint_map import JointMap


def _vec_tuple(vector) -> Tuple[float, float, float]:
    arr = np.asarray(vector, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {arr.shape}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


@dataclass(frozen=True)
class JointLimit:
    """Allowed twist range (radians) around ``axis``, relative to the bind pose."""

    axis: Tuple[float, float, float]
    min: float
    max: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "axis", _vec_tuple(self.axis))


@dataclass(frozen=True)
class IKJointControl:
    """How the solver may move one joint."""

    joint_id: int
    # If set, the joint only rotates around this axis (in joint space).
    restrict_rotation_axis: Optional[Tuple[float, float, float]] = None
    limits: Optional[Tuple[JointLimit, ...]] = None
    stiffness: float = 1.0

    def __post_init__(self) -> None:
        if self.restrict_rotation_axis is not None:
            object.__setattr__(
                self, "restrict_rotation_axis", _vec_tuple(self.restrict_rotation_axis)
            )
        if self.limits is not None:
            object.__setattr__(self, "limits", tuple(self.limits))

    def with_axis_constraint(self, restrict_rotation_axis) -> "IKJointControl":
        return dataclasses.replace(self, restrict_rotation_axis=restrict_rotation_axis)

    def with_limits(self, limits: Iterable[JointLimit]) -> "IKJointControl":
        return dataclasses.replace(self, limits=tuple(limits))

    def with_stiffness(self, stiffness: float) -> "IKJointControl":
        return dataclasses.replace(self, stiffness=stiffness)


class Skeleton(ABC):
    """A posed joint hierarchy that the solver reads and updates."""

    @abstractmethod
    def current_pose(self, joint_id: int) -> np.ndarray:
        """World-space 4x4 transform of the joint."""

    @abstractmethod
    def local_bind_pose(self, joint_id: int) -> np.ndarray:
        """Bind-pose 4x4 transform of the joint relative to its parent."""

    @abstractmethod
    def parent(self, joint_id: int) -> Optional[int]:
        """Parent joint id, or None for a root."""

    @abstractmethod
    def update_poses(self, poses: JointMap) -> None:
        """Apply new world-space transforms for the joints in ``poses``."""