"""Damped least-squares full-body IK solver."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from fbik.algebra import (
    Quat,
    from_rotation_translation,
    rotation,
    swing_twist_decompose,
    translation,
)
from fbik.goals import IKGoal, LookAtGoal, PositionGoal, RotationGoal
from fbik.joint_map import JointMap
from fbik.joints import IKJointControl, Skeleton

DAMPING = 3.0
THRESHOLD_DEGREES = 10.5


@dataclass
class _DegreeOfFreedom:
    """One rotation a joint may perform, with its influence on every goal row."""

    joint_id: int
    axis: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    influences: List[float] = field(default_factory=list)


def pseudo_inverse_damped_least_squares(jacobian, num_effectors: int) -> np.ndarray:
    """Damped pseudo-inverse ``J^T (J J^T + d^2 I)^-1`` of the Jacobian."""
    jac = np.asarray(jacobian, dtype=float)
    if jac.ndim != 2 or jac.shape[0] != num_effectors:
        raise ValueError(
            f"jacobian of shape {jac.shape} does not have {num_effectors} rows"
        )
    jac_transp = jac.T
    jacobian_square = jac @ jac_transp + DAMPING * DAMPING * np.eye(num_effectors)
    return jac_transp @ np.linalg.inv(jacobian_square)


class IKSolver:
    """Moves a set of joints so that their end effectors approach the goals."""

    def __init__(
        self,
        affected_joints: Iterable[IKJointControl],
        goals: Iterable[IKGoal],
        num_iterations: int,
    ) -> None:
        self._affected_joints: Tuple[IKJointControl, ...] = tuple(affected_joints)
        self._goals: Tuple[IKGoal, ...] = tuple(goals)
        self.num_iterations = num_iterations

        self._affected_joint_ids = tuple(j.joint_id for j in self._affected_joints)
        self._joint_configs = {}
        for joint in self._affected_joints:
            self._joint_configs.setdefault(joint.joint_id, joint)

        identities = [np.eye(4) for _ in self._affected_joint_ids]
        self._previous_poses = JointMap(self._affected_joint_ids, identities)
        self._final_poses = self._previous_poses.copy()
        self._raw_joint_xforms = self._previous_poses.copy()

        self._num_goal_components = sum(
            g.kind.num_effector_components() for g in self._goals
        )
        self._num_dof_components = len(self._affected_joints) * len(self._goals)

    @property
    def goals(self) -> Tuple[IKGoal, ...]:
        return self._goals

    @property
    def affected_joints(self) -> Tuple[IKJointControl, ...]:
        return self._affected_joints

    def _goals_of(self, kind_type) -> Iterator[Tuple[int, object]]:
        for goal in self._goals:
            if isinstance(goal.kind, kind_type):
                yield goal.end_effector_id, goal.kind

    def position_goals(self) -> Iterator[Tuple[int, PositionGoal]]:
        """(end effector id, goal) for each position goal; goals may be edited in place."""
        return self._goals_of(PositionGoal)

    def rotation_goals(self) -> Iterator[Tuple[int, RotationGoal]]:
        """(end effector id, goal) for each rotation goal; goals may be edited in place."""
        return self._goals_of(RotationGoal)

    def lookat_goals(self) -> Iterator[Tuple[int, LookAtGoal]]:
        """(end effector id, goal) for each look-at goal; goals may be edited in place."""
        return self._goals_of(LookAtGoal)

    def _build_dof_data(self, skeleton: Skeleton) -> List[_DegreeOfFreedom]:
        dofs = []
        for joint in self._affected_joints:
            for goal_idx, goal in enumerate(self._goals):
                dof = _DegreeOfFreedom(joint.joint_id)
                for other_idx, other in enumerate(self._goals):
                    if other_idx == goal_idx:
                        influences, axis = goal.kind.build_dof_data(
                            goal.end_effector_id, skeleton, joint
                        )
                        dof.axis = np.asarray(axis, dtype=float)
                        dof.influences.extend(influences)
                    else:
                        dof.influences.extend(other.kind.secondary_influences())
                dof.influences = [i / joint.stiffness for i in dof.influences]
                dofs.append(dof)
        return dofs

    def _effector_vector(self, skeleton: Skeleton) -> np.ndarray:
        deltas: List[float] = []
        for goal in self._goals:
            deltas.extend(goal.kind.effector_delta(goal.end_effector_id, skeleton))
        return np.array(deltas, dtype=float)

    def _parent_xforms(
        self, skeleton: Skeleton, parent_id: Optional[int]
    ) -> Tuple[np.ndarray, np.ndarray]:
        if parent_id is None:
            return np.eye(4), np.eye(4)
        parent_xform = self._final_poses.get(parent_id)
        if parent_xform is None:
            parent_xform = skeleton.current_pose(parent_id)
        parent_xform_old = self._previous_poses.get(parent_id)
        if parent_xform_old is None:
            parent_xform_old = self._final_poses.get(parent_id)
        if parent_xform_old is None:
            parent_xform_old = skeleton.current_pose(parent_id)
        return np.asarray(parent_xform, dtype=float), np.asarray(parent_xform_old, dtype=float)

    @staticmethod
    def _apply_limits(
        joint_cfg: IKJointControl,
        skeleton: Skeleton,
        parent_xform: np.ndarray,
        world_xform: np.ndarray,
    ) -> np.ndarray:
        local_xform = rotation(np.linalg.inv(parent_xform) @ world_xform)
        local_bind_xform = rotation(skeleton.local_bind_pose(joint_cfg.joint_id))
        # Limits are relative to the local bind pose of the joint.
        local_change = local_bind_xform.inverse() * local_xform
        for limit in joint_cfg.limits:
            custom_axis = local_change.rotate(limit.axis)
            angle = swing_twist_decompose(local_change, custom_axis)
            if angle < limit.min:
                correction = Quat.from_axis_angle(custom_axis, limit.min - angle)
            elif angle > limit.max:
                correction = Quat.from_axis_angle(custom_axis, limit.max - angle)
            else:
                continue
            world_xform = world_xform @ correction.to_matrix()
        return world_xform

    def solve(self, skeleton: Skeleton) -> None:
        """Run the iterations, updating the skeleton after each.

        The affected joints must be given in topological order.
        """
        threshold = math.radians(THRESHOLD_DEGREES)
        for _ in range(self.num_iterations):
            dofs = self._build_dof_data(skeleton)

            jacobian = np.zeros((self._num_goal_components, self._num_dof_components))
            for col, dof in enumerate(dofs):
                jacobian[:, col] = dof.influences

            jac_inv = pseudo_inverse_damped_least_squares(
                jacobian, self._num_goal_components
            )
            theta = jac_inv @ self._effector_vector(skeleton)
            max_angle = float(np.max(np.abs(theta))) if theta.size else 0.0
            beta = threshold / max(max_angle, threshold)

            self._previous_poses.set_all(
                skeleton.current_pose(joint_id) for joint_id in self._affected_joint_ids
            )
            self._raw_joint_xforms.set_data_from(self._previous_poses)

            # The rotation axes are in world space; each joint keeps its position.
            for angle, dof in zip(theta, dofs):
                joint_xform = self._raw_joint_xforms.get(dof.joint_id)
                world_rot = Quat.from_axis_angle(dof.axis, beta * float(angle))
                end_rot = world_rot * rotation(joint_xform)
                self._raw_joint_xforms.set(
                    dof.joint_id,
                    from_rotation_translation(end_rot, translation(joint_xform)),
                )

            # Rebuild each joint under its (possibly moved) parent.
            for dof in dofs:
                parent_xform, parent_xform_old = self._parent_xforms(
                    skeleton, skeleton.parent(dof.joint_id)
                )
                local_rot = rotation(
                    np.linalg.inv(parent_xform_old)
                    @ self._raw_joint_xforms.get(dof.joint_id)
                ).normalize()
                local_translation = translation(skeleton.local_bind_pose(dof.joint_id))
                world_xform = parent_xform @ from_rotation_translation(
                    local_rot, local_translation
                )

                joint_cfg = self._joint_configs[dof.joint_id]
                if joint_cfg.limits is not None:
                    world_xform = self._apply_limits(
                        joint_cfg, skeleton, parent_xform, world_xform
                    )

                self._final_poses.set(dof.joint_id, world_xform)

            skeleton.update_poses(self._final_poses)