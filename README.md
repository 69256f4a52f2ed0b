# fbik

Full body inverse kinematics (FBIK) for games. Several joints of a skeleton are
rotated together so that one or more end effectors approach their goals: a
position, a distance, an orientation, a heading around the world Y axis, or a
look-at target. Every iteration builds a Jacobian from the current pose, solves
it with damped least squares, limits the largest step to 10.5 degrees, and hands
the new world-space poses back to the skeleton.

## Installation

```
pip install .
```

Only `numpy` is needed at run time.

## Modules

- `fbik.algebra` – `Quat` and the 4×4 matrix helpers (`translation`,
  `rotation`, `from_rotation_translation`, `transform_vector`), plus `ang_diff`,
  `swing_twist_decompose` and `get_rotation_axis`. Matrices are 4×4 numpy
  arrays acting on column vectors, with the translation in the last column.
- `fbik.joint_map` – `JointMap`, a fixed set of joint ids each holding a 4×4
  transform. Iterating it yields `(joint_id, matrix)` pairs.
- `fbik.joints` – `JointLimit`, `IKJointControl` and the abstract `Skeleton`.
- `fbik.goals` – the goal kinds and `IKGoal`.
- `fbik.solver` – `IKSolver` and `pseudo_inverse_damped_least_squares`.

## Concepts

- **`Skeleton`** – an abstract base class your rig implements. It answers
  `current_pose(joint_id)` (world-space 4×4 matrix), `local_bind_pose(joint_id)`
  (bind pose relative to the parent), `parent(joint_id)` (or `None` for a root),
  and receives the solved world-space poses of the affected joints through
  `update_poses(poses)`, where `poses` is a `JointMap`.
- **`IKJointControl`** – a frozen dataclass for one joint the solver may rotate.
  `with_axis_constraint(axis)` restricts it to one rotation axis in joint space,
  `with_limits(limits)` gives it twist limits (`JointLimit(axis, min, max)`, in
  radians, relative to the local bind pose), and `with_stiffness(value)` divides
  its influence by `value` (default `1.0`). Each returns a new control.
- **`IKGoal`** – an end effector joint id together with a goal kind:
  - `PositionGoal(target)` – move the end effector to a world position.
  - `DistanceGoal(target)` – reduce the distance to a world position.
  - `RotationGoal(rotation)` – reach a world orientation given as a `Quat`.
  - `RotYGoal(angle)` – reach a heading (radians) around the world Y axis,
    leaving the other axes free.
  - `LookAtGoal(target, local_lookat_axis)` – point the end effector's local
    axis at a world position.
- **`IKSolver(affected_joints, goals, num_iterations)`** – moves a skeleton
  with `solve(skeleton)`, running `num_iterations` iterations and calling
  `update_poses` after each one.

The affected joints must be listed in topological order: parents before
children.

## Example

```python
import numpy as np

from fbik.goals import IKGoal, PositionGoal
from fbik.joints import IKJointControl, Skeleton
from fbik.solver import IKSolver


def offset(z):
    m = np.eye(4)
    m[2, 3] = z
    return m


class Chain(Skeleton):
    """Three joints along Z, one unit apart."""

    def __init__(self):
        self.parents = [None, 0, 1]
        self.local = [offset(0.0), offset(1.0), offset(1.0)]
        self.world = [offset(0.0), offset(1.0), offset(2.0)]

    def current_pose(self, joint_id):
        return self.world[joint_id]

    def local_bind_pose(self, joint_id):
        return self.local[joint_id]

    def parent(self, joint_id):
        return self.parents[joint_id]

    def update_poses(self, poses):
        for joint_id, xform in poses:
            self.world[joint_id] = xform


joints = [IKJointControl(0), IKJointControl(1), IKJointControl(2)]
goals = [IKGoal(end_effector_id=2, kind=PositionGoal((1.0, 0.0, 1.0)))]

skeleton = Chain()
solver = IKSolver(joints, goals, num_iterations=50)
solver.solve(skeleton)
print(skeleton.world[2][:3, 3])
```

Goals can be changed between solves without building a new solver.
`position_goals()`, `rotation_goals()` and `lookat_goals()` yield
`(end_effector_id, goal)` pairs, and the goal objects are mutable:

```python
for end_effector_id, goal in solver.position_goals():
    goal.target = np.array([0.5, 0.0, 1.5])
```

## Errors

- `JointMap.set` raises `KeyError` for a joint id the map does not hold.
- `pseudo_inverse_damped_least_squares` raises `ValueError` when the Jacobian
  does not have `num_effectors` rows.
- Vector arguments that do not have three components raise `ValueError`;
  an `IKGoal` whose kind is not a goal kind, or a `RotationGoal` given
  something other than a `Quat`, raises `TypeError`.

## What it does not do

The package is a solver library only. It has no command-line tool, does not
load or save skeletons or animation files, and does no rendering: the rig, its
hierarchy and its poses come from your `Skeleton` implementation. `LookAtGoal`
does not honour a joint's restricted rotation axis.

## Running the tests

```
pip install .[test]
pytest
```