"""Full body inverse kinematics for games: goals, joint controls and a damped least-squares solver."""

__version__ = "0.1.1"
__all__ = ["algebra", "joint_map", "joints", "goals", "solver"]