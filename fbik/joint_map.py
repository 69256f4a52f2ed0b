"""A fixed set of joint ids, each holding a 4x4 transform."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np


class JointMap:
    """Transforms keyed by joint id, in a fixed order."""

    def __init__(self, joint_ids: Sequence[int], data: Iterable) -> None:
        self._joint_ids = tuple(joint_ids)
        self._data = [np.array(m, dtype=float) for m in data]
        if len(self._joint_ids) != len(self._data):
            raise ValueError("joint ids and transforms differ in number")

    @property
    def joint_ids(self) -> Tuple[int, ...]:
        return self._joint_ids

    def __len__(self) -> int:
        return len(self._joint_ids)

    def _index(self, joint_id: int) -> Optional[int]:
        try:
            return self._joint_ids.index(joint_id)
        except ValueError:
            return None

    def get(self, joint_id: int) -> Optional[np.ndarray]:
        """A copy of the joint's transform, or None if the joint is not held."""
        idx = self._index(joint_id)
        return None if idx is None else self._data[idx].copy()

    def set(self, joint_id: int, xform) -> None:
        """Replace the joint's transform; raises KeyError for an unknown joint."""
        idx = self._index(joint_id)
        if idx is None:
            raise KeyError(joint_id)
        self._data[idx] = np.array(xform, dtype=float)

    def set_all(self, xforms: Iterable) -> None:
        """Overwrite transforms in joint order, starting from the first."""
        for i, xform in enumerate(xforms):
            if i >= len(self._data):
                raise IndexError("more transforms than joints")
            self._data[i] = np.array(xform, dtype=float)

    def __iter__(self) -> Iterator[Tuple[int, np.ndarray]]:
        return zip(self._joint_ids, self._data)

    def set_data_from(self, other: "JointMap") -> None:
        """Copy every transform from another map of the same size."""
        if len(other._data) != len(self._data):
            raise ValueError("joint maps differ in size")
        self._data = [m.copy() for m in other._data]

    def copy(self) -> "JointMap":
        return JointMap(self._joint_ids, self._data)