"""
branch - 中轴树的分支

MedialBranch 是中轴构建器默认使用的分支实现：一条折线 + 子分支列表。
"""

from typing import Iterator

import numpy as np


class MedialBranch:
    """
    中轴树分支。

    Attributes:
        parent: 父分支，根分支为 None
        points: 折线顶点列表
        children: 已挂接的子分支
    """

    def __init__(self, parent: "MedialBranch | None" = None):
        self.parent = parent
        self.points: list[np.ndarray] = []
        self.children: list[MedialBranch] = []
        self._deep_distance: float | None = None

    @property
    def start(self) -> np.ndarray | None:
        return self.points[0] if self.points else None

    @property
    def end(self) -> np.ndarray | None:
        return self.points[-1] if self.points else None

    @property
    def shallow_distance(self) -> float:
        """本分支折线长度。"""
        if len(self.points) < 2:
            return 0.0
        return float(np.sum(np.linalg.norm(np.diff(np.array(self.points), axis=0), axis=1)))

    @property
    def deep_distance(self) -> float:
        """经由本分支及其子孙可达的最大累积长度。后处理前等于本分支长度。"""
        if self._deep_distance is None:
            return self.shallow_distance
        return self._deep_distance

    def add_point(self, pt: np.ndarray):
        self.points.append(np.asarray(pt, dtype=np.float64))

    def spawn_child(self) -> "MedialBranch":
        return MedialBranch(parent=self)

    def attach_to_parent(self):
        if self.parent is None:
            raise RuntimeError("Root branch has no parent to attach to")
        self.parent.children.append(self)

    def postprocess(self):
        """子分支按深度距离升序排列 (短分支先走)，并计算深度距离。"""
        self.children.sort(key=lambda b: b.deep_distance)
        deepest = self.children[-1].deep_distance if self.children else 0.0
        self._deep_distance = self.shallow_distance + deepest

    def traverse(self) -> Iterator["MedialBranch"]:
        """深度优先前序遍历 (含自身)。"""
        stack = [self]
        while stack:
            branch = stack.pop()
            yield branch
            stack.extend(reversed(branch.children))

    def leaves(self) -> list["MedialBranch"]:
        return [b for b in self.traverse() if not b.children]

    def to_array(self) -> np.ndarray:
        """折线顶点，(N, 2) 数组。"""
        return np.array(self.points).reshape(-1, 2)

    def __repr__(self) -> str:
        return (
            f"MedialBranch(points={len(self.points)}, children={len(self.children)}, "
            f"shallow={self.shallow_distance:.2f}, deep={self.deep_distance:.2f})"
        )
