"""
segpool - 中轴候选线段的空间索引

以容差对齐后的端点坐标为键，登记可作为遍历起点的线段端点，
支持 "给出与该点相连的全部其它端点" 查询。
"""

from collections import defaultdict

import numpy as np

from ..utils.geometry import Line


class Segpool:
    """
    线段池。

    每条线段可以只登记一端 (单向可走)，也可以两端都登记。
    pull_follow_points 取出的线段从池中整体移除，同一条边不会被反向重复遍历。
    """

    def __init__(self, tolerance: float):
        if tolerance <= 0:
            raise ValueError(f"Tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance
        # key -> [(segment, follower)]
        self._pool: dict[tuple[int, int], list[tuple[Line, np.ndarray]]] = defaultdict(list)

    def _hash(self, pt: np.ndarray) -> tuple[int, int]:
        return int(round(pt[0] / self.tolerance)), int(round(pt[1] / self.tolerance))

    @property
    def n_hashes(self) -> int:
        return len(self._pool)

    def add(self, seg: Line, reverse: bool = False):
        """
        登记线段的一个端点。

        Args:
            seg: 线段
            reverse: False 时登记 p1 (可从 p1 走向 p2)，True 时登记 p2
        """
        anchor, follower = (seg.p2, seg.p1) if reverse else (seg.p1, seg.p2)
        self._pool[self._hash(anchor)].append((seg, follower))

    def _remove(self, key: tuple[int, int], seg: Line):
        entries = self._pool.get(key)
        if entries is None:
            return
        entries[:] = [e for e in entries if e[0] is not seg]
        if not entries:
            del self._pool[key]

    def pull_follow_points(self, pt: np.ndarray) -> list[np.ndarray]:
        """
        取出从 pt 经一条线段可达的全部端点，并消耗这些线段。

        Args:
            pt: 查询点

        Returns:
            followers: 可达端点列表，无登记线段时为空
        """
        key = self._hash(pt)
        entries = self._pool.pop(key, [])

        followers = []
        seen = []
        for seg, follower in entries:
            if any(seg is s for s in seen):
                continue
            seen.append(seg)

            follower_key = self._hash(follower)
            if follower_key == key:
                continue    # 两端对齐到同一个键，退化线段
            self._remove(follower_key, seg)
            followers.append(follower)

        return followers

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._pool.values())
