"""
medial_builder - 型腔中轴 (骨架) 树构建

流程:
1. 对边界采样点做 Voronoi 划分，保留完全位于型腔内的边
2. 按壁面距离登记线段端点，构建线段池，并选取树的起点
3. 从起点出发贪心拼接线段，得到剪除短枝后的分支树
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Protocol

import numpy as np

from ..utils.geometry import Line, distance
from .segpool import Segpool
from .topographer import Topographer
from .voronoi import generate_voronoi

VORONOI_MARGIN = 1.0

_logger = logging.getLogger(__name__)


class Branch(Protocol):
    """构建器所需的分支能力接口。"""

    @property
    def start(self) -> np.ndarray | None: ...

    @property
    def end(self) -> np.ndarray | None: ...

    @property
    def shallow_distance(self) -> float: ...

    @property
    def deep_distance(self) -> float: ...

    def add_point(self, pt: np.ndarray): ...

    def spawn_child(self) -> "Branch": ...

    def attach_to_parent(self): ...

    def postprocess(self): ...


class BuildFailure(Enum):
    STARTPOINT_OUTSIDE_REGION = "startpoint is outside the pocket"
    STARTPOINT_CLEARANCE_TOO_SMALL = "startpoint clearance is less than tool radius"
    NO_VALID_STARTPOINT = "failed to choose tree start point"


class MedialBuildError(ValueError):
    """中轴构建失败，reason 给出失败原因。"""

    def __init__(self, reason: BuildFailure):
        super().__init__(reason.value)
        self.reason = reason


@dataclass
class _Frame:
    """显式栈中的一帧：一个正在处理分叉的分支。"""

    branch: Branch
    running_end: np.ndarray
    followers: list[np.ndarray]
    next_idx: int = 0
    pending_child: Branch | None = field(default=None)


class MedialBuilder:
    """
    中轴树构建器。

    Attributes:
        general_tolerance: 通用距离容差 (点合并、区域判定)
        min_dist_to_wall: 端点到壁面的最小距离 (刀具半径)
        min_branch_len: 短枝剪除阈值，默认取 general_tolerance
    """

    def __init__(
        self,
        general_tolerance: float,
        min_dist_to_wall: float,
        min_branch_len: float | None = None,
        logger: logging.Logger | None = None,
    ):
        if general_tolerance <= 0:
            raise ValueError(f"Tolerance must be positive, got {general_tolerance}")
        if min_dist_to_wall <= 0:
            raise ValueError(f"Min distance to wall must be positive, got {min_dist_to_wall}")

        self.general_tolerance = general_tolerance
        self.min_dist_to_wall = min_dist_to_wall
        self.min_branch_len = general_tolerance if min_branch_len is None else min_branch_len
        self.log = logger or _logger

    def get_medial_axis_segments(self, topo: Topographer, samples: np.ndarray) -> list[Line]:
        """
        由边界采样点提取位于型腔内部的 Voronoi 边。

        在最低 (同高取最左) 的采样点正下方、距离为包围盒宽度一半处追加一个辅助点，
        使扫描线算法最先处理的是一个孤立站点，它自成一个 Voronoi 单元，不影响其余划分。

        Args:
            topo: 区域查询器
            samples: (N, 2) 边界采样点

        Returns:
            inner_segments: 完全位于型腔内的非零长度边
        """
        samples = np.asarray(samples, dtype=np.float64).reshape(-1, 2)
        n = len(samples)
        if n < 3:
            self.log.warning("too few boundary samples: %d", n)
            return []

        xs = np.empty(n + 1)
        ys = np.empty(n + 1)
        xs[:n] = samples[:, 0]
        ys[:n] = samples[:, 1]

        min_x, max_x = xs[:n].min(), xs[:n].max()
        min_y, max_y = ys[:n].min(), ys[:n].max()

        # 最低点，同高时取最左
        lb_idx = np.lexsort((xs[:n], ys[:n]))[0]

        width = max_x - min_x
        xs[n] = xs[lb_idx]
        ys[n] = ys[lb_idx] - width / 2

        min_x -= VORONOI_MARGIN
        max_x += VORONOI_MARGIN
        min_y -= VORONOI_MARGIN + width / 2
        max_y += VORONOI_MARGIN

        edges = generate_voronoi(xs, ys, min_x, max_x, min_y, max_y, self.general_tolerance)
        self.log.debug("voronoi partitioning completed. got %d edges", len(edges))

        inner_segments = []
        for seg in edges:
            if seg.length() < np.finfo(float).eps:
                continue
            if not topo.is_line_inside_region(seg, self.general_tolerance):
                continue
            inner_segments.append(seg)

        return inner_segments

    def _register_segments(
        self, topo: Topographer, segments: list[Line], pool: Segpool
    ) -> Iterator[tuple[np.ndarray, float]]:
        """
        将壁面距离足够的端点登记到线段池，并逐个产出 (端点, 壁面距离)。

        未登记的端点不会被作为遍历起点，线段只能从另一端走向它。
        """
        for seg in segments:
            r1 = topo.get_dist_to_wall(seg.p1)
            r2 = topo.get_dist_to_wall(seg.p2)

            if r1 >= self.min_dist_to_wall:
                pool.add(seg, reverse=False)
                yield seg.p1, r1
            if r2 >= self.min_dist_to_wall:
                pool.add(seg, reverse=True)
                yield seg.p2, r2

    def prepare_segments_w_auto_startpoint(
        self, topo: Topographer, segments: list[Line], pool: Segpool
    ) -> np.ndarray | None:
        """起点取壁面距离最大的登记端点。"""
        max_r = -np.inf
        tree_start = None

        for pt, r in self._register_segments(topo, segments, pool):
            if r > max_r:
                max_r = r
                tree_start = pt

        return tree_start

    def prepare_segments_w_manual_startpoint(
        self, topo: Topographer, segments: list[Line], pool: Segpool, startpoint: np.ndarray
    ) -> np.ndarray | None:
        """
        起点取距离用户指定点最近、且连线位于型腔内的登记端点。

        Raises:
            MedialBuildError: 指定点在型腔外或壁面距离小于刀具半径
        """
        tol = self.general_tolerance

        if not topo.is_line_inside_region(Line(startpoint, startpoint), tol):
            self.log.warning("startpoint is outside the pocket")
            raise MedialBuildError(BuildFailure.STARTPOINT_OUTSIDE_REGION)

        if topo.get_dist_to_wall(startpoint) < self.min_dist_to_wall:
            self.log.warning("startpoint radius < tool radius")
            raise MedialBuildError(BuildFailure.STARTPOINT_CLEARANCE_TOO_SMALL)

        min_dist = np.inf
        tree_start = None

        for pt, _ in self._register_segments(topo, segments, pool):
            dist = distance(startpoint, pt)
            if dist < min_dist and topo.is_line_inside_region(Line(startpoint, pt), tol):
                min_dist = dist
                tree_start = pt

        return tree_start

    def prepare_segments_w_hinted_startpoint(
        self, topo: Topographer, segments: list[Line], pool: Segpool, startpoint: np.ndarray
    ) -> np.ndarray | None:
        """起点取距离提示点最近的登记端点，提示点本身不做检查。"""
        min_dist = np.inf
        tree_start = None

        for pt, _ in self._register_segments(topo, segments, pool):
            dist = distance(startpoint, pt)
            if dist < min_dist:
                min_dist = dist
                tree_start = pt

        return tree_start

    @staticmethod
    def _follow(branch: Branch, pool: Segpool) -> tuple[np.ndarray, list[np.ndarray]]:
        """沿唯一后继一直延伸分支，返回 (当前末端, 分叉后继列表)。"""
        running_end = branch.end
        while True:
            followers = pool.pull_follow_points(running_end)
            if len(followers) != 1:
                return running_end, followers
            running_end = followers[0]
            branch.add_point(running_end)

    def build_tree(self, root: Branch, pool: Segpool):
        """
        从根分支出发拼接分支树。

        深度优先：每个分叉处先完整构建子分支，再依据其深度距离决定是否挂接，
        所有子分支处理完毕后对该分支调用一次 postprocess。使用显式栈代替递归。
        """
        stack = [_Frame(root, *self._follow(root, pool))]

        while stack:
            frame = stack[-1]

            child = frame.pending_child
            if child is not None:
                frame.pending_child = None
                if child.deep_distance > self.min_branch_len:   # 只挂接足够长的分支
                    child.attach_to_parent()
                else:
                    self.log.debug("skipping short branch")

            if frame.next_idx < len(frame.followers):
                pt = frame.followers[frame.next_idx]
                frame.next_idx += 1

                child = frame.branch.spawn_child()
                child.add_point(frame.running_end)
                child.add_point(pt)
                frame.pending_child = child
                stack.append(_Frame(child, *self._follow(child, pool)))
                continue

            frame.branch.postprocess()
            stack.pop()

    def build(
        self,
        root: Branch,
        topo: Topographer,
        samples: np.ndarray,
        startpoint: np.ndarray | None = None,
        startpoint_is_a_hint: bool = False,
    ) -> Branch:
        """
        构建中轴树。

        Args:
            root: 空的根分支
            topo: 区域查询器
            samples: (N, 2) 边界采样点
            startpoint: 用户起点，None 时自动选取
            startpoint_is_a_hint: 起点仅作为提示 (不校验、不加入路径)

        Returns:
            root: 构建完成的根分支

        Raises:
            MedialBuildError: 无法确定树的起点
        """
        segments = self.get_medial_axis_segments(topo, samples)

        self.log.debug("analyzing segments")

        pool = Segpool(self.general_tolerance)

        if startpoint is not None:
            startpoint = np.asarray(startpoint, dtype=np.float64)

        if startpoint is None:
            tree_start = self.prepare_segments_w_auto_startpoint(topo, segments, pool)
        elif startpoint_is_a_hint:
            tree_start = self.prepare_segments_w_hinted_startpoint(topo, segments, pool, startpoint)
        else:
            tree_start = self.prepare_segments_w_manual_startpoint(topo, segments, pool, startpoint)

        if tree_start is None:
            self.log.warning("failed to choose tree start point")
            raise MedialBuildError(BuildFailure.NO_VALID_STARTPOINT)

        self.log.debug("done analyzing segments")
        self.log.debug("got %d hashes", pool.n_hashes)

        if startpoint is not None and not startpoint_is_a_hint:
            root.add_point(startpoint)

        root.add_point(tree_start)

        self.build_tree(root, pool)
        return root
