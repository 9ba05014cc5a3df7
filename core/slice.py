"""
slice - 摆线铣削中的单个刀位圆 (切片)

每个切片是一个圆，由两段可裁剪的圆弧组成。非根切片依据与父切片的相对位置分类，
并计算刀具切入深度 (TED, Tool Engagement Depth)：刀具实际接触材料的径向深度。

实现:
1. 切片分类 (NORMAL / TOO_FAR / INSIDE_ANOTHER)
2. 中点 TED 与切入点 TED
3. 与相邻切片碰撞时的圆弧裁剪 (refine)
"""

import logging
from enum import Enum

import numpy as np

from ..utils.geometry import (
    Arc,
    Circle,
    RotationDirection,
    angle_between_vectors,
    det,
    distance,
    normalize,
)

_logger = logging.getLogger(__name__)


class SlicePlacement(Enum):
    NORMAL = "normal"
    TOO_FAR = "too_far"
    INSIDE_ANOTHER = "inside_another"


class SliceContractError(RuntimeError):
    """切片使用方式违反约定 (重复裁剪、与自身碰撞等)。"""


class Slice:
    """
    切片：一个刀位圆及其两段边界圆弧。

    Attributes:
        ball: 刀位圆，构造后不变
        segments: 两段圆弧 [入口 -> 中点, 中点 -> 出口]，仅 refine 时修改一次
        parent: 父切片，根切片为 None
        placement: 相对父切片的位置分类
        entry_ted, mid_ted, max_ted: 切入深度指标
        guide: 供下游使用的引导折线
    """

    def __init__(
        self,
        parent: "Slice | None",
        center: np.ndarray,
        radius: float,
        direction: RotationDirection = RotationDirection.UNKNOWN,
        tool_r: float | None = None,
        magnet: np.ndarray | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Args:
            parent: 父切片，None 表示根切片 (整圆)
            center: 圆心
            radius: 半径
            direction: 旋转方向，UNKNOWN 时自动推导
            tool_r: 刀具半径，非根切片必须给出
            magnet: 方向推导时偏好的吸引点
        """
        self._parent = parent
        self._ball = Circle(center, radius)
        self._segments: list[Arc] = []
        self._entry_ted = 0.0
        self._mid_ted = 0.0
        self._max_ted = 0.0
        self.guide: list[np.ndarray] | None = None
        self.log = logger or _logger

        if parent is None:
            self._placement = SlicePlacement.NORMAL
            if direction == RotationDirection.UNKNOWN:
                direction = RotationDirection.CCW
            self._create_arc_circle(self.center + np.array([self.radius, 0.0]), direction)
            return

        if tool_r is None or tool_r <= 0:
            raise ValueError(f"Tool radius must be positive, got {tool_r}")

        self._placement = self._place(direction, tool_r, magnet)

    # ------------------------------------------------------------------ 属性

    @property
    def ball(self) -> Circle:
        return self._ball

    @property
    def segments(self) -> list[Arc]:
        return self._segments

    @property
    def center(self) -> np.ndarray:
        return self._ball.center

    @property
    def radius(self) -> float:
        return self._ball.radius

    @property
    def start(self) -> np.ndarray | None:
        return self._segments[0].p1 if self._segments else None

    @property
    def end(self) -> np.ndarray | None:
        return self._segments[1].p2 if self._segments else None

    @property
    def dir(self) -> RotationDirection:
        return self._segments[0].direction if self._segments else RotationDirection.UNKNOWN

    @property
    def parent(self) -> "Slice | None":
        return self._parent

    @property
    def placement(self) -> SlicePlacement:
        return self._placement

    @property
    def entry_ted(self) -> float:
        return self._entry_ted

    @property
    def mid_ted(self) -> float:
        return self._mid_ted

    @property
    def max_ted(self) -> float:
        return self._max_ted

    # ------------------------------------------------------------------ 构造

    def _create_arc_circle(self, p1: np.ndarray, direction: RotationDirection):
        # 整圆拆成两个半圆
        p2 = self.center - (p1 - self.center)
        self._segments = [
            Arc(self.center, p1, p2, direction),
            Arc(self.center, p2, p1, direction),
        ]

    def _place(self, direction: RotationDirection, tool_r: float, magnet: np.ndarray | None) -> SlicePlacement:
        """分类切片位置；NORMAL 时生成圆弧并计算 TED。"""
        parent = self._parent
        dist = distance(self.center, parent.center)
        delta_r = self.radius - parent.radius
        coarse_ted = dist + delta_r

        # 与父圆完全重合
        if dist == 0 and delta_r == 0:
            return SlicePlacement.INSIDE_ANOTHER
        # 相离
        if dist >= self.radius + parent.radius:
            return SlicePlacement.TOO_FAR
        # 粗略 TED 已接近刀具直径，提前排除，也避免后续三角计算失败
        if coarse_ted > tool_r * 1.999:
            return SlicePlacement.TOO_FAR

        p1, p2 = parent.ball.intersect(self._ball)
        # 内含，无交点
        if p1 is None and p2 is None:
            return SlicePlacement.INSIDE_ANOTHER
        # 内切
        if p1 is None or p2 is None:
            if self.radius <= parent.radius:
                return SlicePlacement.INSIDE_ANOTHER
            # 新圆包住父圆，单点相切：两个交点视为重合
            p1 = p2 = p1 if p1 is not None else p2

        v_move = self.center - parent.center
        v1 = p1 - parent.center
        default_dir = RotationDirection.CW if det(v_move, v1) > 0 else RotationDirection.CCW

        if direction == RotationDirection.UNKNOWN:
            if magnet is None:
                direction = RotationDirection.CCW
            elif distance(p1, magnet) < distance(p2, magnet):
                direction = default_dir
            else:
                direction = default_dir.flipped()

        midpoint = self.center + normalize(v_move) * self.radius

        if default_dir == direction:
            self._segments = [
                Arc(self.center, p1, midpoint, direction),
                Arc(self.center, midpoint, p2, direction),
            ]
        else:
            self._segments = [
                Arc(self.center, p2, midpoint, direction),
                Arc(self.center, midpoint, p1, direction),
            ]

        self._mid_ted = self._calc_ted(midpoint, tool_r)
        if self._mid_ted <= 0:
            self.log.warning("forced to patch mid_ted")
            self._mid_ted = coarse_ted

        self._entry_ted = self._calc_entry_ted(tool_r)
        self._max_ted = max(self._mid_ted, self._entry_ted)

        return SlicePlacement.NORMAL

    # ------------------------------------------------------------------ TED

    def _calc_ted(self, tool_center: np.ndarray, tool_r: float) -> float:
        """
        刀心位于 tool_center 时的切入深度。

        取刀具与父切片壁面 (父圆外扩刀具半径) 的交点中沿铣削方向更靠前的一个，
        投影到本切片圆心 -> 刀心方向上求 TED。
        """
        parent_wall = Circle(self._parent.center, self._parent.radius + tool_r)
        cut_circle = Circle(tool_center, tool_r)
        p1, p2 = cut_circle.intersect(parent_wall)

        if p1 is None or p2 is None:
            self.log.error("no wall intersections #0")
            return 0.0

        v1 = p1 - self._parent.center
        v_parent_to_tool_center = tool_center - self._parent.center
        cut_head = p1 if det(v_parent_to_tool_center, v1) * int(self.dir) > 0 else p2

        v_me_to_tool_center = tool_center - self.center
        v_me_to_cut_head = cut_head - self.center

        ted = self.radius + tool_r - float(np.dot(v_me_to_cut_head, normalize(v_me_to_tool_center)))
        return max(ted, 0.0)

    def _calc_entry_ted(self, tool_r: float) -> float:
        """切入点 TED：由父切片与本切片两个壁面圆的交点 (切削尾点) 定位切入刀心。"""
        parent_wall = Circle(self._parent.center, self._parent.radius + tool_r)
        this_wall = Circle(self.center, self.radius + tool_r)
        p1, p2 = parent_wall.intersect(this_wall)

        if p1 is None or p2 is None:
            self.log.error("no wall intersections for entry ted #1")
            return 0.0

        v1 = p1 - self._parent.center
        v_move = self.center - self._parent.center
        cut_tail = p1 if det(v_move, v1) * int(self.dir) < 0 else p2
        v_tail = cut_tail - self.center

        entry_tool_center = self.center + normalize(v_tail) * self.radius
        return self._calc_ted(entry_tool_center, tool_r)

    # ------------------------------------------------------------------ 其它操作

    def get_extrema(self) -> tuple[np.ndarray, np.ndarray] | None:
        """两段圆弧的轴对齐包围盒 (min, max)。非 NORMAL 切片没有圆弧，返回 None。"""
        if not self._segments:
            return None
        min0, max0 = self._segments[0].extrema()
        min1, max1 = self._segments[1].extrema()
        return np.minimum(min0, min1), np.maximum(max0, max1)

    def change_startpoint(self, p1: np.ndarray):
        """修改根切片的起点，p1 须位于圆上。"""
        if self._parent is not None:
            raise SliceContractError("startpoint may be changed for the root slice only")
        p1 = np.asarray(p1, dtype=np.float64)
        if abs((distance(p1, self.center) - self.radius) / self.radius) > 0.001:
            raise SliceContractError("new startpoint is outside the initial circle")

        self._create_arc_circle(p1, self.dir)

    def refine(self, colliding_slices: list["Slice"], end_clearance: float, tool_r: float):
        """
        按相邻切片裁剪两段圆弧，避免重复切削已加工区域。

        只应用一个碰撞切片：去除圆弧最多的那个。原始端点始终保留，并且两端至少
        保留 end_clearance (弦长) 的一段；交点距端点不足 end_clearance 时移到该距离处。
        单交点情况转化为双交点，第二个点取一端的 clearance 点。

        Args:
            colliding_slices: 可能与本切片重叠的切片
            end_clearance: 端部保留弦长
            tool_r: 刀具半径

        Raises:
            SliceContractError: 切片已裁剪过，或 colliding_slices 包含自身
        """
        # 非 NORMAL 切片没有圆弧
        if self._placement != SlicePlacement.NORMAL or not self._segments:
            return

        clearance = end_clearance

        if distance(self._segments[0].p2, self._segments[1].p1) != 0.0:
            raise SliceContractError("attempt to refine already refined slice")

        # 圆太小时裁剪无意义：至少容纳边长为 clearance 的正五边形
        r_min = clearance / 2 / np.sin(np.pi / 5.0)
        if self.radius <= r_min:
            return

        if any(s is self for s in colliding_slices):
            raise SliceContractError("attempt to collide slice with itself")

        direction = self.dir
        c1 = self._segments[0].circle_intersect(Circle(self.start, clearance))[0]
        c2 = self._segments[1].circle_intersect(Circle(self.end, clearance))[0]
        if c1 is None or c2 is None:
            return

        v_c1 = c1 - self.center
        v_c2 = c2 - self.center
        safe_sweep = angle_between_vectors(v_c1, v_c2, direction)
        v_p1 = self.start - self.center

        max_secant = None
        max_sweep = 0.0

        for s in colliding_slices:
            if s is self._parent:
                continue

            ins1, ins2 = self._ball.intersect(s.ball)
            # 只处理双交点
            if ins1 is None or ins2 is None:
                continue

            # 落在安全弧之外的交点移到离碰撞圆较近的 clearance 点
            nearest_c = c1 if distance(c1, s.center) < distance(c2, s.center) else c2
            if angle_between_vectors(v_c1, ins1 - self.center, direction) > safe_sweep:
                ins1 = nearest_c
            if angle_between_vectors(v_c1, ins2 - self.center, direction) > safe_sweep:
                ins2 = nearest_c

            if distance(ins1, ins2) < clearance * 2:    # 剩余段太短
                continue

            v_ins1 = ins1 - self.center
            v_ins2 = ins2 - self.center
            sweep = angle_between_vectors(v_ins1, v_ins2, direction)

            # 按原始起点排序交点，留足数值误差余量
            if angle_between_vectors(v_p1, v_ins1, direction) > angle_between_vectors(v_p1, v_ins2, direction):
                ins1, ins2 = ins2, ins1
                sweep = 2.0 * np.pi - sweep

            if sweep > max_sweep:
                # 被去除圆弧的中点必须位于碰撞圆内
                check_arc = Arc(self.center, ins1, ins2, direction)
                if distance(check_arc.midpoint, s.center) < s.radius:
                    max_sweep = sweep
                    max_secant = (ins1, ins2)

        if max_secant is None:
            return

        head = Arc(self.center, self.start, max_secant[0], direction)
        tail = Arc(self.center, max_secant[1], self.end, direction)
        self._segments = [head, tail]

    def __repr__(self) -> str:
        return (
            f"Slice(center=({self.center[0]:.3f}, {self.center[1]:.3f}), r={self.radius:.3f}, "
            f"{self._placement.name}, max_ted={self._max_ted:.3f})"
        )
