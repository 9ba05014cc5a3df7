"""
geometry - 二维几何基础工具

提供向量运算、圆与圆弧的求交、角度计算等基础几何操作。
点与向量统一使用形状为 (2,) 的 numpy 数组表示，"未定义" 的点用 None 表示。
"""

from dataclasses import dataclass
from enum import IntEnum

import numpy as np

EPSILON = 1e-12
TWO_PI = 2.0 * np.pi


class RotationDirection(IntEnum):
    """旋转方向。数值可直接用作行列式的符号因子。"""

    CW = -1
    UNKNOWN = 0
    CCW = 1

    def flipped(self) -> "RotationDirection":
        if self == RotationDirection.UNKNOWN:
            return self
        return RotationDirection(-int(self))


def as_point(p) -> np.ndarray:
    return np.asarray(p, dtype=np.float64).reshape(2)


def normalize(vectors: np.ndarray) -> np.ndarray:
    """
    将向量归一化为单位向量。

    Args:
        vectors: 单个向量 (2,) 或向量数组 (m, 2)

    Returns:
        归一化后的单位向量，与输入形状相同。零向量保持为零。
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    if vectors.ndim == 1:
        norm = np.linalg.norm(vectors)
        return vectors / norm if norm > EPSILON else np.zeros_like(vectors)
    norm = np.linalg.norm(vectors, axis=-1, keepdims=True)
    norm[norm < EPSILON] = 1.0
    return vectors / norm


def distance(p1: np.ndarray, p2: np.ndarray) -> float:
    return float(np.hypot(p2[0] - p1[0], p2[1] - p1[1]))


def det(v0: np.ndarray, v1: np.ndarray) -> float:
    """二维叉积 (行列式) v0 × v1。正值表示 v1 在 v0 的逆时针一侧。"""
    return float(v0[0] * v1[1] - v0[1] * v1[0])


def rotate(v: np.ndarray, angle: float) -> np.ndarray:
    """将向量逆时针旋转 angle 弧度。"""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([c * v[0] - s * v[1], s * v[0] + c * v[1]])


def ccw_angle_from(v0: np.ndarray, v1: np.ndarray) -> float:
    """从 v0 逆时针转到 v1 的角度，范围 [0, 2π)。"""
    angle = np.arctan2(det(v0, v1), float(np.dot(v0, v1)))
    if angle < 0:
        angle += TWO_PI
    return float(angle)


def angle_between_vectors(v0: np.ndarray, v1: np.ndarray, direction: RotationDirection) -> float:
    """
    沿给定方向从 v0 转到 v1 的角度，范围 [0, 2π)。

    Args:
        v0: 起始向量
        v1: 终止向量
        direction: CCW 或 CW

    Returns:
        旋转角度 (rad)
    """
    angle = ccw_angle_from(v0, v1)
    if direction == RotationDirection.CCW:
        return angle
    return (TWO_PI - angle) % TWO_PI


@dataclass(eq=False)
class Line:
    """直线段 p1 -> p2。"""

    p1: np.ndarray
    p2: np.ndarray

    def __post_init__(self):
        self.p1 = as_point(self.p1)
        self.p2 = as_point(self.p2)

    def length(self) -> float:
        return distance(self.p1, self.p2)

    def __repr__(self) -> str:
        return f"Line(({self.p1[0]:.4f}, {self.p1[1]:.4f}) -> ({self.p2[0]:.4f}, {self.p2[1]:.4f}))"


@dataclass(eq=False)
class Circle:
    center: np.ndarray
    radius: float

    def __post_init__(self):
        self.center = as_point(self.center)
        self.radius = float(self.radius)

    def intersect(self, other: "Circle") -> tuple[np.ndarray | None, np.ndarray | None]:
        return circle_intersect(self, other)


def circle_intersect(c1: Circle, c2: Circle) -> tuple[np.ndarray | None, np.ndarray | None]:
    """
    计算两圆交点。

    Returns:
        (p1, p2): 两个交点时均有值；相切时仅 p1 有值、p2 为 None；
        无交点 (相离、内含或同心) 时均为 None。
    """
    d_vec = c2.center - c1.center
    d = float(np.hypot(d_vec[0], d_vec[1]))
    r1, r2 = c1.radius, c2.radius

    if d < EPSILON:
        return None, None
    if d > r1 + r2 or d < abs(r1 - r2):
        return None, None

    # 交点连线到 c1 圆心的距离 a，以及半弦长 h
    a = (d * d + r1 * r1 - r2 * r2) / (2.0 * d)
    h2 = r1 * r1 - a * a
    unit = d_vec / d
    base = c1.center + unit * a

    if h2 <= EPSILON * max(r1, r2) ** 2:
        return base, None

    h = np.sqrt(h2)
    normal = np.array([-unit[1], unit[0]])
    return base + normal * h, base - normal * h


@dataclass(eq=False)
class Arc:
    """
    圆弧，圆心 center，从 p1 沿 direction 旋转到 p2。

    Attributes:
        center: 圆心
        p1: 起点
        p2: 终点
        direction: 旋转方向 (CW / CCW)
    """

    center: np.ndarray
    p1: np.ndarray
    p2: np.ndarray
    direction: RotationDirection

    def __post_init__(self):
        self.center = as_point(self.center)
        self.p1 = as_point(self.p1)
        self.p2 = as_point(self.p2)
        self.direction = RotationDirection(self.direction)

    @property
    def radius(self) -> float:
        return distance(self.center, self.p1)

    @property
    def sweep(self) -> float:
        """圆弧扫过的角度 (rad)，范围 [0, 2π)。"""
        return angle_between_vectors(self.p1 - self.center, self.p2 - self.center, self.direction)

    @property
    def length(self) -> float:
        return self.radius * self.sweep

    @property
    def midpoint(self) -> np.ndarray:
        v = rotate(self.p1 - self.center, int(self.direction) * self.sweep / 2.0)
        return self.center + v

    def contains_angle_of(self, pt: np.ndarray, tolerance: float = 1e-9) -> bool:
        """判断点 pt 所在的极角是否落在圆弧扫过的范围内。"""
        a = angle_between_vectors(self.p1 - self.center, as_point(pt) - self.center, self.direction)
        return a <= self.sweep + tolerance

    def circle_intersect(self, circle: Circle) -> tuple[np.ndarray | None, np.ndarray | None]:
        """
        圆弧与整圆求交，仅保留落在圆弧范围内的交点。

        Returns:
            (p1, p2): 有效交点优先放在 p1，缺失的为 None
        """
        found = [
            p for p in circle_intersect(Circle(self.center, self.radius), circle)
            if p is not None and self.contains_angle_of(p)
        ]
        found += [None] * (2 - len(found))
        return found[0], found[1]

    def extrema(self) -> tuple[np.ndarray, np.ndarray]:
        """圆弧的轴对齐包围盒 (min, max)。"""
        r = self.radius
        points = [self.p1, self.p2]
        for theta in (0.0, np.pi / 2, np.pi, 3 * np.pi / 2):
            pt = self.center + r * np.array([np.cos(theta), np.sin(theta)])
            if self.contains_angle_of(pt):
                points.append(pt)
        points = np.array(points)
        return points.min(axis=0), points.max(axis=0)

    def __repr__(self) -> str:
        return (
            f"Arc(center=({self.center[0]:.4f}, {self.center[1]:.4f}), "
            f"sweep={np.degrees(self.sweep):.2f}°, {self.direction.name})"
        )


if __name__ == "__main__":
    print("=== 圆求交测试 ===")
    c1 = Circle((0.0, 0.0), 10.0)
    c2 = Circle((3.0, 0.0), 10.0)
    p1, p2 = c1.intersect(c2)
    print(f"交点: {p1}, {p2}")

    arc = Arc((3.0, 0.0), p2, p1, RotationDirection.CCW)
    print(f"圆弧: {arc}")
    print(f"  中点: {arc.midpoint}")
    print(f"  长度: {arc.length:.4f}")
    lo, hi = arc.extrema()
    print(f"  包围盒: {lo} - {hi}")
