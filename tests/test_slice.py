"""
slice 模块单元测试
"""

import logging

import numpy as np
import pytest

from trochoidal_peeling.core.slice import Slice, SliceContractError, SlicePlacement
from trochoidal_peeling.utils.geometry import RotationDirection, distance


def make_pair(child_center, child_r, parent_r=10.0, tool_r=10.0, **kwargs):
    """以原点为父切片圆心构造一对切片"""
    parent = Slice(None, np.array([0.0, 0.0]), parent_r, RotationDirection.CCW)
    child = Slice(parent, np.asarray(child_center, dtype=float), child_r, tool_r=tool_r, **kwargs)
    return parent, child


class TestRootSlice:
    """根切片测试"""

    def test_full_circle(self):
        """测试根切片为两个半圆"""
        s = Slice(None, np.array([1.0, 2.0]), 3.0, RotationDirection.CW)

        assert s.placement == SlicePlacement.NORMAL
        assert s.parent is None
        assert s.dir == RotationDirection.CW
        np.testing.assert_allclose(s.start, [4.0, 2.0])
        np.testing.assert_allclose(s.end, [4.0, 2.0])
        for arc in s.segments:
            assert np.isclose(arc.sweep, np.pi)
        assert s.max_ted == 0.0

    def test_unknown_direction_defaults_to_ccw(self):
        """测试根切片方向未知时取逆时针"""
        s = Slice(None, np.array([0.0, 0.0]), 1.0)
        assert s.dir == RotationDirection.CCW

    def test_extrema(self):
        """测试包围盒"""
        s = Slice(None, np.array([1.0, 2.0]), 3.0)
        lo, hi = s.get_extrema()
        np.testing.assert_allclose(lo, [-2.0, -1.0], atol=1e-12)
        np.testing.assert_allclose(hi, [4.0, 5.0], atol=1e-12)

    def test_change_startpoint(self):
        """测试修改根切片起点"""
        s = Slice(None, np.array([0.0, 0.0]), 2.0)
        s.change_startpoint(np.array([0.0, 2.0]))
        np.testing.assert_allclose(s.start, [0.0, 2.0])
        np.testing.assert_allclose(s.segments[0].p2, [0.0, -2.0])

    def test_change_startpoint_off_circle(self):
        """测试新起点不在圆上"""
        s = Slice(None, np.array([0.0, 0.0]), 2.0)
        with pytest.raises(SliceContractError):
            s.change_startpoint(np.array([0.0, 2.5]))

    def test_change_startpoint_non_root(self):
        """测试非根切片不能修改起点"""
        _, child = make_pair((3.0, 0.0), 10.0)
        with pytest.raises(SliceContractError):
            child.change_startpoint(child.start)


class TestPlacement:
    """切片分类测试"""

    def test_coincident(self):
        """测试与父切片重合"""
        _, child = make_pair((0.0, 0.0), 10.0)
        assert child.placement == SlicePlacement.INSIDE_ANOTHER

    def test_disjoint(self):
        """测试相离"""
        _, child = make_pair((30.0, 0.0), 5.0)
        assert child.placement == SlicePlacement.TOO_FAR

    def test_touching_equal_circles(self):
        """测试等半径、圆心距 2R 的外切圆不会是 NORMAL"""
        _, child = make_pair((20.0, 0.0), 10.0)
        assert child.placement in (SlicePlacement.TOO_FAR, SlicePlacement.INSIDE_ANOTHER)
        assert child.placement != SlicePlacement.NORMAL

    def test_coarse_ted_reject(self):
        """测试粗略 TED 超过刀具直径时提前排除"""
        _, child = make_pair((19.5, 0.0), 10.0, tool_r=5.0)
        assert child.placement == SlicePlacement.TOO_FAR
        assert child.segments == []

    def test_contained(self):
        """测试内含无交点"""
        _, child = make_pair((1.0, 0.0), 3.0)
        assert child.placement == SlicePlacement.INSIDE_ANOTHER

    def test_inner_tangent_undershoot(self):
        """测试内切且半径较小"""
        _, child = make_pair((3.0, 0.0), 5.0, parent_r=8.0)
        assert child.placement == SlicePlacement.INSIDE_ANOTHER

    def test_engulfing_tangent(self, caplog):
        """测试新圆包住父圆且单点相切：NORMAL，切入点 TED 无法计算时记为 0"""
        with caplog.at_level(logging.ERROR):
            _, child = make_pair((3.0, 0.0), 8.0, parent_r=5.0)

        assert child.placement == SlicePlacement.NORMAL
        np.testing.assert_allclose(child.start, [-5.0, 0.0])
        np.testing.assert_allclose(child.end, [-5.0, 0.0])
        assert child.entry_ted == 0.0
        assert child.mid_ted > 0.0
        assert "no wall intersections for entry ted" in caplog.text

    def test_not_normal_accessors(self):
        """测试无圆弧切片的访问器"""
        _, child = make_pair((30.0, 0.0), 5.0)
        assert child.start is None
        assert child.end is None
        assert child.dir == RotationDirection.UNKNOWN
        assert child.get_extrema() is None

    def test_two_intersections(self):
        """测试两交点"""
        _, child = make_pair((3.0, 0.0), 10.0)
        assert child.placement == SlicePlacement.NORMAL
        assert len(child.segments) == 2

    def test_swap_parent_child(self):
        """测试交换父子后相交与否不变"""
        a = Slice(None, np.array([0.0, 0.0]), 10.0)
        b = Slice(None, np.array([3.0, 0.0]), 10.0)
        ab = Slice(a, b.center, b.radius, tool_r=10.0)
        ba = Slice(b, a.center, a.radius, tool_r=10.0)
        assert ab.placement == ba.placement == SlicePlacement.NORMAL

        c = Slice(None, np.array([25.0, 0.0]), 10.0)
        ac = Slice(a, c.center, c.radius, tool_r=10.0)
        ca = Slice(c, a.center, a.radius, tool_r=10.0)
        assert ac.placement == ca.placement == SlicePlacement.TOO_FAR

    def test_requires_tool_radius(self):
        """测试非根切片必须给出刀具半径"""
        parent = Slice(None, np.array([0.0, 0.0]), 10.0)
        with pytest.raises(ValueError):
            Slice(parent, np.array([3.0, 0.0]), 10.0)


class TestDirectionAndTed:
    """方向推导与 TED 测试"""

    def test_arcs_meet_at_midpoint(self):
        """测试两段圆弧在前进方向中点相接"""
        _, child = make_pair((3.0, 0.0), 10.0)
        np.testing.assert_allclose(child.segments[0].p2, [13.0, 0.0])
        np.testing.assert_allclose(child.segments[1].p1, [13.0, 0.0])

    def test_default_ccw_without_magnet(self):
        """测试无吸引点时取逆时针"""
        _, child = make_pair((3.0, 0.0), 10.0)
        assert child.dir == RotationDirection.CCW
        assert child.start[1] < 0 < child.end[1]

    def test_magnet(self):
        """测试吸引点决定方向：起点为靠近吸引点的交点"""
        _, up = make_pair((3.0, 0.0), 10.0, magnet=np.array([1.5, 20.0]))
        _, down = make_pair((3.0, 0.0), 10.0, magnet=np.array([1.5, -20.0]))

        assert up.dir == RotationDirection.CW
        assert up.start[1] > 0
        assert down.dir == RotationDirection.CCW
        assert down.start[1] < 0

    def test_explicit_direction(self):
        """测试显式给出方向"""
        _, child = make_pair((3.0, 0.0), 10.0, direction=RotationDirection.CW)
        assert child.dir == RotationDirection.CW
        for arc in child.segments:
            assert arc.direction == RotationDirection.CW

    def test_mid_ted(self):
        """测试中点 TED"""
        _, child = make_pair((3.0, 0.0), 10.0)
        # 刀具 (13,0) r=10 与父壁面 r=20 的交点 x = 469/26
        assert np.isclose(child.mid_ted, 20.0 - (469.0 / 26.0 - 3.0))

    def test_max_ted(self):
        """测试最大 TED"""
        _, child = make_pair((3.0, 0.0), 10.0)
        assert child.entry_ted >= 0.0
        assert child.max_ted == max(child.mid_ted, child.entry_ted)
        assert 0.0 < child.max_ted < 2 * 10.0


class TestRefine:
    """圆弧裁剪测试"""

    CLEARANCE = 1.0

    @pytest.fixture
    def pair(self):
        """父 (0,0) r=10，子 (3,0) r=10，逆时针从下交点经 (13,0) 到上交点"""
        return make_pair((3.0, 0.0), 10.0)

    @staticmethod
    def snapshot(s):
        return [(a.p1.copy(), a.p2.copy()) for a in s.segments]

    def test_single_double_intersection(self, pair):
        """测试被一个相邻切片裁剪"""
        _, s = pair
        start, end = s.start.copy(), s.end.copy()
        neighbor = Slice(None, np.array([10.0, 0.0]), 5.0)

        s.refine([neighbor], self.CLEARANCE, 10.0)

        x = 166.0 / 14.0
        y = np.sqrt(25.0 - (x - 10.0) ** 2)
        np.testing.assert_allclose(s.start, start)
        np.testing.assert_allclose(s.end, end)
        np.testing.assert_allclose(s.segments[0].p2, [x, -y])
        np.testing.assert_allclose(s.segments[1].p1, [x, y])
        assert distance(s.segments[0].p2, s.segments[1].p1) >= 2 * self.CLEARANCE

    def test_clamped_to_end_clearance(self, pair):
        """测试越过安全弧的交点移到端部 clearance 处"""
        _, s = pair
        end = s.end.copy()
        neighbor = Slice(None, np.array([3.0, 12.0]), 5.0)

        s.refine([neighbor], self.CLEARANCE, 10.0)

        assert np.isclose(distance(s.segments[1].p1, end), self.CLEARANCE)
        np.testing.assert_allclose(s.segments[0].p2, [3.0 + np.sqrt(100.0 - 9.125**2), 9.125])

    def test_largest_sweep_wins(self, pair):
        """测试只应用去除最多的相邻切片"""
        _, s = pair
        small = Slice(None, np.array([3.0, 12.0]), 5.0)
        big = Slice(None, np.array([10.0, 0.0]), 5.0)

        s.refine([small, big], self.CLEARANCE, 10.0)

        x = 166.0 / 14.0
        np.testing.assert_allclose(s.segments[0].p2[0], x)
        np.testing.assert_allclose(s.segments[1].p1[0], x)

    def test_parent_ignored(self, pair):
        """测试父切片不参与裁剪"""
        parent, s = pair
        before = self.snapshot(s)
        s.refine([parent], self.CLEARANCE, 10.0)
        for (p1, p2), arc in zip(before, s.segments):
            np.testing.assert_array_equal(p1, arc.p1)
            np.testing.assert_array_equal(p2, arc.p2)

    def test_no_collision_unchanged(self, pair):
        """测试无碰撞时圆弧不变"""
        _, s = pair
        before = self.snapshot(s)
        s.refine([Slice(None, np.array([50.0, 0.0]), 5.0)], self.CLEARANCE, 10.0)
        for (p1, p2), arc in zip(before, s.segments):
            np.testing.assert_array_equal(p1, arc.p1)
            np.testing.assert_array_equal(p2, arc.p2)

    def test_small_circle_unchanged(self):
        """测试半径小于五边形下限的切片不裁剪"""
        s = Slice(None, np.array([0.0, 0.0]), 0.8)
        before = self.snapshot(s)
        s.refine([Slice(None, np.array([0.5, 0.0]), 0.8), s], self.CLEARANCE, 1.0)
        for (p1, p2), arc in zip(before, s.segments):
            np.testing.assert_array_equal(p1, arc.p1)
            np.testing.assert_array_equal(p2, arc.p2)

    def test_short_chord_unchanged(self, pair):
        """测试裁剪弦长小于 2×clearance 时圆弧不变"""
        _, s = pair
        before = self.snapshot(s)
        s.refine([Slice(None, np.array([13.0, 0.0]), 0.6)], self.CLEARANCE, 10.0)
        for (p1, p2), arc in zip(before, s.segments):
            np.testing.assert_array_equal(p1, arc.p1)
            np.testing.assert_array_equal(p2, arc.p2)

    @pytest.mark.parametrize(
        "center, radius",
        [((30.0, 0.0), 5.0), ((1.0, 0.0), 3.0)],
    )
    def test_not_normal_is_noop(self, center, radius):
        """测试 TOO_FAR / INSIDE_ANOTHER 切片的裁剪为空操作"""
        _, s = make_pair(center, radius)
        assert s.placement != SlicePlacement.NORMAL

        s.refine([Slice(None, np.array([10.0, 0.0]), 5.0)], self.CLEARANCE, 10.0)
        assert s.segments == []

    def test_refine_twice_fails(self, pair):
        """测试重复裁剪"""
        _, s = pair
        s.refine([Slice(None, np.array([10.0, 0.0]), 5.0)], self.CLEARANCE, 10.0)
        with pytest.raises(SliceContractError):
            s.refine([], self.CLEARANCE, 10.0)

    def test_collide_with_itself_fails(self, pair):
        """测试与自身碰撞"""
        _, s = pair
        with pytest.raises(SliceContractError):
            s.refine([s], self.CLEARANCE, 10.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
