"""
Tests for the brushes package - registry and the four brush kinds.

Randomized brushes are checked against statistical bounds, never exact pixels.
"""

import numpy as np
import pytest

from stealth_paint.brushes import (
    get_brush,
    get_brush_info,
    has_brush,
    list_all_brush_info,
    list_brushes,
    register_brush,
    render_stroke,
)
from stealth_paint.brushes.base import deposit_particles, disk_offsets, empty_alpha, over
from stealth_paint.brushes.brush import PaintBrush
from stealth_paint.brushes.drip import DripBrush
from stealth_paint.brushes.marker import MarkerBrush

from conftest import CANVAS_HEIGHT, CANVAS_WIDTH, make_stroke

W, H = CANVAS_WIDTH, CANVAS_HEIGHT
LINE = [(30, 75), (100, 80), (170, 75)]


def coverage(alpha: np.ndarray) -> int:
    return int(np.count_nonzero(alpha))


class TestRegistry:
    def test_builtin_brushes_registered(self):
        assert {"spray", "marker", "brush", "drip"} <= set(list_brushes())

    def test_unknown_brush_raises(self):
        with pytest.raises(ValueError):
            get_brush("airbrush")

    def test_brush_info(self):
        assert get_brush_info("marker")["deterministic"] is True
        assert get_brush_info("spray")["deterministic"] is False
        assert get_brush_info("spray")["description"]
        assert get_brush_info("airbrush") == {}

    def test_list_all_brush_info(self):
        names = {info["name"] for info in list_all_brush_info()}
        assert {"spray", "marker", "brush", "drip"} <= names

    def test_register_custom_brush(self):
        class StampBrush:
            name = "test_stamp"
            description = "fills everything"
            deterministic = True

            def render(self, stroke, width, height, rng):
                return np.ones((height, width), dtype=np.float32)

        register_brush(StampBrush())
        assert has_brush("test_stamp")
        alpha = render_stroke(make_stroke(LINE, brush_kind="test_stamp"), W, H)
        assert alpha.all()


class TestDegenerateStrokes:
    @pytest.mark.parametrize("kind", ["spray", "marker", "brush", "drip"])
    def test_empty_stroke_renders_nothing(self, kind, rng):
        alpha = get_brush(kind).render(make_stroke([], brush_kind=kind), W, H, rng)
        assert alpha.shape == (H, W)
        assert coverage(alpha) == 0

    @pytest.mark.parametrize("kind", ["spray", "marker", "brush", "drip"])
    def test_single_point_renders_nothing(self, kind, rng):
        alpha = get_brush(kind).render(make_stroke([(50, 50)], brush_kind=kind), W, H, rng)
        assert coverage(alpha) == 0

    @pytest.mark.parametrize("kind", ["spray", "marker", "brush", "drip"])
    def test_values_stay_in_unit_range(self, kind, rng):
        alpha = get_brush(kind).render(make_stroke(LINE, brush_kind=kind, size=12), W, H, rng)
        assert alpha.min() >= 0.0
        assert alpha.max() <= 1.0


class TestMarker:
    def test_deterministic_across_generators(self):
        stroke = make_stroke(LINE, brush_kind="marker")
        a = render_stroke(stroke, W, H, np.random.default_rng(1))
        b = render_stroke(stroke, W, H, np.random.default_rng(2))
        assert np.array_equal(a, b)

    def test_solid_at_full_opacity(self, rng):
        alpha = render_stroke(make_stroke([(20, 40), (180, 40)], brush_kind="marker"), W, H, rng)
        assert alpha[40, 100] == pytest.approx(1.0)
        assert alpha[100, 100] == 0.0

    def test_opacity_scales_alpha(self, rng):
        alpha = render_stroke(make_stroke([(20, 40), (180, 40)], opacity=0.5), W, H, rng)
        assert alpha[40, 100] == pytest.approx(0.5)

    def test_width_follows_size(self, rng):
        thin = render_stroke(make_stroke([(20, 40), (180, 40)], size=4), W, H, rng)
        thick = render_stroke(make_stroke([(20, 40), (180, 40)], size=16), W, H, rng)
        assert coverage(thick) > coverage(thin) * 2

    def test_corner_is_mitered(self, rng):
        stroke = make_stroke([(20, 20), (80, 20), (80, 80)], size=20)
        alpha = render_stroke(stroke, W, H, rng)
        assert alpha[12, 88] == pytest.approx(1.0)
        # Beyond the miter tip stays clean
        assert alpha[5, 95] == 0.0

    def test_collinear_points_need_no_join(self):
        assert MarkerBrush().miter_joins([(0, 0), (50, 0), (100, 0)], 5.0) == []

    def test_right_angle_gets_square_miter(self):
        wedges = MarkerBrush().miter_joins([(20, 20), (80, 20), (80, 80)], 10.0)
        assert len(wedges) == 1
        tip = wedges[0][2]
        assert tip == pytest.approx((90.0, 10.0))

    def test_hairpin_falls_back_to_bevel(self):
        wedges = MarkerBrush().miter_joins([(20, 50), (150, 50), (20, 55)], 5.0)
        assert len(wedges) == 1
        assert len(wedges[0]) == 3


class TestSpray:
    def test_seeded_generator_repeats(self):
        stroke = make_stroke(LINE, brush_kind="spray", size=15)
        a = render_stroke(stroke, W, H, np.random.default_rng(42))
        b = render_stroke(stroke, W, H, np.random.default_rng(42))
        assert np.array_equal(a, b)

    def test_fresh_seeds_differ_but_stay_statistically_close(self):
        stroke = make_stroke(LINE, brush_kind="spray", size=15)
        renders = [render_stroke(stroke, W, H, np.random.default_rng(seed)) for seed in range(5)]
        counts = [coverage(a) for a in renders]
        mean = sum(counts) / len(counts)

        assert not np.array_equal(renders[0], renders[1])
        assert mean > 0
        for count in counts:
            assert abs(count - mean) / mean < 0.15

    def test_translucent_particles(self, rng):
        alpha = render_stroke(make_stroke(LINE, brush_kind="spray", size=15), W, H, rng)
        painted = alpha[alpha > 0]
        # Individual particles are faint; only overlap builds density
        assert painted.min() < 0.2

    def test_center_denser_than_edge(self, rng):
        stroke = make_stroke([(20, 75), (180, 75)], brush_kind="spray", size=20)
        alpha = render_stroke(stroke, W, H, rng)
        center = alpha[73:78, 40:160].mean()
        edge = alpha[88:93, 40:160].mean()
        assert center > edge

    def test_density_adds_particles(self):
        sparse = make_stroke(LINE, brush_kind="spray", size=15, density=0.2)
        dense = make_stroke(LINE, brush_kind="spray", size=15, density=1.0)
        a = render_stroke(sparse, W, H, np.random.default_rng(3))
        b = render_stroke(dense, W, H, np.random.default_rng(3))
        assert b.sum() > a.sum()

    def test_zero_flow_leaves_no_paint(self, rng):
        stroke = make_stroke(LINE, brush_kind="spray", size=15, flow=0.0)
        assert coverage(render_stroke(stroke, W, H, rng)) == 0


class TestPaintBrush:
    def test_smooth_path_keeps_endpoints(self):
        stroke = make_stroke([(10, 10), (50, 80), (90, 20), (140, 60)], brush_kind="brush")
        path = PaintBrush().smooth_path(stroke)
        assert path[0] == (10, 10)
        assert path[-1] == (140, 60)
        assert len(path) > len(stroke.points)

    def test_two_points_is_straight_line(self):
        stroke = make_stroke([(10, 10), (90, 10)], brush_kind="brush")
        assert PaintBrush().smooth_path(stroke) == [(10, 10), (90, 10)]

    def test_line_alpha_is_reduced(self, rng):
        alpha = render_stroke(make_stroke([(20, 40), (180, 40)], brush_kind="brush", size=10), W, H, rng)
        assert 0.5 <= alpha[40, 100] <= 1.0
        assert alpha.max() < 1.0


class TestDrip:
    def test_dots_always_present(self, rng):
        alpha = render_stroke(make_stroke([(50, 50), (120, 50)], brush_kind="drip"), W, H, rng)
        assert alpha[50, 50] == pytest.approx(1.0)
        assert alpha[50, 120] == pytest.approx(1.0)

    def test_drips_run_downward(self, rng):
        stroke = make_stroke([(50, 50), (120, 50)], brush_kind="drip", size=10)
        always = DripBrush()
        always.drip_chance = 1.0
        never = DripBrush()
        never.drip_chance = 0.0

        assert always.render(stroke, W, H, rng)[57, 50] > 0
        assert never.render(stroke, W, H, rng)[57, 50] == 0
        # Nothing drips upward
        assert always.render(stroke, W, H, rng)[40, 50] == 0


class TestHelpers:
    def test_over_composites(self):
        a = np.full((2, 2), 0.5, dtype=np.float32)
        assert over(a, a)[0, 0] == pytest.approx(0.75)

    def test_disk_offsets_radius_zero_is_single_pixel(self):
        dx, dy = disk_offsets(0)
        assert list(dx) == [0] and list(dy) == [0]

    def test_disk_offsets_radius_one_is_plus_shape(self):
        dx, dy = disk_offsets(1)
        assert len(dx) == 5

    def test_deposit_accumulates_overlap(self):
        xs = np.array([5.0, 5.0])
        ys = np.array([5.0, 5.0])
        alpha = deposit_particles(10, 10, xs, ys, np.array([0.5, 0.5]), radius=0)
        assert alpha[5, 5] == pytest.approx(0.75)

    def test_deposit_clips_out_of_bounds(self):
        xs = np.array([-5.0, 50.0])
        ys = np.array([2.0, 2.0])
        alpha = deposit_particles(10, 10, xs, ys, np.array([0.5, 0.5]), radius=1)
        assert not alpha.any()

    def test_empty_alpha_shape(self):
        assert empty_alpha(7, 3).shape == (3, 7)
