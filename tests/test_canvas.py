"""Tests for raster primitives and the far-side trim pass."""

import pytest

from pixelkin.pixel.bodies import trim_far_side
from pixelkin.pixel.canvas import (
    apply_outline,
    create_grid,
    draw_ellipse,
    draw_line,
    draw_rect,
    has_visible_pixels,
    set_pixel,
)

INK = 4
OUTLINE = 1


def _lit(pixels):
    return {(x, y) for y, row in enumerate(pixels) for x, px in enumerate(row) if px}


def _row_with_span(size, y, start, end):
    pixels = create_grid(size)
    for x in range(start, end + 1):
        pixels[y][x] = INK
    return pixels


class TestPrimitives:
    def test_set_pixel_ignores_out_of_bounds(self):
        pixels = create_grid(4)
        set_pixel(pixels, -1, 0, INK)
        set_pixel(pixels, 4, 2, INK)
        set_pixel(pixels, 1, 9, INK)
        assert not has_visible_pixels(pixels)
        set_pixel(pixels, 3, 3, INK)
        assert _lit(pixels) == {(3, 3)}

    def test_bresenham_line_endpoints_inclusive(self):
        pixels = create_grid(5)
        draw_line(pixels, 0, 0, 4, 2, INK)
        assert _lit(pixels) == {(0, 0), (1, 0), (2, 1), (3, 1), (4, 2)}

    def test_line_clipped_to_canvas(self):
        pixels = create_grid(5)
        draw_line(pixels, -2, 1, 6, 1, INK)
        assert _lit(pixels) == {(x, 1) for x in range(5)}

    def test_single_point_line(self):
        pixels = create_grid(3)
        draw_line(pixels, 1, 1, 1, 1, INK)
        assert _lit(pixels) == {(1, 1)}

    def test_filled_ellipse(self):
        pixels = create_grid(9)
        draw_ellipse(pixels, 4, 4, 2, 1, INK)
        assert _lit(pixels) == {(x, 4) for x in range(2, 7)} | {(4, 3), (4, 5)}

    def test_rect(self):
        pixels = create_grid(6)
        draw_rect(pixels, 1, 1, 3, 2, INK)
        assert _lit(pixels) == {(x, y) for x in (1, 2, 3) for y in (1, 2)}

    def test_rect_with_negative_extent(self):
        pixels = create_grid(6)
        draw_rect(pixels, 4, 4, -2, -2, INK)
        assert _lit(pixels) == {(3, 3), (3, 4), (4, 3), (4, 4)}


class TestApplyOutline:
    """One round of 4-neighbour dilation, written into a copy."""

    def test_single_pixel_gains_four_neighbours(self):
        pixels = create_grid(5)
        pixels[2][2] = INK
        result = apply_outline(pixels, OUTLINE)

        assert result[2][2] == INK
        assert {(x, y) for x, y in _lit(result) if result[y][x] == OUTLINE} == {
            (1, 2),
            (3, 2),
            (2, 1),
            (2, 3),
        }
        assert result[1][1] == 0
        assert _lit(pixels) == {(2, 2)}

    def test_only_one_round(self):
        pixels = create_grid(7)
        pixels[3][3] = INK
        result = apply_outline(pixels, OUTLINE)
        assert result[3][1] == 0
        assert len(_lit(result)) == 5

    def test_edges_are_not_wrapped(self):
        pixels = create_grid(4)
        pixels[0][0] = INK
        result = apply_outline(pixels, OUTLINE)
        assert _lit(result) == {(0, 0), (1, 0), (0, 1)}


class TestTrimFarSide:
    """Rows spanning at least 6 px lose a 1-3 px band on the far edge."""

    def test_left_facing_trims_right_edge(self):
        pixels = _row_with_span(16, 4, 2, 10)
        trim_far_side(pixels, 6, 4, 6, 1, facing=-1, depth=2)
        assert _lit(pixels) == {(x, 4) for x in range(2, 9)}

    def test_right_facing_trims_left_edge(self):
        pixels = _row_with_span(16, 4, 2, 10)
        trim_far_side(pixels, 6, 4, 6, 1, facing=1, depth=2)
        assert _lit(pixels) == {(x, 4) for x in range(4, 11)}

    def test_narrow_span_untouched(self):
        pixels = _row_with_span(16, 4, 2, 7)
        trim_far_side(pixels, 6, 4, 6, 1, facing=-1, depth=3)
        assert _lit(pixels) == {(x, 4) for x in range(2, 8)}

    def test_span_of_six_is_trimmed(self):
        pixels = _row_with_span(16, 4, 2, 8)
        trim_far_side(pixels, 6, 4, 6, 1, facing=-1, depth=1)
        assert _lit(pixels) == {(x, 4) for x in range(2, 8)}

    @pytest.mark.parametrize("depth,kept_end", [(0, 10), (1, 9), (3, 7), (9, 7)])
    def test_depth_clamped_to_three(self, depth, kept_end):
        pixels = _row_with_span(16, 4, 2, 10)
        trim_far_side(pixels, 6, 4, 6, 1, facing=-1, depth=depth)
        assert _lit(pixels) == {(x, 4) for x in range(2, kept_end + 1)}

    def test_rows_outside_ellipse_band_untouched(self):
        pixels = _row_with_span(16, 12, 2, 10)
        trim_far_side(pixels, 6, 4, 6, 1, facing=-1, depth=2)
        assert _lit(pixels) == {(x, 12) for x in range(2, 11)}
