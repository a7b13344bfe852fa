"""Raster primitives over square palette-index grids.

Grids are ``list[list[int]]`` indexed ``[y][x]``. Every write goes through
``set_pixel``, which silently ignores out-of-bounds coordinates, so shapes
may be partly off-canvas.
"""

Grid = list[list[int]]

_NEIGHBORS = ((-1, 0), (1, 0), (0, -1), (0, 1))


def create_grid(size: int) -> Grid:
    return [[0] * size for _ in range(size)]


def has_visible_pixels(pixels: Grid) -> bool:
    return any(px != 0 for row in pixels for px in row)


def set_pixel(pixels: Grid, x: int, y: int, color: int) -> None:
    if 0 <= y < len(pixels) and 0 <= x < len(pixels[y]):
        pixels[y][x] = color


def _inside_ellipse(x: int, y: int, cx: int, cy: int, rx: int, ry: int) -> bool:
    nx = (x - cx) / max(1, rx)
    ny = (y - cy) / max(1, ry)
    return nx * nx + ny * ny <= 1


def draw_ellipse(
    pixels: Grid, cx: int, cy: int, rx: int, ry: int, color: int
) -> None:
    """Filled axis-aligned ellipse."""
    for y in range(cy - ry - 1, cy + ry + 2):
        for x in range(cx - rx - 1, cx + rx + 2):
            if _inside_ellipse(x, y, cx, cy, rx, ry):
                set_pixel(pixels, x, y, color)


def draw_shadow_half(
    pixels: Grid, cx: int, cy: int, rx: int, ry: int, color: int, side: int
) -> None:
    """Checkerboard shading over the half of an ellipse on ``side`` (-1 or 1)."""
    for y in range(cy - ry - 1, cy + ry + 2):
        for x in range(cx - rx - 1, cx + rx + 2):
            if (
                _inside_ellipse(x, y, cx, cy, rx, ry)
                and (x - cx) * side > 0
                and (x + y) % 2 == 0
            ):
                set_pixel(pixels, x, y, color)


def draw_rect(
    pixels: Grid, x: int, y: int, width: int, height: int, color: int
) -> None:
    """Filled rectangle; negative width/height extend left/up from (x, y)."""
    x_step = 1 if width >= 0 else -1
    y_step = 1 if height >= 0 else -1
    for dy in range(abs(height)):
        for dx in range(abs(width)):
            set_pixel(pixels, x + dx * x_step, y + dy * y_step, color)


def draw_line(
    pixels: Grid, x0: int, y0: int, x1: int, y1: int, color: int
) -> None:
    """Bresenham line, endpoints inclusive."""
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    step_x = 1 if x0 < x1 else -1
    step_y = 1 if y0 < y1 else -1
    error = dx - dy
    x, y = x0, y0

    while True:
        set_pixel(pixels, x, y, color)
        if x == x1 and y == y1:
            break
        twice = error * 2
        if twice > -dy:
            error -= dy
            x += step_x
        if twice < dx:
            error += dx
            y += step_y


def apply_outline(pixels: Grid, outline_color: int) -> Grid:
    """One round of 4-neighbor dilation into a copy of the grid."""
    height = len(pixels)
    width = len(pixels[0]) if pixels else 0
    result = [row[:] for row in pixels]

    for y in range(height):
        for x in range(width):
            if pixels[y][x] == 0:
                continue
            for dx, dy in _NEIGHBORS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < width and 0 <= ny < height):
                    continue
                if pixels[ny][nx] == 0 and result[ny][nx] == 0:
                    result[ny][nx] = outline_color
    return result
