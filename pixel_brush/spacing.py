import math

Point = tuple[float, float]

# at or below this spacing the accumulator path under-stamps short segments
CONTINUOUS_SPACING = 0.5


def calculate_spacing(size: float, spacing_percent: float) -> float:
    return max(0.1, size * spacing_percent / 100)


def schedule(last: Point, new: Point, spacing: float, accumulated: float,
             size: float) -> tuple[list[Point], float]:
    """Stamp positions between two smoothed points.

    Returns the stamp points and the new distance accumulated since the
    last stamp.
    """
    x0, y0 = last
    x1, y1 = new
    dx = x1 - x0
    dy = y1 - y0
    dist = math.hypot(dx, dy)
    if dist == 0:
        return [], accumulated

    accumulated += dist
    if accumulated >= spacing:
        steps = math.ceil(accumulated / spacing)
        points = [(x0 + dx * i / steps, y0 + dy * i / steps)
                  for i in range(1, steps + 1)]
        return points, 0.0

    if spacing <= CONTINUOUS_SPACING:
        steps = max(1, math.ceil(dist / max(1.0, size / 3)))
        points = [(x0 + dx * i / steps, y0 + dy * i / steps)
                  for i in range(steps + 1)]
        return points, accumulated

    return [], accumulated
