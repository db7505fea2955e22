import math

import pytest

from pixel_brush.spacing import calculate_spacing, schedule


class TestCalculateSpacing:
    def test_percent_of_size(self):
        assert calculate_spacing(20, 25) == 5

    def test_has_floor(self):
        assert calculate_spacing(1, 1) == 0.1
        assert calculate_spacing(10, 0) == 0.1


class TestSchedule:
    def test_straight_segment_from_rest(self):
        points, acc = schedule((0, 0), (50, 0), 5, 0.0, 20)
        assert len(points) == 10
        assert points[0] == pytest.approx((5, 0))
        assert points[-1] == pytest.approx((50, 0))
        assert acc == 0.0

    @pytest.mark.parametrize("length", [5, 12.5, 37, 100])
    def test_stamp_count_covers_length(self, length):
        points, _ = schedule((0, 0), (0, length), 5, 0.0, 20)
        assert len(points) == math.ceil(length / 5)

    def test_evenly_spaced(self):
        points, _ = schedule((0, 0), (30, 40), 10, 0.0, 40)
        steps = [math.dist(a, b) for a, b in zip(points, points[1:])]
        assert steps == pytest.approx([10] * len(steps))

    def test_short_segments_accumulate(self):
        points, acc = schedule((0, 0), (3, 0), 5, 0.0, 20)
        assert points == []
        assert acc == 3

        points, acc = schedule((3, 0), (6, 0), 5, acc, 20)
        assert points == pytest.approx([(4.5, 0), (6, 0)])
        assert acc == 0.0

    def test_zero_length_segment_is_noop(self):
        assert schedule((7, 7), (7, 7), 5, 3.0, 20) == ([], 3.0)
        assert schedule((7, 7), (7, 7), 0.2, 0.1, 1) == ([], 0.1)

    def test_small_spacing_stamps_continuously(self):
        points, acc = schedule((0, 0), (0.2, 0), 0.4, 0.0, 1.6)
        assert points == pytest.approx([(0, 0), (0.2, 0)])
        # the accumulator keeps growing until it reaches the spacing
        assert acc == pytest.approx(0.2)

        points, acc = schedule((0.2, 0), (0.5, 0), 0.4, acc, 1.6)
        assert len(points) == 2
        assert acc == 0.0
