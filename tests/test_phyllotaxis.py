import math
import unittest

import numpy as np
from utils import identity_scale

from clusterpack import LinearScale, layout_phyllotaxis, padding_count
from clusterpack.phyllotaxis import DEFAULT_THETA, IRRATIONAL_2, round_half_up


class TestPhyllotaxis(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.records = [{"id": i, "name": f"record {i}"} for i in range(10)]
        cls.layout = layout_phyllotaxis(cls.records, identity_scale, last_id=41)

    def test_padding_count_formula(self):
        for n in [1, 2, 7, 50, 333]:
            expected = round_half_up(2 * math.pi * (2.5 * math.sqrt(n) + 1.0) / (2 * 2.0 + 2.5))
            self.assertEqual(expected, padding_count(n, 2.5, 1.0, point_radius=2.0))

    def test_padding_count_of_ten_points(self):
        self.assertEqual(9, padding_count(10, 2.5, 1.0))

    def test_total_number_of_points(self):
        points = self.layout.points
        self.assertEqual(10 + 9, len(points))
        self.assertEqual(9, self.layout.n_padding)

    def test_drawn_points_come_first(self):
        flags = [p.draw for p in self.layout.points]
        self.assertEqual([True] * 10 + [False] * 9, flags)

    def test_ids_continue_from_last_id(self):
        ids = [p.id for p in self.layout.points]
        self.assertEqual(list(range(42, 42 + 19)), ids)
        self.assertEqual(41 + 19, self.layout.last_id)

    def test_spiral_positions(self):
        for i, point in enumerate(self.layout.points):
            radius = 2.5 * math.sqrt(i) + 1.0
            self.assertAlmostEqual(radius * math.cos(DEFAULT_THETA * i), point.x)
            self.assertAlmostEqual(radius * math.sin(DEFAULT_THETA * i), point.y)
            self.assertEqual(i, point.within_cluster_index)
            self.assertEqual(2.0, point.r)

    def test_radius_grows_monotonically(self):
        radii = np.hypot([p.x for p in self.layout.points], [p.y for p in self.layout.points])
        self.assertTrue(np.all(np.diff(radii) >= 0))

    def test_payload_is_a_read_only_copy(self):
        records = [{"id": 3, "name": "a"}]
        layout = layout_phyllotaxis(records, identity_scale, last_id=3)
        records[0]["name"] = "changed"

        payload = layout.points[0].payload
        self.assertEqual("a", payload["name"])
        with self.assertRaises(TypeError):
            payload["name"] = "b"

    def test_nested_payload_values_are_copied(self):
        records = [{"id": 0, "tags": ["x"], "meta": {"k": 1}}]
        layout = layout_phyllotaxis(records, identity_scale, last_id=0)
        records[0]["tags"].append("y")
        records[0]["meta"]["k"] = 2

        payload = layout.points[0].payload
        self.assertEqual(["x"], payload["tags"])
        self.assertEqual({"k": 1}, payload["meta"])

    def test_padding_points_have_no_payload(self):
        self.assertTrue(all(len(p.payload) == 0 for p in self.layout.points if not p.draw))

    def test_empty_cluster(self):
        layout = layout_phyllotaxis([], identity_scale, last_id=5)
        self.assertEqual((), layout.points)
        self.assertEqual(5, layout.last_id)

    def test_scale_is_applied(self):
        scale = LinearScale(domain=(0, 1), range=(0, 2))
        scaled = layout_phyllotaxis(self.records, scale, last_id=41)
        unscaled_first = self.layout.points[1]
        scaled_first = scaled.points[1]
        self.assertAlmostEqual(2 * unscaled_first.x, scaled_first.x)
        self.assertAlmostEqual(2 * unscaled_first.y, scaled_first.y)
        self.assertEqual(4.0, scaled_first.r)
        # the padding denominator mixes the raw point radius with the scaled spacing
        self.assertEqual(padding_count(10, 5.0, 2.0, point_radius=2.0), scaled.n_padding)

    def test_non_positive_denominator_gives_no_padding(self):
        self.assertEqual(0, padding_count(10, -4.0, 1.0, point_radius=2.0))

    def test_invalid_last_id(self):
        with self.assertRaises(ValueError):
            layout_phyllotaxis(self.records, identity_scale, last_id=-2)


def test_default_theta():
    assert DEFAULT_THETA == 2 * math.pi / IRRATIONAL_2


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
