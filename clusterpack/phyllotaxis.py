import math
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from clusterpack.models import DataPoint

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2
IRRATIONAL_2 = 1 + math.sqrt(2)
IRRATIONAL_3 = (9 + math.sqrt(221)) / 10

DEFAULT_POINT_RADIUS = 2.0
DEFAULT_SPACING = 2.5
DEFAULT_THETA = 2 * math.pi / IRRATIONAL_2

RadiusScale = Callable[[float], float]


@dataclass(frozen=True)
class PhyllotaxisLayout:
    points: Tuple[DataPoint, ...]
    last_id: int

    @property
    def n_padding(self) -> int:
        return sum(1 for p in self.points if not p.draw)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def padding_count(n, scaled_spacing, scaled_radius_offset, point_radius=DEFAULT_POINT_RADIUS):
    """Number of padding points which ring a spiral of n points with the density of the spiral itself.

    An empty spiral gets no padding and a non-positive spacing between padding points gives no padding either.
    """
    if n <= 0:
        return 0
    denominator = 2 * point_radius + scaled_spacing
    if denominator <= 0:
        return 0
    final_radius = scaled_spacing * math.sqrt(n) + scaled_radius_offset
    return max(0, round_half_up(2 * math.pi * final_radius / denominator))


def spiral_coordinates(n_points, scaled_spacing, scaled_radius_offset, theta=DEFAULT_THETA):
    """Vectorized spiral positions: angle theta * i and radius scaled_spacing * sqrt(i) + scaled_radius_offset.

    Returns
    -------
        coordinates: A (n_points, 2) array with the x, y positions.
        radii: A (n_points, ) array with the distance of each position from the spiral center.
    """
    idx = np.arange(n_points, dtype=float)
    angles = theta * idx
    radii = scaled_spacing * np.sqrt(idx) + scaled_radius_offset
    coordinates = np.stack([np.cos(angles) * radii, np.sin(angles) * radii], axis=1)
    return coordinates.reshape(n_points, 2), radii


def layout_phyllotaxis(
    records: Sequence[Mapping[str, Any]],
    radius_scale: RadiusScale,
    last_id: int,
    point_radius: float = DEFAULT_POINT_RADIUS,
    radius_offset: Optional[float] = None,
    spacing: float = DEFAULT_SPACING,
    theta: float = DEFAULT_THETA,
) -> PhyllotaxisLayout:
    """Place the records of one cluster on a phyllotaxis spiral and ring it with padding points.

    Parameters
    ----------
    records: sequence of mappings
        The records of the cluster. Every record becomes a drawn point which carries a copy of the record.

    radius_scale: callable
        Monotonic function mapping an abstract radius unit to pixels.

    last_id: int
        The highest point id used so far. The points of this cluster get the ids last_id + 1, last_id + 2, ...

    point_radius: float (default 2)
        The radius of a single point in abstract units.

    radius_offset: float (default point_radius / 2)
        The radius of the first spiral position in abstract units.

    spacing: float (default 2.5)
        The spiral growth constant in abstract units.

    theta: float (default 2 pi / (1 + sqrt(2)))
        The angular increment between consecutive points.

    Returns
    -------
    PhyllotaxisLayout with the drawn points followed by the padding points and the new last id, which should be
    passed to the placement of the next cluster.
    """
    if last_id < -1:
        raise ValueError(f"The last used id must be at least -1, got {last_id}.")
    if radius_offset is None:
        radius_offset = point_radius / 2

    scaled_spacing = radius_scale(spacing)
    scaled_radius_offset = radius_scale(radius_offset)
    scaled_point_radius = radius_scale(point_radius)

    n = len(records)
    n_padding = padding_count(n, scaled_spacing, scaled_radius_offset, point_radius=point_radius)
    total = n + n_padding

    coordinates, _ = spiral_coordinates(total, scaled_spacing, scaled_radius_offset, theta=theta)

    points: List[DataPoint] = []
    for i in range(total):
        points.append(
            DataPoint(
                id=last_id + 1 + i,
                draw=i < n,
                x=float(coordinates[i, 0]),
                y=float(coordinates[i, 1]),
                r=float(scaled_point_radius),
                within_cluster_index=i,
                payload=records[i] if i < n else None,
            )
        )

    return PhyllotaxisLayout(points=tuple(points), last_id=last_id + total)
