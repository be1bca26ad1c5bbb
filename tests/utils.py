from typing import List, Sequence

import numpy as np

from clusterpack import Cluster


def identity_scale(value):
    return value


def make_records(counts: Sequence[int], field: str = "group", values: Sequence[str] = None) -> List[dict]:
    """Records with ids 0, 1, ... where the i-th group value appears counts[i] times, interleaved."""
    values = [f"g{i}" for i in range(len(counts))] if values is None else list(values)
    remaining = list(counts)
    records = []
    while any(remaining):
        for i, value in enumerate(values):
            if remaining[i] > 0:
                records.append({"id": len(records), field: value, "score": 10 * len(records)})
                remaining[i] -= 1
    return records


def make_cluster(cluster_id: int, radius: float, name: str = None) -> Cluster:
    return Cluster(
        id=cluster_id,
        name=f"c{cluster_id}" if name is None else name,
        color=None,
        radius=radius,
        outer_radius=radius,
        points=(),
        length=0,
    )


def polygon_area(vertices: np.ndarray) -> float:
    if len(vertices) < 3:
        return 0.0
    x, y = vertices[:, 0], vertices[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))
