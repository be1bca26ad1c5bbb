from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from clusterpack.cool_functions import cool_max_abs_extent
from clusterpack.models import Cluster, GroupingDescriptor
from clusterpack.phyllotaxis import (
    DEFAULT_POINT_RADIUS,
    DEFAULT_SPACING,
    DEFAULT_THETA,
    RadiusScale,
    layout_phyllotaxis,
)
from clusterpack.tessellation import layout_voronoi


def partition_records(
    records: Sequence[Mapping[str, Any]], field: str, values: Sequence[Any]
) -> List[List[Mapping[str, Any]]]:
    """Split the records by the value of field, one subset per value and in the order of values. Records with a value
    outside of values are dropped."""
    subsets: Dict[Any, List[Mapping[str, Any]]] = {v: [] for v in values}
    for record in records:
        value = record.get(field)
        if value in subsets:
            subsets[value].append(record)
    return [subsets[v] for v in values]


def initial_last_id(records: Sequence[Mapping[str, Any]], id_field: str = "id") -> int:
    """The largest record id when every record has one, otherwise -1 so that point ids start at 0."""
    if not records or any(r.get(id_field) is None for r in records):
        return -1
    ids = [int(r[id_field]) for r in records]
    if min(ids) < 0:
        raise ValueError(f"Record ids must be non-negative, found {min(ids)}.")
    return max(ids)


def batch_layout_clusters(
    grouping: GroupingDescriptor,
    records: Sequence[Mapping[str, Any]],
    radius_scale: RadiusScale,
    last_id: Optional[int] = None,
    point_radius: float = DEFAULT_POINT_RADIUS,
    radius_offset: Optional[float] = None,
    spacing: float = DEFAULT_SPACING,
    theta: float = DEFAULT_THETA,
    id_field: str = "id",
    verbose: bool = False,
) -> List[Cluster]:
    """
    Lay out every group of records as a phyllotaxis cluster with its Voronoi cells.

    Parameters
    ----------
    grouping: GroupingDescriptor
        The ordered group values, the record field holding them and the color of the clusters.

    records: sequence of mappings
        The flat list of records to partition.

    radius_scale: callable
        Monotonic function mapping abstract radius units to pixels.

    last_id: Optional[int] (default None)
        The id after which point ids are assigned. When None, it is derived from the id_field of the records.

    verbose: bool (default False)
        If true, print progress messages.

    Returns
    -------
    A list with one Cluster per group value, in the order of the grouping descriptor. Point ids are unique and
    increasing across the whole list.
    """
    if last_id is None:
        last_id = initial_last_id(records, id_field=id_field)
    elif last_id < -1:
        raise ValueError(f"The initial last id must be at least -1, got {last_id}.")

    values = grouping.values
    if verbose:
        print(f"Laying out {len(records)} records in {len(values)} clusters by '{grouping.name}'...")

    point_sets = []
    for subset in partition_records(records, grouping.name, values):
        placed = layout_phyllotaxis(
            subset,
            radius_scale,
            last_id,
            point_radius=point_radius,
            radius_offset=radius_offset,
            spacing=spacing,
            theta=theta,
        )
        last_id = placed.last_id
        point_sets.append(placed.points)

    if not point_sets:
        return []

    # Cluster extents over the whole batch at once.
    coordinates = np.array([[p.x, p.y] for points in point_sets for p in points], float).reshape(-1, 2)
    partition = np.concatenate([np.full(len(points), i, dtype=int) for i, points in enumerate(point_sets)])
    drawn = np.array([p.draw for points in point_sets for p in points], bool)
    radii = cool_max_abs_extent(coordinates, partition, mask=drawn, n_classes=len(point_sets))
    outer_radii = cool_max_abs_extent(coordinates, partition, n_classes=len(point_sets))

    clusters = []
    for i, points in enumerate(point_sets):
        cluster = Cluster(
            id=i,
            name=values[i],
            color=grouping.color,
            radius=float(radii[i]),
            outer_radius=float(outer_radii[i]),
            points=points,
            length=sum(1 for p in points if p.draw),
        )
        clusters.append(layout_voronoi(cluster))
        if verbose:
            print(
                f"Cluster {values[i]!r}: {cluster.length} points, {len(points) - cluster.length} padding, "
                f"radius {cluster.radius:.2f}, outer radius {cluster.outer_radius:.2f}."
            )

    return clusters
