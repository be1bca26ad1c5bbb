from collections import deque
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from clusterpack.models import Bar, Canvas, Cluster

RADIUS_FACTOR = 1.2

SymmetricOrder = Callable[[Sequence[Cluster]], List[Cluster]]


def summit_sort(items: Sequence[Cluster], key: Callable[[Cluster], float] = lambda c: c.radius) -> List[Cluster]:
    """Peak arrangement: the largest item in the middle and sizes falling off towards both ends.

    Items are taken by descending key (ties keep their input order) and placed alternately to the right and to the
    left of the ones placed so far, starting with the right side.
    """
    ranked = sorted(enumerate(items), key=lambda t: (-key(t[1]), t[0]))
    arranged = deque()
    for rank, (_, item) in enumerate(ranked):
        if rank % 2 == 0:
            arranged.append(item)
        else:
            arranged.appendleft(item)
    return list(arranged)


def assign_bars(clusters: Sequence[Cluster], width: float, factor: float = RADIUS_FACTOR) -> List[Bar]:
    """Greedy first-fit of the clusters, largest first, into rows of the given width.

    A cluster wider than the full width still gets placed, alone in its own bar. When the largest cluster does not
    fit the width, the initial bar is closed empty; it takes part in the vertical spacing but holds no clusters.
    """
    ranked = sorted(clusters, key=lambda c: -c.radius)
    bars: List[Bar] = []
    bar = Bar(id=0)
    for cluster in ranked:
        diameter = 2 * cluster.radius * factor
        if width - bar.occupied_width < diameter:
            bars.append(bar)
            bar = Bar(id=bar.id + 1)
        bar = bar.with_cluster(cluster, diameter)
    if bar.clusters:
        bars.append(bar)
    return bars


def _space_horizontally(bar: Bar, width: float, factor: float, order: SymmetricOrder) -> Bar:
    arranged = order(list(bar.clusters))
    if sorted(c.id for c in arranged) != sorted(c.id for c in bar.clusters):
        raise ValueError("The symmetric order must return a permutation of the clusters of a bar.")

    x_spacing = (width - sum(2 * c.radius * factor for c in arranged)) / (len(arranged) + 1)
    x = 0.0
    spaced = []
    for i, cluster in enumerate(arranged):
        if i == 0:
            x += x_spacing + cluster.radius * factor
        else:
            x += (arranged[i - 1].radius + cluster.radius) * factor + x_spacing
        spaced.append(replace(cluster, x=x))
    return replace(bar, clusters=tuple(spaced))


def _space_vertically(bars: Sequence[Bar], height: float) -> List[Bar]:
    y_spacing = (height - sum(b.max_height for b in bars)) / (len(bars) + 1)
    y = 0.0
    placed = []
    for i, bar in enumerate(bars):
        if i == 0:
            y += y_spacing + bar.max_height / 2
        else:
            y += (bars[i - 1].max_height + bar.max_height) / 2 + y_spacing
        placed.append(replace(bar, y=y))
    return placed


def layout_bars(
    clusters: Sequence[Cluster],
    width: float,
    height: float,
    factor: float = RADIUS_FACTOR,
    order: Optional[SymmetricOrder] = None,
) -> List[Bar]:
    """Bars with their y offset and clusters with their bar-local x offset, both measured from the top-left corner."""
    order = summit_sort if order is None else order
    bars = [_space_horizontally(bar, width, factor, order) for bar in assign_bars(clusters, width, factor)]
    return _space_vertically(bars, height)


def layout_bar(
    clusters: Sequence[Cluster],
    width: float,
    height: float,
    factor: float = RADIUS_FACTOR,
    order: Optional[SymmetricOrder] = None,
    verbose: bool = False,
) -> List[Cluster]:
    """
    Deterministic placement of the clusters in horizontal bars centered on the canvas.

    Parameters
    ----------
    clusters: sequence of Cluster
        The clusters to place. Only their radius is used.

    width, height: float
        The size of the canvas, which is centered at (0, 0).

    factor: float (default 1.2)
        Inflation of the cluster radii which keeps clear space around every cluster.

    order: Optional[callable] (default summit_sort)
        Rearranges the clusters inside a bar. Must return a permutation of its input.

    verbose: bool (default False)
        If true, print the resulting bar structure.

    Returns
    -------
    New clusters with x, y set, ordered bar by bar and left to right within a bar.
    """
    bars = layout_bars(clusters, width, height, factor=factor, order=order)
    if verbose:
        for bar in bars:
            print(
                f"Bar {bar.id}: {len(bar.clusters)} clusters, occupied width {bar.occupied_width:.2f}, "
                f"height {bar.max_height:.2f}."
            )
            if len(bar.clusters) == 1 and bar.occupied_width > width:
                print(f"[INFO]: Cluster {bar.clusters[0].name!r} is wider than the canvas ({width}).")

    min_x, min_y, _, _ = Canvas(width, height).bounds
    return [c.moved_to(min_x + c.x, min_y + bar.y) for bar in bars for c in bar.clusters]
