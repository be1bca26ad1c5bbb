from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import Delaunay, QhullError, Voronoi
from shapely.geometry import Polygon, box
from shapely.geometry.polygon import orient

from clusterpack.models import Cluster

Bounds = Tuple[float, float, float, float]


class Tessellation:
    """Voronoi cells of a point set clipped to a rectangle, one cell per input point and in input order.

    Attributes
    ----------
    points: (n, 2) array
        The generators of the cells.

    bounds: (min_x, min_y, max_x, max_y)
        The clipping rectangle.

    cells: list of (k, 2) arrays
        The counter-clockwise boundary of every cell, without repeating the first vertex. Empty cells, e.g. of
        coincident duplicates, have shape (0, 2).

    delaunay: Optional[scipy.spatial.Delaunay]
        The triangulation the cells were derived from. None for point sets which cannot be triangulated, i.e. fewer
        than three distinct or only collinear points.
    """

    def __init__(self, points: np.ndarray, bounds: Bounds, cells: List[np.ndarray], delaunay: Optional[Delaunay]):
        self.points = points
        self.bounds = bounds
        self.cells = cells
        self.delaunay = delaunay

    def __len__(self):
        return len(self.cells)

    def cell_boundary(self, index: int) -> np.ndarray:
        return self.cells[index]

    def render_cell(self, index: int) -> str:
        """SVG path of a cell, e.g. 'M0.0,1.0L1.0,0.0L0.0,0.0Z'. Empty cells render to an empty string."""
        cell = self.cells[index]
        if len(cell) == 0:
            return ""
        return "M" + "L".join(f"{float(x)!r},{float(y)!r}" for x, y in cell) + "Z"

    def find(self, x: float, y: float) -> int:
        """Index of the cell containing (x, y), i.e. of its nearest generator. -1 when there are no points."""
        if len(self.points) == 0:
            return -1
        d2 = np.sum((self.points - np.array([x, y], float)) ** 2, axis=1)
        return int(np.argmin(d2))


def _polygon_to_array(geometry) -> np.ndarray:
    if geometry.is_empty or not isinstance(geometry, Polygon) or geometry.area <= 0:
        return np.zeros((0, 2), float)
    coords = np.asarray(orient(geometry, 1.0).exterior.coords, float)[:-1]
    # Cocircular generators repeat Voronoi vertices.
    eps = 1e-9 * max(1.0, float(np.max(np.abs(coords))))
    keep = np.linalg.norm(coords - np.roll(coords, -1, axis=0), axis=1) > eps
    return coords[keep]


def _is_full_dimensional(points: np.ndarray, tol: float = 1e-12) -> bool:
    if len(points) < 3:
        return False
    centered = points - points[0]
    scale = max(float(np.max(np.abs(centered))), 1.0)
    return np.linalg.matrix_rank(centered / scale, tol=tol) == 2


def _sentinels(points: np.ndarray, bounds: Bounds) -> np.ndarray:
    lo = np.minimum(points.min(axis=0), bounds[:2])
    hi = np.maximum(points.max(axis=0), bounds[2:])
    center = (lo + hi) / 2
    margin = 10.0 * max(float(np.max(hi - lo)), 1.0)
    offsets = np.array([[-1, -1], [1, -1], [1, 1], [-1, 1]], float) * margin
    return center + offsets


def _voronoi_cells(points: np.ndarray, clip: Polygon, bounds: Bounds) -> List[np.ndarray]:
    # Far sentinels close every region of the real points without changing them inside the bounds.
    vor = Voronoi(np.vstack([points, _sentinels(points, bounds)]))
    cells = []
    for i in range(len(points)):
        region = vor.regions[vor.point_region[i]]
        if len(region) < 3 or -1 in region:
            cells.append(np.zeros((0, 2), float))
            continue
        vertices = vor.vertices[region]
        mean = vertices.mean(axis=0)
        order = np.argsort(np.arctan2(vertices[:, 1] - mean[1], vertices[:, 0] - mean[0]))
        cells.append(_polygon_to_array(Polygon(vertices[order]).intersection(clip)))
    return cells


def _half_plane(p: np.ndarray, q: np.ndarray, size: float) -> Polygon:
    """Large square-ish polygon covering the half plane of locations closer to p than to q."""
    mid = (p + q) / 2
    normal = (q - p) / np.linalg.norm(q - p)
    tangent = np.array([-normal[1], normal[0]])
    return Polygon(
        [
            mid + tangent * size,
            mid - tangent * size,
            mid - tangent * size - normal * size,
            mid + tangent * size - normal * size,
        ]
    )


def _half_plane_cells(points: np.ndarray, clip: Polygon, bounds: Bounds) -> List[np.ndarray]:
    size = 4.0 * float(np.max(np.abs(_sentinels(points, bounds))))
    cells = []
    for i, p in enumerate(points):
        cell = clip
        for j, q in enumerate(points):
            if i == j:
                continue
            cell = cell.intersection(_half_plane(p, q, size))
            if cell.is_empty:
                break
        cells.append(_polygon_to_array(cell))
    return cells


def tessellate(points: Sequence[Sequence[float]], bounds: Bounds) -> Tessellation:
    """Delaunay triangulation and clipped Voronoi cells of a 2D point set.

    Never raises on degenerate input: zero points give zero cells, a single point owns the whole bounds and collinear
    point sets get the strips between the bisectors. Coincident points after the first occurrence get an empty cell.
    """
    points = np.asarray(points, float).reshape(-1, 2)
    bounds = tuple(float(b) for b in bounds)
    n = len(points)
    if n == 0:
        return Tessellation(points, bounds, [], None)

    unique, first_idx, inverse = np.unique(points, axis=0, return_index=True, return_inverse=True)
    inverse = np.asarray(inverse).reshape(-1)
    # Keep the generators in order of first appearance.
    order = np.argsort(first_idx)
    unique = unique[order]
    first_idx = first_idx[order]
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    inverse = rank[inverse]

    clip = box(*bounds)
    delaunay, unique_cells = None, None
    if _is_full_dimensional(unique):
        try:
            delaunay = Delaunay(unique)
            unique_cells = _voronoi_cells(unique, clip, bounds)
        except QhullError:
            delaunay, unique_cells = None, None
    if unique_cells is None:
        unique_cells = _half_plane_cells(unique, clip, bounds)

    cells = []
    for i in range(n):
        u = inverse[i]
        cells.append(unique_cells[u] if first_idx[u] == i else np.zeros((0, 2), float))

    return Tessellation(points, bounds, cells, delaunay)


def layout_voronoi(cluster: Cluster) -> Cluster:
    """Attach the cell diagram of all points of a cluster, clipped to the square of its outer radius."""
    r = cluster.outer_radius
    return replace(cluster, tessellation=tessellate(cluster.positions, (-r, -r, r, r)))
