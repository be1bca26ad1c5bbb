import copy
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np


def _frozen_payload(record: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(copy.deepcopy(dict(record)) if record else {})


@dataclass(frozen=True)
class DataPoint:
    """A single positioned point of a cluster.

    Real points (``draw=True``) carry a read-only copy of the original record in ``payload``. Padding points
    (``draw=False``) only exist to bound the tessellation and carry an empty payload.
    """

    id: int
    draw: bool
    x: float
    y: float
    r: float
    within_cluster_index: int
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not isinstance(self.payload, MappingProxyType):
            object.__setattr__(self, "payload", _frozen_payload(self.payload))


@dataclass(frozen=True)
class GroupingDescriptor:
    values: Tuple[Any, ...]
    name: str
    color: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))
        if len(set(self.values)) != len(self.values):
            raise ValueError(
                f"The grouping values of '{self.name}' must be unique, got {list(self.values)}."
            )


@dataclass(frozen=True)
class Cluster:
    """One group of records laid out as a phyllotaxis spiral.

    ``radius`` is the largest absolute x/y coordinate over the drawn points and ``outer_radius`` the same over all
    points, padding included. ``x`` and ``y`` stay ``None`` until one of the placement steps positions the cluster on
    the canvas.
    """

    id: int
    name: Any
    color: Optional[str]
    radius: float
    outer_radius: float
    points: Tuple[DataPoint, ...]
    length: int
    tessellation: Any = field(default=None, compare=False, repr=False)
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def positions(self) -> np.ndarray:
        if not self.points:
            return np.zeros((0, 2), float)
        return np.array([[p.x, p.y] for p in self.points], float)

    @property
    def drawn_points(self) -> Iterator[DataPoint]:
        return (p for p in self.points if p.draw)

    @property
    def cell_paths(self) -> List[str]:
        if self.tessellation is None:
            return []
        return [self.tessellation.render_cell(i) for i in range(len(self.points))]

    def moved_to(self, x: float, y: float) -> "Cluster":
        return replace(self, x=float(x), y=float(y))


@dataclass(frozen=True)
class Bar:
    id: int
    clusters: Tuple[Cluster, ...] = ()
    occupied_width: float = 0.0
    max_height: float = 0.0
    y: Optional[float] = None

    def with_cluster(self, cluster: Cluster, diameter: float) -> "Bar":
        return replace(
            self,
            clusters=self.clusters + (cluster,),
            occupied_width=self.occupied_width + diameter,
            max_height=max(self.max_height, diameter),
        )


@dataclass(frozen=True)
class Canvas:
    width: float
    height: float

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return -self.width / 2, -self.height / 2, self.width / 2, self.height / 2


def radii_of(clusters: Sequence[Cluster]) -> np.ndarray:
    return np.array([c.radius for c in clusters], float)
