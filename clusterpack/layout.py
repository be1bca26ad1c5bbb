import asyncio
import pickle
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence

from sklearn.base import BaseEstimator

from clusterpack.bar_packer import RADIUS_FACTOR, SymmetricOrder, layout_bar
from clusterpack.batch import batch_layout_clusters
from clusterpack.force import ForceSimulation, layout_force
from clusterpack.models import Cluster, GroupingDescriptor
from clusterpack.phyllotaxis import DEFAULT_POINT_RADIUS, DEFAULT_SPACING, DEFAULT_THETA, RadiusScale


class LayoutMethod(str, Enum):
    bar = "bar"
    force = "force"


class ClusterLayout(BaseEstimator):
    """Phyllotaxis layout of grouped records, with the clusters placed on a canvas.

     Parameters
     ----------
     point_radius: float (default 2)
         The radius of a single point in abstract radius units.

     radius_offset: Optional[float] (default None)
         The radius of the first spiral position. None uses half of point_radius.

     spacing: float (default 2.5)
         The spiral growth constant. Positions lie at spacing * sqrt(i) + radius_offset from the cluster center.

     theta: float (default 2 pi / (1 + sqrt(2)))
         The angle between consecutive spiral positions.

     radius_factor: float (default 1.2)
         Inflation of the cluster radii which keeps clear space around the clusters on the canvas.

     method: str (default 'bar')
         How clusters are placed on the canvas. 'bar' packs them deterministically in rows, 'force' runs a force
         simulation which keeps every cluster inside the canvas.

     max_iterations: int (default 300)
         Upper bound of simulation ticks for the 'force' method.

     timeout: Optional[float] (default None)
         Seconds to wait for the 'force' method before giving up with asyncio.TimeoutError.

     order: Optional[callable] (default None)
         Arrangement of the clusters inside a bar for the 'bar' method. None uses the peak ordering summit_sort.
    """

    def __init__(
        self,
        point_radius: float = DEFAULT_POINT_RADIUS,
        radius_offset: Optional[float] = None,
        spacing: float = DEFAULT_SPACING,
        theta: float = DEFAULT_THETA,
        radius_factor: float = RADIUS_FACTOR,
        method: str = "bar",
        max_iterations: int = 300,
        timeout: Optional[float] = None,
        order: Optional[SymmetricOrder] = None,
    ):
        self.point_radius = point_radius
        self.radius_offset = radius_offset
        self.spacing = spacing
        self.theta = theta
        self.radius_factor = radius_factor
        self.method = method
        self.max_iterations = max_iterations
        self.timeout = timeout
        self.order = order

    def build(
        self,
        grouping: GroupingDescriptor,
        records: Sequence[Mapping[str, Any]],
        radius_scale: RadiusScale,
        verbose: bool = False,
    ) -> List[Cluster]:
        return batch_layout_clusters(
            grouping,
            records,
            radius_scale,
            point_radius=self.point_radius,
            radius_offset=self.radius_offset,
            spacing=self.spacing,
            theta=self.theta,
            verbose=verbose,
        )

    def _layout_method(self) -> LayoutMethod:
        try:
            return LayoutMethod(self.method)
        except ValueError:
            raise ValueError(
                f"Invalid layout method: {self.method}. "
                f'Please select one from: {", ".join(m.value for m in LayoutMethod)}.'
            )

    def place(self, clusters: Sequence[Cluster], width: float, height: float, verbose: bool = False) -> List[Cluster]:
        if self._layout_method() == LayoutMethod.bar:
            return layout_bar(clusters, width, height, factor=self.radius_factor, order=self.order, verbose=verbose)

        simulation = ForceSimulation(max_iterations=self.max_iterations)
        return asyncio.run(
            layout_force(
                clusters,
                width,
                height,
                factor=self.radius_factor,
                simulation=simulation,
                timeout=self.timeout,
                verbose=verbose,
            )
        )

    def fit_transform(
        self,
        grouping: GroupingDescriptor,
        records: Sequence[Mapping[str, Any]],
        radius_scale: RadiusScale,
        width: float,
        height: float,
        verbose: bool = False,
    ) -> List[Cluster]:
        """
        Build the clusters of the records and place them on a canvas of the given size.

        Parameters
        ----------
        grouping: GroupingDescriptor
            The group values, the record field holding them and the cluster color.

        records: sequence of mappings
            The records to lay out.

        radius_scale: callable
            Monotonic function from abstract radius units to pixels, e.g. a LinearScale.

        width, height: float
            The canvas size. The output is centered at (0, 0).

        verbose: bool (default False)
            If true, print info and progress messages.
        """
        method = self._layout_method()
        clusters = self.build(grouping, records, radius_scale, verbose=verbose)
        if verbose:
            print(f"Placing {len(clusters)} clusters with the {method.value} layout...")
        return self.place(clusters, width, height, verbose=verbose)

    def save(self, path):
        with open(path, "wb") as f:
            pickle.dump(self, f, pickle.HIGHEST_PROTOCOL)

    @staticmethod
    def load(path):
        with open(path, "rb") as f:
            return pickle.load(f)
