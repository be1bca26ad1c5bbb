from clusterpack.bar_packer import RADIUS_FACTOR, assign_bars, layout_bar, summit_sort
from clusterpack.batch import batch_layout_clusters, partition_records
from clusterpack.force import ForceSimulation, SimulationNodes, clamp_to_canvas, layout_force
from clusterpack.layout import ClusterLayout, LayoutMethod
from clusterpack.models import Bar, Canvas, Cluster, DataPoint, GroupingDescriptor
from clusterpack.phyllotaxis import layout_phyllotaxis, padding_count
from clusterpack.scales import LinearScale, SqrtScale
from clusterpack.tessellation import Tessellation, layout_voronoi, tessellate
