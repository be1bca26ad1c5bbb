import asyncio
import math
import threading
from typing import Callable, List, Optional, Sequence

import numpy as np

from clusterpack.bar_packer import RADIUS_FACTOR
from clusterpack.models import Canvas, Cluster, radii_of

RunSimulation = Callable[["SimulationNodes", Callable[[], None], Callable[[], None]], None]


class SimulationNodes:
    """State shared between a simulation engine and the resolver driving it.

    positions: (k, 2) array updated in place by the engine and clamped in place on every tick.
    velocities: (k, 2) array owned by the engine.
    radii: (k, ) array of collision radii.
    stop_requested: set by the resolver when it stops waiting, engines should end as soon as they see it.
    """

    def __init__(self, positions: np.ndarray, radii: np.ndarray):
        self.positions = np.asarray(positions, float).reshape(-1, 2).copy()
        self.velocities = np.zeros_like(self.positions)
        self.radii = np.asarray(radii, float).copy()
        self.stop_requested = threading.Event()

    def __len__(self):
        return len(self.positions)


def clamp_to_canvas(positions, radii, width, height, factor=RADIUS_FACTOR):
    """Keep every inflated circle inside the canvas centered at (0, 0).

    Follows max(-w / 2 + R, min(w / 2 - R, x)) with R = radius * factor, so a circle larger than the canvas ends up
    on its lower bound.
    """
    min_x, min_y, max_x, max_y = Canvas(width, height).bounds
    positions = np.asarray(positions, float).reshape(-1, 2)
    inflated = np.asarray(radii, float) * factor
    x = np.maximum(min_x + inflated, np.minimum(max_x - inflated, positions[:, 0]))
    y = np.maximum(min_y + inflated, np.minimum(max_y - inflated, positions[:, 1]))
    return np.stack([x, y], axis=1)


def phyllotaxis_seed(n, initial_radius=10.0):
    idx = np.arange(n, dtype=float)
    radius = initial_radius * np.sqrt(0.5 + idx)
    angle = idx * math.pi * (3 - math.sqrt(5))
    return np.stack([radius * np.cos(angle), radius * np.sin(angle)], axis=1).reshape(n, 2)


class ForceSimulation:
    """
    Cooling force simulation which pulls the nodes to the origin and pushes overlapping nodes apart.

    Parameters
    ----------
    alpha: float (default 1.0)
        The initial temperature. Every tick scales the forces with the current alpha.

    alpha_min: float (default 0.001)
        The simulation ends once alpha drops below this value.

    alpha_decay: Optional[float] (default None)
        The per tick cooling rate. None picks 1 - alpha_min ** (1 / 300), i.e. about 300 ticks.

    velocity_decay: float (default 0.4)
        The fraction of the velocity lost on every tick.

    center_strength: float (default 0.05)
        Strength of the x and y pull towards the origin.

    collide_strength: float (default 0.7)
        Fraction of an overlap resolved per tick.

    max_iterations: int (default 300)
        Upper bound on the number of ticks, whatever the temperature.
    """

    def __init__(
        self,
        alpha: float = 1.0,
        alpha_min: float = 0.001,
        alpha_decay: Optional[float] = None,
        alpha_target: float = 0.0,
        velocity_decay: float = 0.4,
        center_strength: float = 0.05,
        collide_strength: float = 0.7,
        max_iterations: int = 300,
    ):
        self.alpha = alpha
        self.alpha_min = alpha_min
        self.alpha_decay = 1 - alpha_min ** (1 / 300) if alpha_decay is None else alpha_decay
        self.alpha_target = alpha_target
        self.velocity_decay = velocity_decay
        self.center_strength = center_strength
        self.collide_strength = collide_strength
        self.max_iterations = max_iterations

    def _center(self, nodes: SimulationNodes, alpha: float):
        nodes.velocities -= nodes.positions * self.center_strength * alpha

    def _collide(self, nodes: SimulationNodes):
        n = len(nodes)
        if n <= 1:
            return
        r = nodes.radii
        iu, ju = np.triu_indices(n, k=1)
        predicted = nodes.positions + nodes.velocities
        dvec = predicted[iu] - predicted[ju]
        dist = np.linalg.norm(dvec, axis=1)
        need = (r[iu] + r[ju]) - dist
        mask = need > 0
        if not np.any(mask):
            return

        im, jm = iu[mask], ju[mask]
        dvm, distm, needm = dvec[mask], dist[mask], need[mask]

        u = np.zeros_like(dvm)
        nz = distm >= 1e-12
        u[nz] = dvm[nz] / distm[nz][:, None]
        if np.any(~nz):  # coincident fallback
            u[~nz, 0] = 1.0

        # Heavier (larger) nodes move less.
        ri2, rj2 = r[im] ** 2, r[jm] ** 2
        total = ri2 + rj2 + 1e-12
        step = (needm * self.collide_strength)[:, None] * u
        np.add.at(nodes.velocities, im, step * (rj2 / total)[:, None])
        np.add.at(nodes.velocities, jm, -step * (ri2 / total)[:, None])

    def tick(self, nodes: SimulationNodes, alpha: float):
        self._center(nodes, alpha)
        self._collide(nodes)
        nodes.velocities *= 1 - self.velocity_decay
        nodes.positions += nodes.velocities

    def __call__(self, nodes: SimulationNodes, on_tick: Callable[[], None], on_end: Callable[[], None]):
        unset = np.any(~np.isfinite(nodes.positions), axis=1)
        if np.any(unset):
            nodes.positions[unset] = phyllotaxis_seed(len(nodes))[unset]

        alpha = self.alpha
        for _ in range(self.max_iterations):
            if alpha < self.alpha_min or nodes.stop_requested.is_set():
                break
            alpha += (self.alpha_target - alpha) * self.alpha_decay
            self.tick(nodes, alpha)
            on_tick()
        on_end()


async def _until_end(done: asyncio.Future, worker: asyncio.Future):
    await asyncio.wait({done, worker}, return_when=asyncio.FIRST_COMPLETED)
    if not done.done() and worker.done() and worker.exception() is not None:
        raise worker.exception()
    return await done


async def layout_force(
    clusters: Sequence[Cluster],
    width: float,
    height: float,
    factor: float = RADIUS_FACTOR,
    simulation: Optional[RunSimulation] = None,
    timeout: Optional[float] = None,
    verbose: bool = False,
) -> List[Cluster]:
    """
    Place the clusters with an iterative simulation while keeping every inflated cluster inside the canvas.

    The simulation runs in a worker thread and resolves exactly once, when the engine calls its end notification.
    Every call owns its copy of the positions; running two calls on the same clusters concurrently is the caller's
    responsibility and which one finishes first is undefined.

    Parameters
    ----------
    clusters: sequence of Cluster
        The clusters to place. Clusters with x/y set start from there, the others are seeded by the engine.

    width, height: float
        The size of the canvas, which is centered at (0, 0).

    factor: float (default 1.2)
        Inflation of the cluster radii for collisions and for the boundary clamp.

    simulation: Optional[callable] (default ForceSimulation())
        Engine called as simulation(nodes, on_tick, on_end). It must call on_end exactly once.

    timeout: Optional[float] (default None)
        Seconds to wait for the engine. On expiry the engine is asked to stop and asyncio.TimeoutError is raised.

    verbose: bool (default False)
        If true, print progress messages.

    Returns
    -------
    New clusters with x, y set, in the input order.
    """
    clusters = list(clusters)
    if not clusters:
        return []

    simulation = ForceSimulation() if simulation is None else simulation
    radii = radii_of(clusters)
    start = np.array(
        [[np.nan if c.x is None else c.x, np.nan if c.y is None else c.y] for c in clusters], float
    )
    nodes = SimulationNodes(start, radii * factor)
    ticks = []

    loop = asyncio.get_running_loop()
    done = loop.create_future()

    def resolve(snapshot):
        if not done.done():
            done.set_result(snapshot)

    def on_tick():
        nodes.positions[:] = clamp_to_canvas(nodes.positions, radii, width, height, factor)
        ticks.append(1)

    def on_end():
        loop.call_soon_threadsafe(resolve, nodes.positions.copy())

    if verbose:
        print(f"Running the force layout of {len(clusters)} clusters on a {width}x{height} canvas...")
    worker = loop.run_in_executor(None, simulation, nodes, on_tick, on_end)
    try:
        final = await asyncio.wait_for(_until_end(done, worker), timeout)
    except asyncio.TimeoutError:
        nodes.stop_requested.set()
        if verbose:
            print(f"[INFO]: The force layout did not end within {timeout} seconds, stopping it.")
        raise

    if verbose:
        print(f"Force layout ended after {len(ticks)} ticks.")

    # Unset or non-finite positions fall back to the canvas center before the final clamp.
    final = np.where(np.isfinite(final), final, 0.0)
    final = clamp_to_canvas(final, radii, width, height, factor)
    return [c.moved_to(x, y) for c, (x, y) in zip(clusters, final)]
