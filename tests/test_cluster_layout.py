import numpy as np
import pytest
from sklearn.base import clone
from utils import identity_scale, make_records

from clusterpack import ClusterLayout, GroupingDescriptor, LayoutMethod, LinearScale

records = make_records([40, 3, 17, 1])
grouping = GroupingDescriptor(values=("g0", "g1", "g2", "g3"), name="group", color="steelblue")


def test_default_parameters():
    layout = ClusterLayout()
    assert layout.method == "bar"
    assert LayoutMethod(layout.method) == LayoutMethod.bar
    assert layout.radius_factor == 1.2
    assert layout.get_params()["spacing"] == 2.5


def test_invalid_method():
    layout = ClusterLayout(method="spiral")
    with pytest.raises(ValueError, match="Invalid layout method"):
        layout.fit_transform(grouping, records, identity_scale, 400, 300)
    with pytest.raises(ValueError, match="Invalid layout method"):
        layout.place([], 400, 300)


def test_parameters_are_stored_as_given():
    layout = ClusterLayout(method="force", timeout=5.0)
    assert type(layout.get_params()["method"]) is str
    cloned = clone(layout)
    assert cloned.get_params() == layout.get_params()
    assert cloned.method == "force"


def test_set_params():
    layout = ClusterLayout().set_params(point_radius=3.0)
    assert layout.point_radius == 3.0


def test_bar_layout():
    clusters = ClusterLayout().fit_transform(grouping, records, identity_scale, 400, 300)
    assert sorted(c.name for c in clusters) == ["g0", "g1", "g2", "g3"]
    assert sum(c.length for c in clusters) == len(records)
    assert all(c.x is not None and c.y is not None for c in clusters)


def test_bar_layout_is_deterministic():
    layout = ClusterLayout()
    first = layout.fit_transform(grouping, records, identity_scale, 400, 300)
    second = layout.fit_transform(grouping, records, identity_scale, 400, 300)
    assert [(c.x, c.y) for c in first] == [(c.x, c.y) for c in second]


def test_force_layout():
    layout = ClusterLayout(method="force", max_iterations=100, timeout=30)
    clusters = layout.fit_transform(grouping, records, LinearScale((0, 1), (0, 2)), 400, 300, verbose=True)
    assert [c.name for c in clusters] == ["g0", "g1", "g2", "g3"]
    for c in clusters:
        assert abs(c.x) <= 200 - 1.2 * c.radius + 1e-9
        assert abs(c.y) <= 150 - 1.2 * c.radius + 1e-9


def test_point_ids_are_unique():
    clusters = ClusterLayout().build(grouping, records, identity_scale)
    ids = np.array([p.id for c in clusters for p in c.points])
    assert len(np.unique(ids)) == len(ids)


def test_save_and_load(tmp_path):
    layout = ClusterLayout(method="force", spacing=3.0)
    path = tmp_path / "layout.pkl"
    layout.save(path)
    loaded = ClusterLayout.load(path)
    assert loaded.get_params() == layout.get_params()
