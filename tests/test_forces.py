import random

import pytest

import graphstore
from config import ForceProperties
from errors import ConfigurationError
from forces import (FORCE_ORDER, CollideForce, ForceRegistry, LinkForce, ManyBodyForce)
from node import ATTRIBUTES, Node
from utils_geom import phyllotaxis

VIEWPORT = (960.0, 600.0)


def make_node(node_id, x, y, index=0):
    node = Node(node_id, {a: "x" for a in ATTRIBUTES}, index=index)
    node.x, node.y = x, y
    return node


def placed(raw):
    data = graphstore.load(raw)
    for i, n in enumerate(data.nodes):
        n.x, n.y = phyllotaxis(i, 480.0, 300.0)
    return data


def velocities(nodes):
    return [(n.vx, n.vy) for n in nodes]


class TestRegistry:

    def test_forces_run_in_fixed_order(self, raw):
        data = placed(raw)
        registry = ForceRegistry(data.nodes, data.edges, random.Random(1))
        registry.apply(ForceProperties(), VIEWPORT)
        assert tuple(f.name for f in registry.forces()) == FORCE_ORDER

    def test_apply_is_idempotent(self, raw):
        props = ForceProperties()
        once_data, twice_data = placed(raw), placed(raw)

        once = ForceRegistry(once_data.nodes, once_data.edges, random.Random(1))
        once.apply(props, VIEWPORT)
        twice = ForceRegistry(twice_data.nodes, twice_data.edges, random.Random(1))
        twice.apply(props, VIEWPORT)
        twice.apply(props, VIEWPORT)

        assert once.describe() == twice.describe()
        once.run(0.5)
        twice.run(0.5)
        assert velocities(once_data.nodes) == velocities(twice_data.nodes)

    def test_disabled_link_has_no_springs(self, raw):
        data = placed(raw)
        registry = ForceRegistry(data.nodes, data.edges)
        props = ForceProperties().with_change("link", "enabled", False)
        registry.apply(props, VIEWPORT)
        assert len(registry.effective_edges) == 0
        assert data.edge_count == 6
        assert registry.force("link").describe()["links"] == 0

    def test_enabled_flag_scales_strength(self, raw):
        data = placed(raw)
        registry = ForceRegistry(data.nodes, data.edges)
        registry.apply(ForceProperties(), VIEWPORT)
        assert registry.force("charge").strength == -30.0
        assert registry.force("force_x").strength == 0.0

        props = ForceProperties().with_change("charge", "enabled", False).with_change("forceX", "enabled", True)
        registry.apply(props, VIEWPORT)
        assert registry.force("charge").strength == 0.0
        assert registry.force("force_x").strength == pytest.approx(0.1)

    def test_fractions_resolve_against_viewport(self, raw):
        data = placed(raw)
        registry = ForceRegistry(data.nodes, data.edges)
        props = ForceProperties().with_change("force_y", "y", 0.25)
        registry.apply(props, (1000.0, 400.0))
        assert registry.force("center").describe() == {"x": 500.0, "y": 200.0}
        assert registry.force("force_x").target == 500.0
        assert registry.force("force_y").target == 100.0
        assert registry.viewport == (1000.0, 400.0)

    def test_invalid_properties_leave_forces_untouched(self, raw):
        data = placed(raw)
        registry = ForceRegistry(data.nodes, data.edges)
        registry.apply(ForceProperties(), VIEWPORT)
        before = registry.describe()
        bad = ForceProperties()
        bad.collide.radius = -1.0
        with pytest.raises(ConfigurationError):
            registry.apply(bad, VIEWPORT)
        assert registry.describe() == before
        assert registry.properties == ForceProperties()


class TestLinkForce:

    def test_degree_weighting(self, raw):
        data = placed(raw)
        link = LinkForce(data.edges, 30.0, 1)
        link.initialize(data.nodes, random.Random(1))
        # node 1 has degree 3, node 2 has degree 2
        assert link._strengths[0] == pytest.approx(0.5)
        assert link._bias[0] == pytest.approx(0.6)

    def test_stretched_spring_pulls_together(self):
        data = graphstore.load({
            "nodes": [{"id": i, **{k: "x" for k in ATTRIBUTES}} for i in (1, 2)],
            "links": [{"source": 1, "target": 2}],
        })
        source, target = data.nodes
        source.x, source.y = 0.0, 0.0
        target.x, target.y = 100.0, 0.0
        link = LinkForce(data.edges, 30.0, 1)
        link.initialize(data.nodes, random.Random(1))
        link(1.0)
        # (100 - 30) / 100 * alpha, split evenly between two leaves
        assert source.vx == pytest.approx(35.0)
        assert target.vx == pytest.approx(-35.0)


class TestManyBody:

    def test_repulsion_is_symmetric(self):
        a, b = make_node(1, 0.0, 0.0, 0), make_node(2, 10.0, 0.0, 1)
        force = ManyBodyForce(-30.0, 1.0, 2000.0)
        force.initialize([a, b], random.Random(1))
        force(1.0)
        assert a.vx < 0 < b.vx
        assert a.vx == pytest.approx(-b.vx)

    def test_beyond_distance_max_is_ignored(self):
        a, b = make_node(1, 0.0, 0.0, 0), make_node(2, 500.0, 0.0, 1)
        force = ManyBodyForce(-30.0, 1.0, 100.0)
        force.initialize([a, b], random.Random(1))
        force(1.0)
        assert (a.vx, b.vx) == (0.0, 0.0)

    def test_coincident_nodes_stay_finite(self):
        a, b = make_node(1, 5.0, 5.0, 0), make_node(2, 5.0, 5.0, 1)
        force = ManyBodyForce(-30.0, 1.0, 2000.0)
        force.initialize([a, b], random.Random(3))
        force(1.0)
        for n in (a, b):
            assert abs(n.vx) < 1e6 and abs(n.vy) < 1e6
            assert n.vx == n.vx


class TestCollide:

    def test_overlapping_nodes_are_pushed_apart(self):
        a, b = make_node(1, 0.0, 0.0, 0), make_node(2, 4.0, 0.0, 1)
        force = CollideForce(5.0, 0.7, 1)
        force.initialize([a, b], random.Random(1))
        force(1.0)
        assert a.vx < 0 < b.vx

    def test_separated_nodes_untouched(self):
        a, b = make_node(1, 0.0, 0.0, 0), make_node(2, 40.0, 0.0, 1)
        force = CollideForce(5.0, 0.7, 1)
        force.initialize([a, b], random.Random(1))
        force(1.0)
        assert (a.vx, b.vx) == (0.0, 0.0)
