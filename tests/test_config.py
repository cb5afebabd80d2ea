import json

import pytest

from config import FORCE_CONTROLS, FORCE_TITLES, ForceProperties, Settings, load_settings
from engine import LayoutEngine
from errors import ConfigurationError
from simulation import SolverState


class TestForceProperties:

    def test_defaults(self):
        p = ForceProperties()
        assert (p.center.x, p.center.y) == (0.5, 0.5)
        assert p.charge.strength == -30.0
        assert (p.charge.distance_min, p.charge.distance_max) == (1.0, 2000.0)
        assert (p.collide.strength, p.collide.radius, p.collide.iterations) == (0.7, 5.0, 1)
        assert not p.force_x.enabled and not p.force_y.enabled
        assert (p.link.distance, p.link.iterations) == (30.0, 1)

    def test_with_change_copies(self):
        p = ForceProperties()
        q = p.with_change("link", "distance", "45")
        assert q.link.distance == 45.0
        assert p.link.distance == 30.0

    def test_camel_case_aliases(self):
        q = ForceProperties().with_change("charge", "distanceMax", 500)
        assert q.charge.distance_max == 500.0
        q = q.with_change("forceY", "enabled", "true")
        assert q.force_y.enabled is True

    def test_int_fields_stay_int(self):
        q = ForceProperties().with_change("collide", "iterations", 3.0)
        assert q.collide.iterations == 3
        assert isinstance(q.collide.iterations, int)

    @pytest.mark.parametrize("force,name,value", [
        ("collide", "radius", -1),
        ("charge", "distanceMin", 5000),
        ("link", "iterations", 0),
        ("center", "x", 1.5),
        ("charge", "strength", "strong"),
        ("charge", "strength", float("nan")),
        ("link", "stiffness", 1),
        ("gravity", "strength", 1),
        ("link", "iterations", float("inf")),
        ("collide", "iterations", "Infinity"),
    ])
    def test_rejects_bad_changes(self, force, name, value):
        with pytest.raises(ConfigurationError):
            ForceProperties().with_change(force, name, value)

    def test_dict_round_trip(self):
        p = ForceProperties().with_change("collide", "radius", 8)
        assert ForceProperties.from_dict(p.to_dict()) == p

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigurationError):
            ForceProperties.from_dict({"charge": {"theta": 0.9}})


class TestLoadSettings:

    def test_no_file_gives_defaults(self):
        assert load_settings(None) == Settings()

    def test_reads_sections(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "forces": {"charge": {"strength": -80, "distanceMax": 400}, "forceX": {"enabled": True}},
            "simulation": {"seed": 3, "velocity_decay": 0.5},
            "viewer": {"tick_interval_ms": 33},
        }), encoding="utf-8")
        s = load_settings(path)
        assert s.forces.charge.strength == -80.0
        assert s.forces.charge.distance_max == 400.0
        assert s.forces.force_x.enabled
        assert s.simulation.seed == 3
        assert s.simulation.velocity_decay == 0.5
        assert s.viewer.tick_interval_ms == 33
        assert s.viewer.dataset_path == "newdata.json"

    @pytest.mark.parametrize("payload", [
        {"physics": {}},
        {"viewer": {"fps": 60}},
        {"simulation": []},
        ["forces"],
    ])
    def test_rejects_unknown_content(self, tmp_path, payload):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_settings(path)

    def test_unreadable(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(tmp_path / "missing.json")

    def test_infinite_iterations_in_file(self, tmp_path):
        path = tmp_path / "settings.json"
        # json.dumps writes the bare Infinity token that json.load accepts
        path.write_text(json.dumps({"forces": {"link": {"iterations": float("inf")}}}), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_settings(path)

    def test_numeric_strings_are_converted(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "simulation": {"velocity_decay": "0.5", "seed": "4"},
            "viewer": {"tick_interval_ms": "20", "dataset_path": "graph.json"},
        }), encoding="utf-8")
        s = load_settings(path)
        assert s.simulation.velocity_decay == 0.5
        assert s.simulation.seed == 4
        assert s.viewer.tick_interval_ms == 20
        assert s.viewer.dataset_path == "graph.json"

    @pytest.mark.parametrize("section", [
        {"simulation": {"velocity_decay": "fast"}},
        {"simulation": {"alpha_target": 0.5}},
        {"simulation": {"release_alpha_target": 0.01}},
        {"simulation": {"alpha_decay": 0}},
        {"simulation": {"alpha_decay": 1.5}},
        {"simulation": {"velocity_decay": 1.2}},
        {"viewer": {"tick_interval_ms": 0}},
        {"viewer": {"width": -10}},
    ])
    def test_rejects_invalid_sections(self, tmp_path, section):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps(section), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_settings(path)


class TestSimulationSettings:

    def test_string_decay_runs_and_settles(self, tmp_path, raw):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"simulation": {"velocity_decay": "0.4", "seed": 1}}), encoding="utf-8")
        engine = LayoutEngine.create(raw, settings=load_settings(path))
        engine.simulation.run(1000)
        assert engine.state is SolverState.SETTLED
        engine.dispose()


class TestForceControls:

    def test_every_control_names_a_parameter(self):
        p = ForceProperties()
        for force, controls in FORCE_CONTROLS.items():
            assert force in FORCE_TITLES
            for name, _, kind, lo, hi, _ in controls:
                value = getattr(p.record(force), name)
                if kind != "bool":
                    assert lo <= value <= hi
