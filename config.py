# config.py
"""
Force parameter set and runtime settings.

Defaults are the values the browser viewer ships with.
"""

import json
import logging
import math
from dataclasses import dataclass, field, fields, asdict, replace
from typing import Any, Dict, Optional

from errors import ConfigurationError

logger = logging.getLogger(__name__)

FORCE_NAMES = ("center", "charge", "collide", "force_x", "force_y", "link")

# camelCase keys accepted from JSON settings written for the web viewer
_ALIASES = {
    "distanceMin": "distance_min",
    "distanceMax": "distance_max",
    "forceX": "force_x",
    "forceY": "force_y",
}


@dataclass
class CenterProperties:
    x: float = 0.5
    y: float = 0.5


@dataclass
class ChargeProperties:
    enabled: bool = True
    strength: float = -30.0
    distance_min: float = 1.0
    distance_max: float = 2000.0


@dataclass
class CollideProperties:
    enabled: bool = True
    strength: float = 0.7
    iterations: int = 1
    radius: float = 5.0


@dataclass
class AxisXProperties:
    enabled: bool = False
    strength: float = 0.1
    x: float = 0.5


@dataclass
class AxisYProperties:
    enabled: bool = False
    strength: float = 0.1
    y: float = 0.5


@dataclass
class LinkProperties:
    enabled: bool = True
    distance: float = 30.0
    iterations: int = 1


@dataclass
class ForceProperties:
    center: CenterProperties = field(default_factory=CenterProperties)
    charge: ChargeProperties = field(default_factory=ChargeProperties)
    collide: CollideProperties = field(default_factory=CollideProperties)
    force_x: AxisXProperties = field(default_factory=AxisXProperties)
    force_y: AxisYProperties = field(default_factory=AxisYProperties)
    link: LinkProperties = field(default_factory=LinkProperties)

    def record(self, force: str):
        force = _ALIASES.get(force, force)
        if force not in FORCE_NAMES:
            raise ConfigurationError(f"Unknown force {force!r}.")
        return getattr(self, force)

    def with_change(self, force: str, name: str, value) -> "ForceProperties":
        """Copy with one field changed; the original is left untouched."""
        rec = self.record(force)
        name = _ALIASES.get(name, name)
        if name not in {f.name for f in fields(rec)}:
            raise ConfigurationError(f"Force {force!r} has no parameter {name!r}.")
        new = self.copy()
        setattr(new, _ALIASES.get(force, force), replace(rec, **{name: _coerce(rec, name, value)}))
        new.validate()
        return new

    def copy(self) -> "ForceProperties":
        return ForceProperties.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ForceProperties":
        props = cls()
        for force, values in (data or {}).items():
            rec = props.record(force)
            if not isinstance(values, dict):
                raise ConfigurationError(f"Parameters for {force!r} must be an object.")
            known = {f.name for f in fields(rec)}
            changes = {}
            for key, value in values.items():
                key = _ALIASES.get(key, key)
                if key not in known:
                    raise ConfigurationError(f"Force {force!r} has no parameter {key!r}.")
                changes[key] = _coerce(rec, key, value)
            setattr(props, _ALIASES.get(force, force), replace(rec, **changes))
        props.validate()
        return props

    def validate(self) -> None:
        c = self.charge
        if c.distance_min < 0 or c.distance_max < c.distance_min:
            raise ConfigurationError("charge: need 0 <= distance_min <= distance_max.")
        if self.collide.radius < 0:
            raise ConfigurationError("collide: radius must be >= 0.")
        if self.collide.iterations < 1 or self.link.iterations < 1:
            raise ConfigurationError("iterations must be >= 1.")
        if self.link.distance < 0:
            raise ConfigurationError("link: distance must be >= 0.")
        for name, value in (("center.x", self.center.x), ("center.y", self.center.y),
                            ("force_x.x", self.force_x.x), ("force_y.y", self.force_y.y)):
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} is a viewport fraction and must be in [0, 1].")


# Editor metadata shared by the desktop and browser viewers
# force -> (parameter, label, kind, minimum, maximum, step)
FORCE_CONTROLS = {
    "center": [
        ("x", "x", "float", 0.0, 1.0, 0.01),
        ("y", "y", "float", 0.0, 1.0, 0.01),
    ],
    "charge": [
        ("enabled", "enabled", "bool", None, None, None),
        ("strength", "strength", "float", -200.0, 50.0, 1.0),
        ("distance_min", "distanceMin", "float", 0.0, 50.0, 0.1),
        ("distance_max", "distanceMax", "float", 0.0, 2000.0, 1.0),
    ],
    "collide": [
        ("enabled", "enabled", "bool", None, None, None),
        ("strength", "strength", "float", 0.0, 2.0, 0.1),
        ("radius", "radius", "float", 0.0, 100.0, 1.0),
        ("iterations", "iterations", "int", 1, 10, 1),
    ],
    "force_x": [
        ("enabled", "enabled", "bool", None, None, None),
        ("strength", "strength", "float", 0.0, 1.0, 0.01),
        ("x", "x", "float", 0.0, 1.0, 0.01),
    ],
    "force_y": [
        ("enabled", "enabled", "bool", None, None, None),
        ("strength", "strength", "float", 0.0, 1.0, 0.01),
        ("y", "y", "float", 0.0, 1.0, 0.01),
    ],
    "link": [
        ("enabled", "enabled", "bool", None, None, None),
        ("distance", "distance", "float", 0.0, 100.0, 1.0),
        ("iterations", "iterations", "int", 1, 10, 1),
    ],
}

FORCE_TITLES = {
    "center": "Center", "charge": "Charge", "collide": "Collide",
    "force_x": "Force X", "force_y": "Force Y", "link": "Link",
}


# seed defaults to None and takes an int
_INT_KINDS = (int, type(None))


def _coerce(rec, name: str, value):
    kind = type(getattr(rec, name))
    if kind is str:
        return str(value)
    if value is None and kind is type(None):
        return None
    try:
        if kind is bool:
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if kind in _INT_KINDS and isinstance(value, int) and not isinstance(value, bool):
            return value
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ConfigurationError(f"{name}: cannot use {value!r}.") from None
    if not math.isfinite(out):
        raise ConfigurationError(f"{name}: {value!r} is not finite.")
    if kind in _INT_KINDS:
        return int(out)
    return out


@dataclass
class SimulationConfig:
    alpha_min: float = 0.001
    alpha_decay: float = 1.0 - math.pow(0.001, 1.0 / 300.0)
    alpha_target: float = 0.0
    velocity_decay: float = 0.4
    drag_alpha_target: float = 0.3
    release_alpha_target: float = 0.0001
    seed: Optional[int] = None

    def validate(self) -> None:
        if self.alpha_min <= 0:
            raise ConfigurationError("simulation: alpha_min must be > 0.")
        if not 0.0 < self.alpha_decay < 1.0:
            raise ConfigurationError("simulation: alpha_decay must be in (0, 1).")
        if not 0.0 <= self.velocity_decay <= 1.0:
            raise ConfigurationError("simulation: velocity_decay must be in [0, 1].")
        # A resting target at or above alpha_min would never settle
        for name in ("alpha_target", "release_alpha_target"):
            value = getattr(self, name)
            if not 0.0 <= value < self.alpha_min:
                raise ConfigurationError(f"simulation: {name} must be in [0, alpha_min).")
        if self.drag_alpha_target < 0:
            raise ConfigurationError("simulation: drag_alpha_target must be >= 0.")


@dataclass
class ViewerConfig:
    dataset_path: str = "newdata.json"
    tick_interval_ms: int = 16  # ~60 FPS
    width: float = 960.0
    height: float = 600.0
    max_settle_ticks: int = 600

    def validate(self) -> None:
        if self.tick_interval_ms <= 0:
            raise ConfigurationError("viewer: tick_interval_ms must be > 0.")
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError("viewer: width and height must be > 0.")
        if self.max_settle_ticks < 0:
            raise ConfigurationError("viewer: max_settle_ticks must be >= 0.")


@dataclass
class Settings:
    forces: ForceProperties = field(default_factory=ForceProperties)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    viewer: ViewerConfig = field(default_factory=ViewerConfig)


def _section(cls, data, name):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"'{name}' must be an object.")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(f"Unknown {name} settings: {', '.join(sorted(unknown))}.")
    defaults = cls()
    section = replace(defaults, **{k: _coerce(defaults, k, v) for k, v in data.items()})
    section.validate()
    return section


def load_settings(path=None) -> Settings:
    """Read a JSON settings file; None gives the defaults."""
    if path is None:
        return Settings()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read settings {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("Settings file must hold a JSON object.")
    unknown = set(data) - {"forces", "simulation", "viewer"}
    if unknown:
        raise ConfigurationError(f"Unknown settings sections: {', '.join(sorted(unknown))}.")
    settings = Settings(
        forces=ForceProperties.from_dict(data.get("forces")),
        simulation=_section(SimulationConfig, data.get("simulation"), "simulation"),
        viewer=_section(ViewerConfig, data.get("viewer"), "viewer"),
    )
    logger.info("Loaded settings from %s", path)
    return settings
