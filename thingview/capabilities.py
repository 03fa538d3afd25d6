"""Capability modules composed into things.

A capability claims the descriptors it cares about, names the detail kind
used to show each one, filters values before they reach the store and
derives display state from the store.
"""
from typing import Any, Dict, Optional, Tuple
from .models import PropertyDescriptor

WARM_KELVIN = 3000

class Capability:
    names: Tuple[str, ...] = ()
    types: Tuple[str, ...] = ()
    detail_kind: Optional[str] = None

    def __init__(self):
        self.claimed = set()

    def claim(self, name: str):
        self.claimed.add(name)

    def selects(self, name: str, prop: PropertyDescriptor) -> bool:
        return name in self.names or (prop.type in self.types)

    def kind_for(self, name: str, prop: PropertyDescriptor) -> Optional[str]:
        return self.detail_kind or prop.type

    def accepts(self, name: str, value: Any) -> bool:
        return True

    def derive(self, store, state: Dict[str, Any]):
        pass

class Power(Capability):
    names = ("on",)
    detail_kind = "boolean"

    def derive(self, store, state):
        if "on" in store:
            state["on"] = bool(store.get("on"))
            state["label"] = "on" if state["on"] else "off"

class Level(Capability):
    names = ("level",)
    detail_kind = "level"

    def accepts(self, name, value):
        try:
            float(value)
        except (TypeError, ValueError):
            return False
        return True

    def derive(self, store, state):
        if "level" not in store:
            return
        level = max(0.0, min(100.0, float(store.get("level"))))
        state["level"] = level
        if state.get("on"):
            state["label"] = f"{round(level)}%"

def kelvin(token: Any) -> Optional[int]:
    # Decimal Kelvin such as 2700 or "6500K", not a hex colour string.
    try:
        return int(float(str(token).strip().lower().rstrip("k")))
    except (ValueError, OverflowError):
        return None

class Temperature(Capability):
    names = ("temperature",)
    detail_kind = "temperature"

    def accepts(self, name, value):
        return bool(value)

    def derive(self, store, state):
        if "temperature" not in store:
            return
        token = store.get("temperature")
        state["temperature"] = token
        k = kelvin(token)
        state["warm"] = k is not None and k < WARM_KELVIN

class Open(Capability):
    names = ("open",)
    detail_kind = "boolean"

    def derive(self, store, state):
        if "open" in store:
            state["open"] = bool(store.get("open"))

class Passthrough(Capability):
    """Exposes every claimed value unchanged as display state."""

    def derive(self, store, state):
        for name in sorted(self.claimed):
            if name in store:
                state[name] = store.get(name)

class Imaging(Passthrough):
    types = ("stillImage",)

class CameraSettings(Passthrough):
    types = ("choice", "label")
