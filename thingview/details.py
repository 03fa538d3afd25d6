"""Detail bindings: one small view component per displayed property.

A binding renders its fragment, attaches to the node mounted for its element
id and redraws that node from the thing's property store. Bindings never hold
authoritative state.
"""
import logging, re
from dataclasses import dataclass, field
from html import escape
from typing import Any, Callable, Dict, Iterable, List, Optional

from .choices import resolve_choices
from .errors import DecodingError
from .images import decode_image
from .models import PropertyDescriptor

log = logging.getLogger("details")

def css_id(s: str) -> str:
    return re.sub(r"[.: ]", "_", s)

@dataclass
class ViewNode:
    element_id: str
    text: str = ""
    value: Any = None
    src: str = ""
    label: str = ""
    options: List[str] = field(default_factory=list)

def mount(bindings: Iterable["Detail"]) -> Dict[str, ViewNode]:
    return {b.element_id: ViewNode(b.element_id) for b in bindings}

class Detail:
    kind = "detail"

    def __init__(self, thing, name: str, prop: PropertyDescriptor, friendly_name: str = ""):
        self.thing = thing
        self.name = name
        self.prop = prop
        self.friendly_name = friendly_name or prop.friendly_name or name
        self.element_id = f"{self.kind}-{css_id(thing.id)}-{css_id(name)}"
        self.node: Optional[ViewNode] = None

    @property
    def attached(self) -> bool:
        return self.node is not None

    def render_fragment(self) -> str:
        return (f'<div class="thing-detail-container">'
                f'<div class="thing-detail {self.kind}-detail" id="{self.element_id}">'
                f'{self.contents()}</div>'
                f'<div class="thing-detail-label">{escape(self.friendly_name)}</div></div>')

    def contents(self) -> str:
        return ""

    def attach(self, nodes: Dict[str, ViewNode]) -> bool:
        self.node = nodes.get(self.element_id)
        return self.node is not None

    def update(self):
        if self.node is None or self.name not in self.thing.properties:
            return
        self.draw(self.thing.properties.get(self.name))

    def draw(self, value: Any):
        self.node.value = value
        self.node.text = str(value)

class OnOffDetail(Detail):
    kind = "on-off"

    def contents(self):
        return '<input type="checkbox" class="toggle"/>'

    def draw(self, value):
        self.node.value = bool(value)
        self.node.text = "on" if value else "off"

class LabelDetail(Detail):
    kind = "label"

    def draw(self, value):
        self.node.value = value
        self.node.text = f"{value} {self.prop.unit}" if self.prop.unit else str(value)

class ChoiceDetail(Detail):
    kind = "choice"

    def __init__(self, thing, name, prop):
        label, self.choices = resolve_choices(name, prop)
        super().__init__(thing, name, prop, label)
        self.friendly_name = label

    def contents(self):
        opts = "".join(f'<option value="{escape(c)}">{escape(c)}</option>' for c in self.choices)
        return f"<select>{opts}</select>"

    def attach(self, nodes):
        if super().attach(nodes):
            self.node.options = list(self.choices)
            self.node.label = self.friendly_name
        return self.attached

    def draw(self, value):
        self.node.value = str(value)
        self.node.text = str(value)

class LevelDetail(Detail):
    kind = "level"

    def contents(self):
        return '<input type="range" min="0" max="100" step="1"/>'

    def draw(self, value):
        level = max(0.0, min(100.0, float(value)))
        self.node.value = level
        self.node.text = f"{round(level)}%"

class TemperatureDetail(Detail):
    kind = "temperature"

    def contents(self):
        return '<input type="text" class="temperature-light-temperature"/>'

class ImageDetail(Detail):
    kind = "image"

    def __init__(self, thing, name, prop):
        super().__init__(thing, name, prop, prop.friendly_name or "Still Image")
        self._drawn_version = None

    def contents(self):
        return '<img src=""/>'

    def attach(self, nodes):
        old = self.node
        if super().attach(nodes) and old is not None and old is not self.node:
            # keep the drawn handle rather than allocating another
            self.node.src, self.node.value = old.src, old.value
        return self.attached

    def update(self):
        # Redecode only when the stored value changed; a bytes decode
        # allocates a handle each time.
        if self.node is None or not self.thing.properties.get(self.name):
            return
        version = self.thing.properties.revision(self.name)
        if version == self._drawn_version:
            return
        try:
            src = decode_image(self.prop.unit, self.thing.properties.get(self.name),
                               previous=self.node.src or None)
        except DecodingError as e:
            log.warning("Cannot show %s of %s: %s", self.name, self.thing.id, e)
            return
        self.node.src = src
        self.node.value = src
        self._drawn_version = version

DetailFactory = Callable[[Any, str, PropertyDescriptor], Detail]

DETAIL_TYPES: Dict[str, DetailFactory] = {
    "boolean": OnOffDetail,
    "label": LabelDetail,
    "choice": ChoiceDetail,
    "stillImage": ImageDetail,
    "image": ImageDetail,
    "level": LevelDetail,
    "number": LevelDetail,
    "temperature": TemperatureDetail,
}

def make_detail(kind: Optional[str], thing, name: str, prop: PropertyDescriptor) -> Optional[Detail]:
    factory = DETAIL_TYPES.get(kind or "")
    if factory is None:
        log.debug("No detail for %s (%s) on %s", name, kind, thing.id)
        return None
    return factory(thing, name, prop)
