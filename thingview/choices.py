# Built-in choice lists for properties whose descriptors don't carry their own.
from typing import Dict, List, Tuple
from .models import PropertyDescriptor

BUILTIN_CHOICES: Dict[str, Tuple[str, List[str]]] = {
    "resolution": ("Resolution", [
        "320x240", "640x480", "800x600", "1024x768",
        "1296x972", "1640x1232", "3280x2464",
    ]),
    "framerate": ("Framerate", [
        "0.0", "0.1", "0.5", "1.0", "2.0", "3.0", "4.0", "5.0",
        "6.0", "7.0", "8.0", "9.0", "10.0", "15.0", "20.0", "30.0",
    ]),
    "exposureMode": ("Exposure", [
        "off", "auto", "night", "nightpreview", "backlight", "spotlight",
        "sports", "snow", "beach", "verylong", "fixedfps", "antishake",
        "fireworks",
    ]),
}

def resolve_choices(name: str, prop: PropertyDescriptor) -> Tuple[str, List[str]]:
    """Return (friendly name, allowed values) for a choice property.

    Fields present on the descriptor win over the built-in table, each one
    independently. Unknown names fall back to an empty label and no choices.
    """
    friendly, values = BUILTIN_CHOICES.get(name, ("", []))
    if prop.choices is not None:
        values = prop.choices
    if prop.friendly_name is not None:
        friendly = prop.friendly_name
    return friendly, list(values)
