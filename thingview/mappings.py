# Maps declared property types to the coercion applied before a write.
from typing import Any, Callable, Dict

def _to_bool(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "on", "yes")
    return bool(v)

def _to_number(v: Any) -> float:
    return float(v)

def _to_int(v: Any) -> int:
    return int(float(v))

PROPERTY_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "boolean": _to_bool,
    "number": _to_number,
    "level": _to_number,
    "integer": _to_int,
    "choice": str,
    "label": str,
}

def coerce(declared_type: str, value: Any) -> Any:
    fn = PROPERTY_COERCERS.get(declared_type or "")
    return fn(value) if fn else value
