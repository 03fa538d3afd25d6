from typing import Any, Dict, Iterable, Optional

class PropertyStore:
    """Authoritative property values for one thing.

    Only names with a descriptor are accepted. Every key carries a version
    telling how fresh its value is: pushes and writes take a new tick of the
    per-store clock, pull results take the clock value their batch was issued
    at. A pull therefore never overwrites anything written after it went out,
    and overlapping pulls issued at the same clock both apply.

    ``revision`` counts applies per key and only serves change detection.
    """

    def __init__(self, names: Iterable[str]):
        self._names = set(names)
        self._values: Dict[str, Any] = {}
        self._versions: Dict[str, int] = {}
        self._revisions: Dict[str, int] = {}
        self._clock = 0

    @property
    def clock(self) -> int:
        return self._clock

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def version(self, name: str) -> int:
        return self._versions.get(name, 0)

    def revision(self, name: str) -> int:
        return self._revisions.get(name, 0)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._values)

    def apply(self, data: Dict[str, Any], since: Optional[int] = None) -> Dict[str, Any]:
        """Apply ``data`` and return the subset that was actually applied.

        Unknown names and null values are skipped. With ``since`` set (a pull
        batch issued at that clock), keys written after that clock keep their
        newer value and applied keys are stamped with ``since``.
        """
        applied: Dict[str, Any] = {}
        for name, value in data.items():
            if name not in self._names or value is None:
                continue
            if since is not None and self._versions.get(name, 0) > since:
                continue
            if since is None:
                self._clock += 1
                self._versions[name] = self._clock
            else:
                self._versions[name] = since
            self._values[name] = value
            self._revisions[name] = self._revisions.get(name, 0) + 1
            applied[name] = value
        return applied
