import base64
from dataclasses import asdict
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, Optional
from .errors import PreconditionError
from .state import catalog
from .things import Thing

router = APIRouter(prefix="/api/v1")

class PropertyRequest(BaseModel):
    value: Any

def jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    return value

def thing_out(t: Thing, view: bool = False) -> Dict[str, Any]:
    out = jsonable(t.to_dict())
    if view:
        out["view"] = t.element
        out["nodes"] = {k: jsonable(asdict(n)) for k, n in t.nodes.items()}
    return out

def _get_thing(thing_id: str) -> Thing:
    t = catalog.get(thing_id)
    if not t:
        raise HTTPException(404, "Thing not found")
    return t

@router.get("/things")
def list_things(type: Optional[str] = None):
    return [thing_out(t) for t in catalog.things.values() if not type or t.type == type]

@router.get("/things/{thing_id}")
def get_thing(thing_id: str):
    return thing_out(_get_thing(thing_id), view=True)

@router.put("/things/{thing_id}/properties/{name}")
async def set_property(thing_id: str, name: str, req: PropertyRequest):
    t = _get_thing(thing_id)
    try:
        ok = await t.set_property(name, req.value)
    except PreconditionError as e:
        raise HTTPException(404, str(e))
    if not ok:
        raise HTTPException(502, f"Gateway rejected write of {name}")
    return {"status": "ok", name: jsonable(t.properties.get(name))}

@router.post("/things/{thing_id}/refresh")
async def refresh(thing_id: str):
    t = _get_thing(thing_id)
    applied = await t.update_status()
    return {"status": "ok", "applied": jsonable(applied)}
