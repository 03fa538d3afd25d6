from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

class PropertyDescriptor(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    href: Optional[str] = None
    type: Optional[str] = None
    unit: Optional[str] = None
    choices: Optional[List[str]] = None
    friendly_name: Optional[str] = Field(default=None, alias="friendlyName")

class ThingDescription(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = ""
    type: Optional[str] = None
    href: Optional[str] = None
    floorplan_x: Optional[float] = Field(default=None, alias="floorplanX")
    floorplan_y: Optional[float] = Field(default=None, alias="floorplanY")
    properties: Dict[str, PropertyDescriptor] = Field(default_factory=dict)

class PropertyStatusFrame(BaseModel):
    messageType: str
    data: Optional[Dict[str, Any]] = None
