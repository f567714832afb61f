"""
Pydantic models for backend entities used by the lookups.

Only the fields the dropdowns and price lists read are declared; everything
else the backend sends is kept as extra data so a selected entity can be
handed to a form unchanged.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

EntityId = Union[int, str]


class Entity(BaseModel):
    """Any record returned by a search endpoint."""

    model_config = ConfigDict(extra="allow")

    id: EntityId

    @property
    def label(self) -> str:
        return str(self.id)


class Customer(Entity):
    """Customer as returned by /api/customers/search."""

    customerName: Optional[str] = None
    companyName: Optional[str] = None
    telephoneNumber: Optional[str] = None

    @property
    def label(self) -> str:
        name = self.customerName or "Unknown"
        if self.companyName:
            return f"{name} ({self.companyName})"
        return name


class Material(Entity):
    """Material (or service) from the catalogue."""

    name: Optional[str] = None
    materialType: Optional[str] = None
    unitPrice: Optional[float] = None

    @property
    def label(self) -> str:
        return self.name or "Unknown"


class CustomerMaterialPrice(BaseModel):
    """Customer-specific price for one material."""

    model_config = ConfigDict(extra="allow")

    materialId: EntityId
    customerPrice: float = Field(..., ge=0)
