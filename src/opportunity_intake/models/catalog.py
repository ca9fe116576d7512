"""Principal and product reference data (read-only snapshots)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Principal(BaseModel):
    """Counterparty organization whose products can be offered."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Principal organization ID")
    name: str = ""
    organization_name: Optional[str] = None
    organization_type: Optional[str] = None
    product_ids: tuple[str, ...] = Field(
        default=(),
        description="Ordered product IDs this principal offers",
    )

    @property
    def display_name(self) -> str:
        """Name for labels; falls back to the ID while unresolved."""
        return (self.name or "").strip() or self.id


class Product(BaseModel):
    """Product reference data, linked to the principals that may use it."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    category: Optional[str] = None
    is_active: bool = True
    principal_ids: tuple[str, ...] = ()
