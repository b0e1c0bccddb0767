# rfq_service/schemas/token.py
from pydantic import BaseModel, Field
from typing import List, Optional


class TenantMembership(BaseModel):
    tenant_id: str = Field(alias="tenantId")
    # country_manager, transport, hotel, guide, sight
    tenant_role: str = Field(alias="tenantRole")

    model_config = {"populate_by_name": True}


class TokenPayload(BaseModel):
    sub: str  # "sub" is the standard claim for subject (user ID)
    agency_id: Optional[str] = Field(default=None, alias="agencyId")
    tenants: List[TenantMembership] = []
    exp: Optional[int] = None

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    def has_tenant(self, tenant_id: str) -> bool:
        return any(m.tenant_id == tenant_id for m in self.tenants)

    def has_tenant_role(self, tenant_id: str, role: str) -> bool:
        return any(
            m.tenant_id == tenant_id and m.tenant_role == role for m in self.tenants
        )
