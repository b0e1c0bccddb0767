# rfq_service/services/ownership.py
"""
Who may act for a supplier entity.

Suppliers with an owner are exclusively owned. Legacy suppliers without an
owner fall back to a pool: any user holding the supplier type's tenant role
in the supplier's tenant. The pool variant exists only until every legacy
supplier has been assigned an owner.
"""
from dataclasses import dataclass
from typing import Union

from rfq_service.models.supplier import Supplier
from rfq_service.schemas.token import TokenPayload


@dataclass(frozen=True)
class ExclusiveOwner:
    owner_id: str

    def permits(self, principal: TokenPayload) -> bool:
        return principal.sub == self.owner_id


@dataclass(frozen=True)
class TenantRolePool:
    tenant_id: str
    role: str

    def permits(self, principal: TokenPayload) -> bool:
        return principal.has_tenant_role(self.tenant_id, self.role)


OwnershipPolicy = Union[ExclusiveOwner, TenantRolePool]


def policy_for(supplier: Supplier) -> OwnershipPolicy:
    if supplier.owner_id:
        return ExclusiveOwner(owner_id=supplier.owner_id)
    # Tenant roles are named after supplier types
    return TenantRolePool(tenant_id=supplier.tenant_id, role=supplier.supplier_type)


def can_act_for(principal: TokenPayload, supplier: Supplier) -> bool:
    return policy_for(supplier).permits(principal)
