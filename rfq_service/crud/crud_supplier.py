# rfq_service/crud/crud_supplier.py
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from rfq_service.models.supplier import Supplier
from rfq_service.schemas.rfq import SupplierType
from rfq_service.schemas.token import TokenPayload


def get(db: Session, supplier_id: str) -> Optional[Supplier]:
    return db.query(Supplier).filter(Supplier.id == supplier_id).first()


def list_ids_by_type(db: Session, tenant_id: str, supplier_type: str) -> List[str]:
    """All suppliers of one type registered in a tenant, in a stable order."""
    rows = (
        db.query(Supplier.id)
        .filter(
            Supplier.tenant_id == tenant_id,
            Supplier.supplier_type == supplier_type,
        )
        .order_by(Supplier.created_at, Supplier.id)
        .all()
    )
    return [r.id for r in rows]


def list_actable(db: Session, principal: TokenPayload) -> List[Supplier]:
    """Suppliers the principal may quote for: owned ones plus legacy pool members."""
    pool_filters = [
        and_(
            Supplier.owner_id.is_(None),
            Supplier.tenant_id == m.tenant_id,
            Supplier.supplier_type == m.tenant_role,
        )
        for m in principal.tenants
        if m.tenant_role in {t.value for t in SupplierType}
    ]
    return (
        db.query(Supplier)
        .filter(or_(Supplier.owner_id == principal.sub, *pool_filters))
        .all()
    )

