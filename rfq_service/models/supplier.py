# rfq_service/models/supplier.py
"""
Read-side projection of the supplier catalog (transport companies, hotels,
tour guides and sights). The catalog service owns these rows; this service
only needs type, tenant and owner to fan out RFQs and authorize proposals.
"""
import uuid
from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.sql import func
from rfq_service.db.base_class import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(
        String, primary_key=True, default=lambda: f"sup_{uuid.uuid4().hex[:12]}"
    )
    tenant_id = Column(String, nullable=False)
    supplier_type = Column(String, nullable=False)  # transport, hotel, guide, sight
    name = Column(String, nullable=False)
    owner_id = Column(String, nullable=True)  # NULL for legacy suppliers

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_suppliers_tenant_type", "tenant_id", "supplier_type"),
    )
