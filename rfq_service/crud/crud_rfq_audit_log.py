# rfq_service/crud/crud_rfq_audit_log.py
"""
CRUD operations for the RFQ audit trail.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from rfq_service.models.rfq import Rfq
from rfq_service.models.rfq_audit_log import RfqAuditLog


def add_entry(
    db: Session,
    *,
    rfq: Rfq,
    user_id: str,
    action: str,
    old_state: Optional[str] = None,
    new_state: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    rfq_segment_id: Optional[str] = None,
) -> RfqAuditLog:
    """Stage an audit entry; it is committed with the caller's transaction."""
    entry = RfqAuditLog(
        rfq=rfq,
        rfq_segment_id=rfq_segment_id,
        user_id=user_id,
        action=action,
        old_state=old_state,
        new_state=new_state,
        action_metadata=metadata,
    )
    db.add(entry)
    return entry


def get_audit_log_for_rfq(
    db: Session,
    rfq_id: str,
    limit: int = 100,
) -> List[RfqAuditLog]:
    return (
        db.query(RfqAuditLog)
        .filter(RfqAuditLog.rfq_id == rfq_id)
        .order_by(RfqAuditLog.created_at.desc(), RfqAuditLog.id)
        .limit(limit)
        .all()
    )
