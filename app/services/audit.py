from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import AuditLog


async def log_audit(db: AsyncSession, actor: Optional[str], action: str, object_type: str = None, object_id: str = None, detail: dict = None, ip_address: str = None):
    audit = AuditLog(
        actor=actor,
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail,
        ip_address=ip_address,
    )
    db.add(audit)
    # do not commit here; caller should include in transaction context
    return audit


def audit_hook(actor: Optional[str], action: str, object_type: str, object_id: str, detail: dict = None):
    """Bind an audit entry for use as a store ``on_match`` callback."""

    async def _hook(db: AsyncSession):
        await log_audit(db, actor=actor, action=action, object_type=object_type, object_id=object_id, detail=detail)

    return _hook
