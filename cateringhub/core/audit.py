import logging
from typing import Any, Dict, Optional

from supabase import Client

logger = logging.getLogger(__name__)


def record_audit_log(
    supabase: Client,
    provider_id: str,
    user_id: str,
    action: str,
    resource_type: str,
    resource_id: str,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Best-effort insert into audit_logs. A failed write is logged, never raised."""
    try:
        supabase.table("audit_logs").insert({
            "provider_id": provider_id,
            "user_id": user_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "details": details or {},
        }).execute()
    except Exception as e:
        logger.warning(f"Failed to write audit log {action} for {resource_type} {resource_id}: {e}")
