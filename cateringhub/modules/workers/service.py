from supabase import Client
from cateringhub.core.errors import internal, invalid_input, not_found
from cateringhub.core.membership import ProviderMembership, ensure_capability
from cateringhub.modules.workers.schemas import WorkerCreate, WorkerUpdate, WorkerResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _to_response(row: Dict[str, Any]) -> WorkerResponse:
    return WorkerResponse(**{
        **row,
        "tags": row.get("tags") or [],
        "certifications": row.get("certifications") or [],
    })


class WorkersService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_worker_row(self, provider_id: str, worker_id: str) -> Dict[str, Any]:
        result = self.supabase.table("worker_profiles")\
            .select("*")\
            .eq("id", worker_id)\
            .eq("provider_id", provider_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise not_found("Worker profile")
        return result.data

    def _check_team(self, provider_id: str, team_id: Optional[str]):
        if not team_id:
            return
        result = self.supabase.table("teams")\
            .select("id, status")\
            .eq("id", team_id)\
            .eq("provider_id", provider_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise not_found("Team")
        if result.data.get("status") != "active":
            raise invalid_input("Cannot assign workers to an inactive or archived team")

    def list_workers(
        self,
        provider_id: str,
        status: Optional[str] = None,
        team_id: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[WorkerResponse]:
        try:
            query = self.supabase.table("worker_profiles")\
                .select("*")\
                .eq("provider_id", provider_id)
            if status:
                query = query.eq("status", status)
            if team_id:
                query = query.eq("team_id", team_id)
            if search:
                query = query.ilike("name", f"%{search}%")
            result = query.order("name").execute()
            return [_to_response(row) for row in (result.data or [])]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing workers for provider {provider_id}: {e}")
            raise internal("Failed to fetch worker profiles")

    def get_worker(self, provider_id: str, worker_id: str) -> WorkerResponse:
        return _to_response(self.get_worker_row(provider_id, worker_id))

    def create_worker(self, membership: ProviderMembership, worker_data: WorkerCreate) -> WorkerResponse:
        ensure_capability(membership, "can_manage_workers", "You do not have permission to manage worker profiles")
        try:
            self._check_team(membership.provider_id, worker_data.team_id)
            result = self.supabase.table("worker_profiles").insert({
                "provider_id": membership.provider_id,
                **worker_data.model_dump(),
            }).execute()
            if not result.data:
                raise internal("Failed to create worker profile. Please try again.")
            logger.info(f"Worker profile {result.data[0]['id']} created for provider {membership.provider_id}")
            return _to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating worker profile: {e}")
            raise internal("Failed to create worker profile. Please try again.")

    def update_worker(self, membership: ProviderMembership, worker_id: str, worker_data: WorkerUpdate) -> WorkerResponse:
        ensure_capability(membership, "can_manage_workers", "You do not have permission to manage worker profiles")
        try:
            self.get_worker_row(membership.provider_id, worker_id)
            update_data = worker_data.model_dump(exclude_unset=True)
            if "name" in update_data:
                name = (update_data["name"] or "").strip()
                if not name:
                    raise invalid_input("Worker name cannot be empty")
                update_data["name"] = name
            if not update_data:
                raise invalid_input("No fields to update")
            if update_data.get("team_id"):
                self._check_team(membership.provider_id, update_data["team_id"])
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("worker_profiles")\
                .update(update_data)\
                .eq("id", worker_id)\
                .eq("provider_id", membership.provider_id)\
                .execute()
            if not result.data:
                raise not_found("Worker profile")
            return _to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating worker profile {worker_id}: {e}")
            raise internal("Failed to update worker profile. Please try again.")

    def delete_worker(self, membership: ProviderMembership, worker_id: str) -> bool:
        ensure_capability(membership, "can_manage_workers", "You do not have permission to manage worker profiles")
        try:
            self.get_worker_row(membership.provider_id, worker_id)
            result = self.supabase.table("worker_profiles")\
                .delete()\
                .eq("id", worker_id)\
                .eq("provider_id", membership.provider_id)\
                .execute()
            logger.info(f"Worker profile {worker_id} deleted by member {membership.member_id}")
            return len(result.data or []) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting worker profile {worker_id}: {e}")
            raise internal("Failed to delete worker profile. Please try again.")
