from supabase import Client
from cateringhub.core.audit import record_audit_log
from cateringhub.core.errors import conflict, internal, invalid_input, not_found
from cateringhub.core.membership import ProviderMembership, ensure_capability
from cateringhub.modules.bookings.utils import calculate_hours
from cateringhub.modules.members.service import get_user_display
from cateringhub.modules.shifts.schemas import (
    ShiftCreate, BulkAssignRequest, ShiftResponse, ShiftDetailResponse, BulkAssignResponse
)
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

ASSIGN_DENIED = "Only owners, admins, and supervisors can assign team members to bookings"
REMOVE_DENIED = "Only owners, admins, and supervisors can remove team members from bookings"
BOOKING_NOT_FOUND = "Booking not found or you don't have access to it"
ALREADY_ASSIGNED = "This team member is already assigned to this booking"
ALREADY_CHECKED_IN = "This shift has already been checked in"
CHECK_OUT_BEFORE_CHECK_IN = "Cannot check out before checking in"
ALREADY_CHECKED_OUT = "This shift has already been checked out"
DELETE_AFTER_CHECK_IN = "Cannot delete a shift that has been checked in"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class ShiftsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_booking_for_provider(self, provider_id: str, booking_id: str) -> Dict[str, Any]:
        result = self.supabase.table("bookings")\
            .select("id, provider_id, team_id, status, event_date")\
            .eq("id", booking_id)\
            .eq("provider_id", provider_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise not_found("Booking", BOOKING_NOT_FOUND)
        return result.data

    def get_shift_for_provider(self, provider_id: str, shift_id: str) -> Dict[str, Any]:
        """Shift row, verified to belong to a booking of this provider"""
        result = self.supabase.table("shifts")\
            .select("*")\
            .eq("id", shift_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise not_found("Shift")
        shift = result.data

        booking_result = self.supabase.table("bookings")\
            .select("id")\
            .eq("id", shift["booking_id"])\
            .eq("provider_id", provider_id)\
            .maybe_single()\
            .execute()
        if not booking_result or not booking_result.data:
            raise not_found("Shift", "You don't have access to this shift")
        return shift

    def _ensure_assignee_in_provider(self, provider_id: str, data: ShiftCreate):
        if data.user_id:
            result = self.supabase.table("provider_members")\
                .select("id")\
                .eq("provider_id", provider_id)\
                .eq("user_id", data.user_id)\
                .eq("status", "active")\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise invalid_input("The assigned team member is not part of your provider")
            return

        result = self.supabase.table("worker_profiles")\
            .select("id, status")\
            .eq("id", data.worker_profile_id)\
            .eq("provider_id", provider_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise invalid_input("The assigned worker is not part of your provider")
        if result.data.get("status") != "active":
            raise invalid_input("Inactive workers cannot be assigned to bookings")

    def _existing_assignees(self, booking_id: str) -> Dict[str, set]:
        result = self.supabase.table("shifts")\
            .select("user_id, worker_profile_id")\
            .eq("booking_id", booking_id)\
            .execute()
        users, workers = set(), set()
        for row in result.data or []:
            if row.get("user_id"):
                users.add(row["user_id"])
            if row.get("worker_profile_id"):
                workers.add(row["worker_profile_id"])
        return {"users": users, "workers": workers}

    def _describe(self, shift: Dict[str, Any], worker_names: Dict[str, str]) -> ShiftDetailResponse:
        if shift.get("user_id"):
            display = get_user_display(self.supabase, shift["user_id"])
            assignee = {
                "assignee_type": "member",
                "assignee_name": display["full_name"],
                "assignee_email": display["email"] or None,
            }
        else:
            assignee = {
                "assignee_type": "worker",
                "assignee_name": worker_names.get(shift.get("worker_profile_id"), "Unknown Worker"),
                "assignee_email": None,
            }
        return ShiftDetailResponse(
            **shift,
            **assignee,
            scheduled_hours=round(calculate_hours(shift.get("scheduled_start"), shift.get("scheduled_end")), 2),
            actual_hours=round(calculate_hours(shift.get("actual_start"), shift.get("actual_end")), 2),
        )

    def list_shifts(self, provider_id: str, booking_id: str) -> List[ShiftDetailResponse]:
        """Shifts of a booking ordered by scheduled start, with assignee names"""
        try:
            self.get_booking_for_provider(provider_id, booking_id)
            result = self.supabase.table("shifts")\
                .select("*")\
                .eq("booking_id", booking_id)\
                .order("scheduled_start")\
                .execute()
            shifts = result.data or []

            worker_ids = list({s["worker_profile_id"] for s in shifts if s.get("worker_profile_id")})
            worker_names = {}
            if worker_ids:
                workers_result = self.supabase.table("worker_profiles")\
                    .select("id, name")\
                    .in_("id", worker_ids)\
                    .execute()
                worker_names = {w["id"]: w["name"] for w in (workers_result.data or [])}

            return [self._describe(shift, worker_names) for shift in shifts]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing shifts for booking {booking_id}: {e}")
            raise internal("Failed to fetch shifts")

    def create_shift(self, membership: ProviderMembership, booking_id: str, data: ShiftCreate) -> ShiftResponse:
        """Assign one member or worker to a booking.

        Guards run in order: role, booking ownership, assignee ownership,
        duplicate (booking, assignee) pair. Any failure leaves no row behind.
        """
        ensure_capability(membership, "can_manage_shifts", ASSIGN_DENIED)
        try:
            self.get_booking_for_provider(membership.provider_id, booking_id)
            self._ensure_assignee_in_provider(membership.provider_id, data)

            existing = self.supabase.table("shifts")\
                .select("id")\
                .eq("booking_id", booking_id)
            if data.user_id:
                existing = existing.eq("user_id", data.user_id)
            else:
                existing = existing.eq("worker_profile_id", data.worker_profile_id)
            if existing.limit(1).execute().data:
                raise conflict(ALREADY_ASSIGNED)

            result = self.supabase.table("shifts").insert({
                "booking_id": booking_id,
                "user_id": data.user_id,
                "worker_profile_id": data.worker_profile_id,
                "role": data.role,
                "scheduled_start": _iso(data.scheduled_start),
                "scheduled_end": _iso(data.scheduled_end),
                "notes": data.notes,
                "status": "scheduled",
            }).execute()
            if not result.data:
                raise internal("Failed to create shift")

            shift = result.data[0]
            logger.info(
                f"Shift {shift['id']} created on booking {booking_id} "
                f"for {'user ' + data.user_id if data.user_id else 'worker ' + data.worker_profile_id}"
            )
            return ShiftResponse(**shift)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating shift on booking {booking_id}: {e}")
            raise internal("Failed to create shift")

    def assign_team_members(
        self,
        provider_id: str,
        booking_id: str,
        team_id: str,
        include_workers: bool = True,
        scheduled_start: Optional[datetime] = None,
        scheduled_end: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> BulkAssignResponse:
        """Create a scheduled shift for every active member (and worker) of a team.

        People already on the booking are skipped, not failed. Callers have
        already checked the caller's role and the booking.
        """
        existing = self._existing_assignees(booking_id)

        members_result = self.supabase.table("provider_members")\
            .select("id, user_id, role")\
            .eq("provider_id", provider_id)\
            .eq("team_id", team_id)\
            .eq("status", "active")\
            .execute()
        workers = []
        if include_workers:
            workers_result = self.supabase.table("worker_profiles")\
                .select("id, role")\
                .eq("provider_id", provider_id)\
                .eq("team_id", team_id)\
                .eq("status", "active")\
                .execute()
            workers = workers_result.data or []

        base = {
            "booking_id": booking_id,
            "scheduled_start": _iso(scheduled_start),
            "scheduled_end": _iso(scheduled_end),
            "notes": notes,
            "status": "scheduled",
        }
        rows, skipped = [], 0
        for member in members_result.data or []:
            if member["user_id"] in existing["users"]:
                skipped += 1
                continue
            existing["users"].add(member["user_id"])
            role = "Supervisor" if member.get("role") in ("supervisor", "manager") else "Staff"
            rows.append({**base, "user_id": member["user_id"], "worker_profile_id": None, "role": role})
        for worker in workers:
            if worker["id"] in existing["workers"]:
                skipped += 1
                continue
            existing["workers"].add(worker["id"])
            rows.append({**base, "user_id": None, "worker_profile_id": worker["id"], "role": worker.get("role") or "Staff"})

        created = []
        if rows:
            result = self.supabase.table("shifts").insert(rows).execute()
            created = result.data or []

        logger.info(f"Team {team_id} assigned to booking {booking_id}: {len(created)} created, {skipped} skipped")
        return BulkAssignResponse(
            created=len(created),
            skipped=skipped,
            shifts=[ShiftResponse(**row) for row in created],
            message=f"Assigned {len(created)} team member(s), skipped {skipped} already assigned",
        )

    def bulk_assign_team(self, membership: ProviderMembership, booking_id: str, request: BulkAssignRequest) -> BulkAssignResponse:
        ensure_capability(membership, "can_manage_shifts", ASSIGN_DENIED)
        try:
            self.get_booking_for_provider(membership.provider_id, booking_id)
            team_result = self.supabase.table("teams")\
                .select("id, status")\
                .eq("id", request.team_id)\
                .eq("provider_id", membership.provider_id)\
                .maybe_single()\
                .execute()
            if not team_result or not team_result.data:
                raise not_found("Team")
            if team_result.data.get("status") != "active":
                raise invalid_input("Cannot assign an inactive or archived team")

            return self.assign_team_members(
                membership.provider_id,
                booking_id,
                request.team_id,
                include_workers=request.include_workers,
                scheduled_start=request.scheduled_start,
                scheduled_end=request.scheduled_end,
                notes=request.notes,
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error bulk assigning team {request.team_id} to booking {booking_id}: {e}")
            raise internal("Failed to assign team")

    def check_in(self, membership: ProviderMembership, shift_id: str) -> ShiftResponse:
        """Set actual_start once. The update is conditional on actual_start still being null."""
        try:
            shift = self.get_shift_for_provider(membership.provider_id, shift_id)
            if shift.get("actual_start"):
                raise conflict(ALREADY_CHECKED_IN)

            now = _now()
            result = self.supabase.table("shifts")\
                .update({"actual_start": now, "status": "checked_in", "updated_at": now})\
                .eq("id", shift_id)\
                .is_("actual_start", "null")\
                .execute()
            if not result.data:
                raise conflict(ALREADY_CHECKED_IN)

            logger.info(f"Shift {shift_id} checked in by member {membership.member_id}")
            return ShiftResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error checking in shift {shift_id}: {e}")
            raise internal("Failed to check in")

    def check_out(self, membership: ProviderMembership, shift_id: str) -> ShiftResponse:
        """Set actual_end once, only after check-in."""
        try:
            shift = self.get_shift_for_provider(membership.provider_id, shift_id)
            if not shift.get("actual_start"):
                raise conflict(CHECK_OUT_BEFORE_CHECK_IN)
            if shift.get("actual_end"):
                raise conflict(ALREADY_CHECKED_OUT)

            now = _now()
            result = self.supabase.table("shifts")\
                .update({"actual_end": now, "status": "checked_out", "updated_at": now})\
                .eq("id", shift_id)\
                .is_("actual_end", "null")\
                .execute()
            if not result.data:
                raise conflict(ALREADY_CHECKED_OUT)

            logger.info(f"Shift {shift_id} checked out by member {membership.member_id}")
            return ShiftResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error checking out shift {shift_id}: {e}")
            raise internal("Failed to check out")

    def delete_shift(self, membership: ProviderMembership, shift_id: str) -> bool:
        ensure_capability(membership, "can_manage_shifts", REMOVE_DENIED)
        try:
            shift = self.get_shift_for_provider(membership.provider_id, shift_id)
            if shift.get("actual_start"):
                raise conflict(DELETE_AFTER_CHECK_IN)

            result = self.supabase.table("shifts")\
                .delete()\
                .eq("id", shift_id)\
                .is_("actual_start", "null")\
                .execute()
            if not result.data:
                raise conflict(DELETE_AFTER_CHECK_IN)

            record_audit_log(
                self.supabase, membership.provider_id, membership.user_id,
                "shift_deleted", "shift", shift_id,
                {
                    "booking_id": shift["booking_id"],
                    "user_id": shift.get("user_id"),
                    "worker_profile_id": shift.get("worker_profile_id"),
                },
            )
            logger.info(f"Shift {shift_id} deleted by member {membership.member_id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting shift {shift_id}: {e}")
            raise internal("Failed to delete shift")
