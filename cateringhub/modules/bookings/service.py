from supabase import Client
from cateringhub.config import settings
from cateringhub.core.errors import conflict, forbidden, internal, invalid_input, not_found
from cateringhub.core.membership import ProviderMembership, ensure_capability
from cateringhub.modules.bookings import utils
from cateringhub.modules.bookings.schemas import (
    BookingResponse, BookingFilters, BookingListResponse, BookingListCapabilities,
    BookingDetailResponse, BookingDetailCapabilities, BookingUpdate,
    ManualBookingCreate, ManualBookingResponse, BookingTeamResponse,
    Pagination, ProviderConstraints, ShiftAggregates
)
from cateringhub.modules.shifts.service import ShiftsService
from cateringhub.modules.teams.service import TeamsService, fetch_team_capacity
from typing import Any, Dict, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging
import math

logger = logging.getLogger(__name__)

TEAM_AT_CAPACITY = "Selected team is at capacity for the event date"

# Fields that describe the event itself; frozen once a booking is completed or cancelled
LOGISTICS_FIELDS = {
    "event_date", "event_time", "event_type", "guest_count", "venue_name",
    "venue_address", "service_location_id", "special_requests", "notes",
    "base_price", "total_price",
}

# Characters with meaning inside a PostgREST or=() filter
_SEARCH_STRIP = str.maketrans("", "", ",()%*")


class BookingsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_booking_row(self, provider_id: str, booking_id: str) -> Dict[str, Any]:
        result = self.supabase.table("bookings")\
            .select("*")\
            .eq("id", booking_id)\
            .eq("provider_id", provider_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise not_found("Booking")
        return result.data

    def _check_visibility(self, membership: ProviderMembership, booking: Dict[str, Any]):
        """Members without can_view_all_bookings only see their own team's bookings."""
        if membership.can("can_view_all_bookings"):
            return
        if not membership.team_id or booking.get("team_id") != membership.team_id:
            raise forbidden("You can only view bookings assigned to your team")

    def list_bookings(
        self,
        membership: ProviderMembership,
        filters: BookingFilters,
        page: int = 1,
        page_size: int = 10
    ) -> BookingListResponse:
        """Paginated, filtered and sorted bookings of the caller's provider"""
        try:
            page = max(page, 1)
            page_size = min(max(page_size, 1), settings.max_page_size)
            can_view_all = membership.can("can_view_all_bookings")

            query = self.supabase.table("bookings")\
                .select("*", count="exact")\
                .eq("provider_id", membership.provider_id)

            restrict_to_team = (not can_view_all) or filters.my_team
            empty = False
            if restrict_to_team:
                if membership.team_id:
                    query = query.eq("team_id", membership.team_id)
                else:
                    empty = True

            if filters.search:
                term = filters.search.strip().translate(_SEARCH_STRIP)
                if term:
                    query = query.or_(
                        f"customer_name.ilike.%{term}%,"
                        f"customer_email.ilike.%{term}%,"
                        f"event_type.ilike.%{term}%"
                    )
            if filters.status:
                query = query.eq("status", filters.status)
            if filters.source:
                query = query.eq("source", filters.source)
            if filters.team == "no-team":
                query = query.is_("team_id", "null")
            elif filters.team:
                query = query.eq("team_id", filters.team)

            rows, total = [], 0
            if not empty:
                start = (page - 1) * page_size
                result = query.order(filters.sort_by, desc=filters.sort_order == "desc")\
                    .range(start, start + page_size - 1)\
                    .execute()
                rows = result.data or []
                total = result.count if result.count is not None else len(rows)

            total_pages = math.ceil(total / page_size) if total else 0
            return BookingListResponse(
                data=[BookingResponse(**row) for row in rows],
                pagination=Pagination(
                    page=page,
                    page_size=page_size,
                    total_items=total,
                    total_pages=total_pages,
                    has_next_page=page < total_pages,
                    has_previous_page=page > 1,
                ),
                filters=filters,
                user_role=membership.role,
                capabilities=BookingListCapabilities(
                    can_view_all_bookings=can_view_all,
                    can_edit_bookings=membership.can("can_edit_all_bookings"),
                    can_assign_bookings=membership.can("can_assign_bookings"),
                ),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing bookings for provider {membership.provider_id}: {e}")
            raise internal("Failed to fetch bookings")

    def get_booking_detail(self, membership: ProviderMembership, booking_id: str) -> BookingDetailResponse:
        """Booking with shift aggregates, constraints, timeline and the caller's capabilities"""
        try:
            booking = self.get_booking_row(membership.provider_id, booking_id)
            self._check_visibility(membership, booking)

            shifts_result = self.supabase.table("shifts")\
                .select("id, status, scheduled_start, scheduled_end, actual_start, actual_end")\
                .eq("booking_id", booking_id)\
                .execute()
            aggregates = utils.summarize_shift_hours(shifts_result.data or [])

            provider_result = self.supabase.table("providers")\
                .select("advance_booking_days, max_service_radius, daily_capacity, available_days")\
                .eq("id", membership.provider_id)\
                .maybe_single()\
                .execute()
            constraints = ProviderConstraints(**((provider_result.data if provider_result else None) or {}))

            related_count = 0
            if booking.get("customer_id"):
                related_result = self.supabase.table("bookings")\
                    .select("id", count="exact")\
                    .eq("provider_id", membership.provider_id)\
                    .eq("customer_id", booking["customer_id"])\
                    .neq("id", booking_id)\
                    .execute()
                related_count = related_result.count if related_result.count is not None else len(related_result.data or [])

            team = None
            if booking.get("team_id"):
                team_result = self.supabase.table("teams")\
                    .select("id, name, status, daily_capacity")\
                    .eq("id", booking["team_id"])\
                    .maybe_single()\
                    .execute()
                team = team_result.data if team_result else None

            labor_cost = utils.calculate_labor_cost(aggregates["estimated_hours"], settings.default_hourly_rate)
            can_edit = membership.can("can_edit_all_bookings")
            can_assign = membership.can("can_assign_bookings")
            status = booking["status"]

            return BookingDetailResponse(
                booking=BookingResponse(**booking),
                team=team,
                shift_aggregates=ShiftAggregates(**aggregates),
                estimated_labor_cost=labor_cost,
                formatted_labor_cost=utils.format_currency(labor_cost),
                formatted_total_price=utils.format_currency(booking.get("total_price")),
                provider_constraints=constraints,
                constraint_violations=utils.check_constraint_violations(
                    booking["event_date"], booking.get("created_at") or datetime.now(timezone.utc),
                    constraints.advance_booking_days,
                ),
                related_bookings_count=related_count,
                status_timeline=utils.build_status_timeline(booking),
                countdown=utils.calculate_event_countdown(booking["event_date"], booking.get("event_time")),
                capabilities=BookingDetailCapabilities(
                    can_edit=can_edit,
                    can_assign=can_assign,
                    can_manage_billing=membership.can("can_manage_billing"),
                    can_reassign=utils.can_reassign_booking(can_assign, status),
                    can_edit_logistics=utils.can_edit_logistics(can_edit, status),
                ),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching booking {booking_id}: {e}")
            raise internal("Failed to fetch booking")

    def update_booking(self, membership: ProviderMembership, booking_id: str, patch: BookingUpdate) -> BookingResponse:
        """Edit logistics and move the booking along its status lifecycle"""
        ensure_capability(membership, "can_edit_all_bookings", "You do not have permission to edit bookings")
        try:
            booking = self.get_booking_row(membership.provider_id, booking_id)
            update_data = patch.model_dump(exclude_unset=True, mode="json")
            if not update_data:
                raise invalid_input("No fields to update")

            current = booking["status"]
            if LOGISTICS_FIELDS & update_data.keys() and current in utils.TERMINAL_STATUSES:
                raise conflict("Completed or cancelled bookings can no longer be edited")

            now = datetime.now(timezone.utc).isoformat()
            new_status = update_data.get("status")
            if new_status is not None and new_status != current:
                if not utils.can_transition(current, new_status):
                    raise conflict(f"Cannot change booking status from {current} to {new_status}")
                stamp = utils.STATUS_TIMESTAMP_FIELDS.get(new_status)
                if stamp:
                    update_data[stamp] = now
            update_data["updated_at"] = now

            result = self.supabase.table("bookings")\
                .update(update_data)\
                .eq("id", booking_id)\
                .eq("provider_id", membership.provider_id)\
                .execute()
            if not result.data:
                raise not_found("Booking")

            logger.info(f"Booking {booking_id} updated by member {membership.member_id}: {sorted(update_data)}")
            return BookingResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating booking {booking_id}: {e}")
            raise internal("Failed to update booking")

    def _ensure_team_has_capacity(self, team_id: str, event_date):
        capacity = fetch_team_capacity(self.supabase, team_id, event_date)
        if capacity.is_at_capacity:
            raise conflict(TEAM_AT_CAPACITY, capacity.model_dump(mode="json"))

    def create_manual_booking(self, membership: ProviderMembership, data: ManualBookingCreate) -> ManualBookingResponse:
        """Validate, check team capacity, then create through create_manual_booking.

        The capacity read and the insert are separate round-trips, so two
        concurrent submissions for the same team and date can both pass.
        """
        ensure_capability(membership, "can_edit_all_bookings", "You do not have permission to create bookings")
        try:
            if data.team_id:
                TeamsService(self.supabase).get_active_team(membership.provider_id, data.team_id)
                self._ensure_team_has_capacity(data.team_id, data.event_date)

            params = {
                "p_provider_id": membership.provider_id,
                "p_customer_name": data.customer_name,
                "p_event_date": data.event_date.isoformat(),
                "p_service_location_id": data.service_location_id,
                "p_customer_phone": data.customer_phone,
                "p_customer_email": str(data.customer_email) if data.customer_email else None,
                "p_event_time": data.event_time.isoformat() if data.event_time else None,
                "p_event_type": data.event_type,
                "p_guest_count": data.guest_count,
                "p_venue_name": data.venue_name,
                "p_venue_address": data.venue_address,
                "p_estimated_budget": data.estimated_budget,
                "p_special_requests": data.special_requests,
                "p_notes": data.notes,
                "p_base_price": data.base_price,
                "p_team_id": data.team_id,
                "p_status": data.status,
            }
            try:
                result = self.supabase.rpc("create_manual_booking", params).execute()
            except Exception as e:
                message = getattr(e, "message", None) or str(e)
                logger.warning(f"create_manual_booking rejected for provider {membership.provider_id}: {message}")
                raise invalid_input(message)

            rows = result.data or []
            row = rows[0] if isinstance(rows, list) and rows else rows
            if not row:
                raise internal("Failed to create booking")

            logger.info(f"Manual booking {row['id']} created by member {membership.member_id}")
            return ManualBookingResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating manual booking for provider {membership.provider_id}: {e}")
            raise internal("Failed to create booking")

    def assign_team(self, membership: ProviderMembership, booking_id: str, team_id: Optional[str]) -> BookingTeamResponse:
        """Set or clear the booking's team; a newly set team's members get shifts"""
        ensure_capability(membership, "can_assign_bookings", "You do not have permission to assign teams to bookings")
        try:
            booking = self.get_booking_row(membership.provider_id, booking_id)
            if not utils.can_reassign_booking(True, booking["status"]):
                raise conflict("Completed or cancelled bookings cannot be reassigned")

            if team_id:
                TeamsService(self.supabase).get_active_team(membership.provider_id, team_id)
                if team_id != booking.get("team_id"):
                    self._ensure_team_has_capacity(team_id, booking["event_date"])

            result = self.supabase.table("bookings")\
                .update({"team_id": team_id, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", booking_id)\
                .eq("provider_id", membership.provider_id)\
                .execute()
            if not result.data:
                raise not_found("Booking")
            updated = BookingResponse(**result.data[0])

            if not team_id:
                logger.info(f"Team removed from booking {booking_id}")
                return BookingTeamResponse(booking=updated, message="Team removed from booking")

            assignment = ShiftsService(self.supabase).assign_team_members(
                membership.provider_id, booking_id, team_id
            )
            return BookingTeamResponse(
                booking=updated,
                message="Team assigned to booking",
                shifts_created=assignment.created,
                shifts_skipped=assignment.skipped,
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error assigning team {team_id} to booking {booking_id}: {e}")
            raise internal("Failed to assign team")
