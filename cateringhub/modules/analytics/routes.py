from fastapi import APIRouter, Depends, Query
from cateringhub.database.supabase_client import get_supabase
from cateringhub.modules.analytics.schemas import DashboardAnalyticsResponse, RecentExpense
from cateringhub.modules.analytics.service import AnalyticsService
from cateringhub.core.dependencies import require_capability
from cateringhub.core.membership import ProviderMembership
from supabase import Client
from typing import List, Optional
from datetime import date

router = APIRouter(prefix="/providers/{provider_id}/analytics", tags=["analytics"])

ANALYTICS_DENIED = "Only owners and admins can view analytics"


def get_analytics_service(supabase: Client = Depends(get_supabase)) -> AnalyticsService:
    return AnalyticsService(supabase)


@router.get("", response_model=DashboardAnalyticsResponse)
async def get_dashboard_analytics(
    provider_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    trend_months: int = Query(6, ge=1, le=24),
    membership: ProviderMembership = Depends(require_capability("can_view_analytics", ANALYTICS_DENIED)),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Revenue, booking, staff and expense figures for the period plus monthly trends.
    Any section failing fails the whole response with 502 naming that section.
    """
    return service.get_dashboard(provider_id, start_date, end_date, trend_months)


@router.get("/expenses/recent", response_model=List[RecentExpense])
async def get_recent_expenses(
    provider_id: str,
    limit: int = Query(5, ge=1, le=50),
    membership: ProviderMembership = Depends(require_capability("can_view_analytics", ANALYTICS_DENIED)),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.get_recent_expenses(provider_id, limit)
