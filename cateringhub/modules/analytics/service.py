from supabase import Client
from cateringhub.core.errors import bad_gateway, invalid_input
from cateringhub.modules.analytics.schemas import (
    RevenueMetrics, BookingStatistics, StaffUtilization, ExpenseSummary,
    MonthlyTrend, DashboardAnalyticsResponse, RecentExpense
)
from typing import Any, List, Optional
from datetime import date
import logging

logger = logging.getLogger(__name__)

# (response key, label used in error messages, rpc name, model)
PERIOD_SECTIONS = [
    ("revenue", "Revenue", "get_revenue_metrics", RevenueMetrics),
    ("bookings", "Bookings", "get_booking_statistics", BookingStatistics),
    ("staff", "Staff", "get_staff_utilization", StaffUtilization),
    ("expenses", "Expenses", "get_expense_summary", ExpenseSummary),
]


class AnalyticsService:
    """Dashboard figures computed by database functions"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _call(self, label: str, rpc: str, params: dict) -> Any:
        try:
            return self.supabase.rpc(rpc, params).execute().data
        except Exception as e:
            logger.error(f"Analytics section {label} ({rpc}) failed: {e}")
            raise bad_gateway(f"{label}: {e}")

    def get_dashboard(
        self,
        provider_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        trend_months: int = 6
    ) -> DashboardAnalyticsResponse:
        if start_date and end_date and start_date > end_date:
            raise invalid_input("start_date must be on or before end_date")

        params = {
            "p_provider_id": provider_id,
            "p_start_date": start_date.isoformat() if start_date else None,
            "p_end_date": end_date.isoformat() if end_date else None,
        }
        sections = {}
        for key, label, rpc, model in PERIOD_SECTIONS:
            sections[key] = model(**(self._call(label, rpc, params) or {}))

        trends = self._call("Trends", "get_monthly_trend_data", {
            "p_provider_id": provider_id,
            "p_months": trend_months,
        }) or []
        return DashboardAnalyticsResponse(**sections, trends=[MonthlyTrend(**t) for t in trends])

    def get_recent_expenses(self, provider_id: str, limit: int = 5) -> List[RecentExpense]:
        try:
            result = self.supabase.table("expenses")\
                .select("id, category, amount, expense_date, description")\
                .eq("provider_id", provider_id)\
                .order("expense_date", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching recent expenses of provider {provider_id}: {e}")
            raise bad_gateway(f"Expenses: {e}")
        return [RecentExpense(**row) for row in result.data or []]
