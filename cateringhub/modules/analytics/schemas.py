from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date


class AnalyticsSection(BaseModel):
    # RPCs may add fields over time; pass them through
    model_config = ConfigDict(extra="allow")

    period_start: Optional[date] = None
    period_end: Optional[date] = None


class RevenueMetrics(AnalyticsSection):
    total_revenue: float = 0
    confirmed_revenue: float = 0
    completed_revenue: float = 0
    previous_period_revenue: float = 0
    average_booking_value: float = 0


class BookingStatistics(AnalyticsSection):
    total_bookings: int = 0
    pending_count: int = 0
    confirmed_count: int = 0
    in_progress_count: int = 0
    completed_count: int = 0
    cancelled_count: int = 0
    upcoming_bookings: int = 0
    total_guests: int = 0
    average_guests: float = 0


class StaffUtilization(AnalyticsSection):
    total_shifts: int = 0
    scheduled_shifts: int = 0
    checked_in_shifts: int = 0
    completed_shifts: int = 0
    cancelled_shifts: int = 0
    total_scheduled_hours: float = 0
    total_actual_hours: float = 0
    unique_staff_count: int = 0
    team_member_shifts: int = 0
    worker_profile_shifts: int = 0


class ExpenseCategoryTotal(BaseModel):
    category: str
    total: float = 0
    count: int = 0


class ExpenseSummary(AnalyticsSection):
    total_expenses: float = 0
    expense_count: int = 0
    average_expense: float = 0
    category_breakdown: List[ExpenseCategoryTotal] = []


class MonthlyTrend(BaseModel):
    month: str
    month_short: Optional[str] = None
    year: Optional[int] = None
    bookings: int = 0
    revenue: float = 0
    expenses: float = 0
    net: float = 0


class DashboardAnalyticsResponse(BaseModel):
    revenue: RevenueMetrics
    bookings: BookingStatistics
    staff: StaffUtilization
    expenses: ExpenseSummary
    trends: List[MonthlyTrend]


class RecentExpense(BaseModel):
    id: str
    category: str
    amount: float
    expense_date: date
    description: Optional[str] = None
