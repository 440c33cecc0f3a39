"""
Analytics dashboard schemas
"""
from typing import List
from datetime import datetime

from rentcar.schemas.common import CamelModel


class MonthlyRevenuePoint(CamelModel):
    label: str
    year: int
    month: int
    revenue: float
    bookings: int


class CarUtilization(CamelModel):
    car_id: str
    name: str
    utilization: int
    bookings: int
    revenue: float


class DailyBookings(CamelModel):
    date: str
    label: str
    bookings: int


class UserGrowthPoint(CamelModel):
    label: str
    year: int
    month: int
    users: int


class CategoryCount(CamelModel):
    name: str
    value: int


class DataTotals(CamelModel):
    bookings: int
    cars: int
    users: int


class AnalyticsResponse(CamelModel):
    """Everything the analytics tab renders"""
    generated_at: datetime
    monthly_revenue: List[MonthlyRevenuePoint]
    revenue_growth: float
    car_utilization: List[CarUtilization]
    top_cars: List[CarUtilization]
    booking_trends: List[DailyBookings]
    user_growth: List[UserGrowthPoint]
    category_distribution: List[CategoryCount]
    totals: DataTotals


class DashboardStats(CamelModel):
    """Header counters of the admin dashboard"""
    total_cars: int
    active_bookings: int
    total_users: int
    low_stock_cars: int
    revenue: float
