"""Analytics services package"""
from rentcar.services.analytics.aggregator import (
    build_analytics,
    summarize_dashboard,
    monthly_revenue,
    revenue_growth,
    car_utilization,
    daily_bookings,
    user_growth,
    category_distribution
)

__all__ = [
    'build_analytics',
    'summarize_dashboard',
    'monthly_revenue',
    'revenue_growth',
    'car_utilization',
    'daily_bookings',
    'user_growth',
    'category_distribution'
]
