"""
Analytics aggregation for the admin dashboard

Pure functions over already-fetched bookings, cars and users. Nothing is
persisted; results depend only on the inputs and the `now` reference.
"""
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from rentcar.services.constants import ACTIVE_BOOKING_STATUSES, BookingStatus
from rentcar.services.inventory.reconciliation import booking_car_id


def _to_datetime(value: Any, now: datetime) -> Optional[datetime]:
    """
    Coerce a stored timestamp to a datetime comparable with `now`.

    Naive values are read in now's timezone; aware values are converted to
    it. With a naive `now`, aware values are converted to naive UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None

    if now.tzinfo is None:
        if dt.tzinfo is not None:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        return dt
    if dt.tzinfo is None:
        return dt.replace(tzinfo=now.tzinfo)
    return dt.astimezone(now.tzinfo)


def _booking_date(booking: Dict[str, Any]) -> Any:
    return booking.get('created_at') or booking.get('start_date')


def _month_window(now: datetime, months: int) -> List[Tuple[int, int]]:
    """(year, month) pairs for the trailing window, oldest first"""
    current = now.year * 12 + now.month - 1
    return [divmod(current - offset, 12) for offset in range(months - 1, -1, -1)]


def _month_label(year: int, month_index: int) -> str:
    return date(year, month_index + 1, 1).strftime('%b %Y')


def monthly_revenue(bookings: Iterable[Dict[str, Any]], now: datetime, months: int = 12) -> List[Dict[str, Any]]:
    window = _month_window(now, months)
    buckets = {key: {'revenue': 0.0, 'bookings': 0} for key in window}

    for booking in bookings:
        dt = _to_datetime(_booking_date(booking), now)
        if dt is None:
            continue
        key = (dt.year, dt.month - 1)
        if key in buckets:
            buckets[key]['revenue'] += float(booking.get('total_amount') or 0)
            buckets[key]['bookings'] += 1

    return [
        {
            'label': _month_label(year, month_index),
            'year': year,
            'month': month_index + 1,
            'revenue': round(buckets[(year, month_index)]['revenue'], 2),
            'bookings': buckets[(year, month_index)]['bookings'],
        }
        for year, month_index in window
    ]


def revenue_growth(series: List[Dict[str, Any]]) -> float:
    """Month-over-month revenue change in percent; 0 without a previous month"""
    if len(series) < 2:
        return 0.0
    previous = series[-2]['revenue']
    current = series[-1]['revenue']
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def car_utilization(bookings: Iterable[Dict[str, Any]], cars: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    active_by_car: Dict[Any, List[Dict[str, Any]]] = defaultdict(list)
    for booking in bookings:
        if booking.get('status') in ACTIVE_BOOKING_STATUSES:
            active_by_car[booking_car_id(booking)].append(booking)

    results = []
    for car in cars:
        quantity = car.get('quantity') or 1
        available = car.get('available') or 0
        rate = (quantity - available) / quantity * 100
        car_bookings = active_by_car.get(car.get('id'), [])

        results.append({
            'car_id': car.get('id'),
            'name': car.get('name') or f"Car {car.get('id')}",
            'utilization': int(max(0.0, min(100.0, rate)) + 0.5),
            'bookings': len(car_bookings),
            'revenue': round(sum(float(b.get('total_amount') or 0) for b in car_bookings), 2),
        })
    return results


def top_cars_by_revenue(utilization: List[Dict[str, Any]], limit: int = 5) -> List[Dict[str, Any]]:
    return sorted(utilization, key=lambda c: c['revenue'], reverse=True)[:limit]


def daily_bookings(bookings: Iterable[Dict[str, Any]], now: datetime, days: int = 30) -> List[Dict[str, Any]]:
    today = now.date()
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    counts = dict.fromkeys(window, 0)

    for booking in bookings:
        dt = _to_datetime(_booking_date(booking), now)
        if dt is not None and dt.date() in counts:
            counts[dt.date()] += 1

    return [
        {'date': day.isoformat(), 'label': f"{day.strftime('%b')} {day.day}", 'bookings': counts[day]}
        for day in window
    ]


def user_growth(users: Iterable[Dict[str, Any]], now: datetime, months: int = 12) -> List[Dict[str, Any]]:
    window = _month_window(now, months)
    counts = dict.fromkeys(window, 0)

    for user in users:
        dt = _to_datetime(user.get('join_date') or user.get('created_at'), now)
        if dt is None:
            continue
        key = (dt.year, dt.month - 1)
        if key in counts:
            counts[key] += 1

    return [
        {'label': _month_label(year, month_index), 'year': year, 'month': month_index + 1, 'users': counts[(year, month_index)]}
        for year, month_index in window
    ]


def category_distribution(cars: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Cars per category label, in order of first appearance"""
    counts: Dict[str, int] = {}
    for car in cars:
        label = car.get('category') or car.get('type') or 'Other'
        counts[label] = counts.get(label, 0) + 1
    return [{'name': name, 'value': value} for name, value in counts.items()]


def build_analytics(
    bookings: List[Dict[str, Any]],
    cars: List[Dict[str, Any]],
    users: List[Dict[str, Any]],
    now: datetime,
    months: int = 12,
    days: int = 30,
    top_n: int = 5,
) -> Dict[str, Any]:
    """Assemble every analytics series from full collection scans"""
    revenue_series = monthly_revenue(bookings, now, months)
    utilization = car_utilization(bookings, cars)

    return {
        'generated_at': now,
        'monthly_revenue': revenue_series,
        'revenue_growth': revenue_growth(revenue_series),
        'car_utilization': utilization,
        'top_cars': top_cars_by_revenue(utilization, top_n),
        'booking_trends': daily_bookings(bookings, now, days),
        'user_growth': user_growth(users, now, months),
        'category_distribution': category_distribution(cars),
        'totals': {'bookings': len(bookings), 'cars': len(cars), 'users': len(users)},
    }


def summarize_dashboard(
    bookings: List[Dict[str, Any]],
    cars: List[Dict[str, Any]],
    users: List[Dict[str, Any]],
    low_stock_threshold: int = 2,
) -> Dict[str, Any]:
    """Header counters: fleet size, confirmed bookings and revenue, low stock"""
    confirmed = [b for b in bookings if b.get('status') == BookingStatus.CONFIRMED]
    return {
        'total_cars': len(cars),
        'active_bookings': len(confirmed),
        'total_users': len(users),
        'low_stock_cars': sum(1 for c in cars if (c.get('quantity') or 0) <= low_stock_threshold),
        'revenue': round(sum(float(b.get('total_amount') or 0) for b in confirmed), 2),
    }
