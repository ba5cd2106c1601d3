"""
Reading Status Services

Daily status, trend detection, weekly summaries and monthly completion
calendars built from lists of readings. Readings are any objects with
``metric_id``, ``value`` and ``recorded_at`` attributes.
"""

import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta

from waterops.services.evaluation import severity_for
from waterops.services.parameters import PARAMETERS, DEFAULT_PARAMETER_ORDER, default_thresholds

TREND_WINDOW = 7
TREND_MIN_POINTS = 3
WEEKLY_STABLE_PCT = 5.0


def classify_trend(values, parameter_key):
    """Classify the most recent readings as rising, falling or stable.

    ``values`` is chronological (oldest first). Returns None with fewer than
    three values.
    """
    recent = list(values)[-TREND_WINDOW:]
    if len(recent) < TREND_MIN_POINTS:
        return None

    param = PARAMETERS[parameter_key]
    oldest_avg = sum(recent[:3]) / 3
    newest_avg = sum(recent[-3:]) / 3
    diff = newest_avg - oldest_avg
    sensitivity = (param['default_max'] - param['default_min']) * 0.1

    if diff > sensitivity:
        return 'rising'
    if diff < -sensitivity:
        return 'falling'
    return 'stable'


def range_status(value, low, high, alarm=None):
    """'normal' inside [low, high]; outside it 'warning', or 'critical' past half the range.

    A None bound leaves that side open. A value outside ``alarm`` is always
    'critical'.
    """
    if alarm and severity_for(value, alarm=alarm) == 'alarm':
        return 'critical'
    below = low is not None and value < low
    above = high is not None and value > high
    if not (below or above):
        return 'normal'
    if low is None or high is None:
        return 'warning'
    deviation = low - value if below else value - high
    return 'critical' if deviation > (high - low) * 0.5 else 'warning'


def daily_status(readings, thresholds=None, today=None, keys=None):
    """Per-parameter status for ``today``.

    ``thresholds`` maps parameter key to ``{'min': .., 'max': ..}``; keys
    without an entry use the catalog watch band. Values outside the catalog
    alarm band are always 'critical'.
    """
    today = today or datetime.utcnow().date()
    limits = default_thresholds()
    limits.update(thresholds or {})

    by_metric = defaultdict(list)
    for reading in readings:
        by_metric[reading.metric_id].append(reading)

    results = []
    for key in keys or DEFAULT_PARAMETER_ORDER:
        metric_readings = sorted(by_metric.get(key, []), key=lambda r: r.recorded_at)
        todays = [r for r in metric_readings if r.recorded_at.date() == today]
        latest_today = todays[-1] if todays else None
        latest = latest_today or (metric_readings[-1] if metric_readings else None)

        if latest_today is None:
            status = 'missing'
        else:
            limit = limits.get(key) or {}
            alarm = PARAMETERS[key].get('alarm') if key in PARAMETERS else None
            status = range_status(latest_today.value, limit.get('min'), limit.get('max'), alarm)

        results.append({
            'metric_id': key,
            'latest_value': latest.value if latest else None,
            'status': status,
            'last_updated': latest.recorded_at.isoformat() if latest else None,
            'trend': classify_trend([r.value for r in metric_readings], key),
        })
    return results


def _average(values):
    return sum(values) / len(values) if values else None


def week_start_for(day):
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def weekly_summary(readings, week_start=None, today=None, keys=None):
    """Summarise one Monday-based week against the week before it."""
    today = today or datetime.utcnow().date()
    week_start = week_start_for(week_start or today)
    week_days = [week_start + timedelta(days=i) for i in range(7)]
    prev_start = week_start - timedelta(days=7)

    by_day = defaultdict(list)
    current = defaultdict(list)
    previous = defaultdict(list)
    for reading in readings:
        day = reading.recorded_at.date()
        if week_start <= day <= week_days[-1]:
            by_day[day].append(reading)
            current[reading.metric_id].append(reading.value)
        elif prev_start <= day < week_start:
            previous[reading.metric_id].append(reading.value)

    past_days = [d for d in week_days if d < today]
    missing_days = [d for d in past_days if not by_day.get(d)]
    if past_days:
        completion = round((len(past_days) - len(missing_days)) / len(past_days) * 100)
    else:
        completion = 100

    metrics = {}
    for key in keys or DEFAULT_PARAMETER_ORDER:
        values = current.get(key, [])
        current_avg = _average(values)
        previous_avg = _average(previous.get(key, []))

        trend = None
        if current_avg is not None and previous_avg:
            change = (current_avg - previous_avg) / previous_avg * 100
            if abs(change) < WEEKLY_STABLE_PCT:
                trend = 'stable'
            elif change > 0:
                trend = 'up'
            else:
                trend = 'down'

        metrics[key] = {
            'current_avg': current_avg,
            'previous_avg': previous_avg,
            'trend': trend,
            'min': min(values) if values else None,
            'max': max(values) if values else None,
            'count': len(values),
        }

    return {
        'week_start': week_start.isoformat(),
        'week_end': week_days[-1].isoformat(),
        'days': [
            {'date': d.isoformat(), 'count': len(by_day.get(d, [])), 'is_today': d == today}
            for d in week_days
        ],
        'missing_days': [d.isoformat() for d in missing_days],
        'completion_percentage': completion,
        'metrics': metrics,
    }


def day_status(day_readings, day, today, expected_count):
    if day > today:
        return 'future'
    if not day_readings:
        return 'today-pending' if day == today else 'missing'
    if len({r.metric_id for r in day_readings}) >= expected_count:
        return 'complete'
    return 'partial'


def monthly_calendar(readings, year, month, today=None, expected_keys=None):
    """Per-day completion status for a month and its completion rate.

    The rate counts complete and partial days over past days, excluding today.
    """
    today = today or datetime.utcnow().date()
    expected_count = len(expected_keys or DEFAULT_PARAMETER_ORDER)
    days_in_month = calendar.monthrange(year, month)[1]

    by_day = defaultdict(list)
    for reading in readings:
        by_day[reading.recorded_at.date()].append(reading)

    days = []
    counts = {'complete': 0, 'partial': 0, 'missing': 0}
    past_days = 0
    for n in range(1, days_in_month + 1):
        day = date(year, month, n)
        status = day_status(by_day.get(day, []), day, today, expected_count)
        days.append({'date': day.isoformat(), 'status': status, 'count': len(by_day.get(day, []))})
        if day < today:
            past_days += 1
            if status in counts:
                counts[status] += 1

    if past_days:
        rate = round((counts['complete'] + counts['partial']) / past_days * 100)
    else:
        rate = 100

    return {
        'year': year,
        'month': month,
        'days': days,
        'stats': dict(counts, total_days=past_days, completion_rate=rate),
    }
