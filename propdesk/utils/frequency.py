"""Recurrence descriptors for scheduled maintenance.

The dashboard's recurring-task form collects a loose set of fields
(``frequencyType``, ``daysOfWeek`` as day names, ``endsType`` ...). The
backend stores a normalized descriptor::

    {
        "type": "weekly",          # hourly|daily|weekly|monthly|yearly|custom_days
        "interval": 2,             # every N units, always >= 1
        "dayOfWeek": [1, 4],       # weekly only, Sunday = 0
        "dayOfMonth": 15,          # monthly / yearly
        "monthOfYear": 3,          # yearly, 1-12
        "customDays": [1, 15],     # custom_days, days of the month
        "endsType": "never",       # never|after_occurrences|on_date
        "endsAfter": 10,           # after_occurrences only
        "endsOnDate": "2027-01-01" # on_date only
    }

Nothing here fires tasks. Dates are only computed for previews and for
advancing a recurring task after a user completes it.
"""
import calendar
import math
import re
from datetime import MAXYEAR, date, datetime, time, timedelta

DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']

FREQUENCY_TYPES = ('hourly', 'daily', 'weekly', 'monthly', 'yearly', 'custom_days')
ENDS_TYPES = ('never', 'after_occurrences', 'on_date')

# Upper bound on candidates skipped while scanning calendar-based series
MAX_SCAN = 50000
# Consecutive allowed months without a matching day before a custom_days series is treated as empty
MAX_EMPTY_PERIODS = 48

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def _to_int(value, default=None):
    """Read the leading integer of a form value, so '2.5' and '3 weeks' give 2 and 3."""
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    match = _INT_PREFIX.match(value) if isinstance(value, str) else None
    return int(match.group(1)) if match else default


def _day_index(day):
    if isinstance(day, int):
        return day if 0 <= day <= 6 else None
    name = str(day).strip().lower()
    for index, candidate in enumerate(DAY_NAMES):
        if candidate.lower() == name:
            return index
    return _day_index(_to_int(name)) if name.isdigit() else None


def is_form_shape(frequency):
    return isinstance(frequency, dict) and ('frequencyType' in frequency or 'recurring' in frequency)


def build_backend_frequency(form):
    """Translate the recurring-task form into the stored descriptor.

    ``form`` is either the flat frequency sub-form or the whole task form
    with ``recurring`` and a nested ``frequency`` dict. A non-recurring
    form yields an empty dict.
    """
    if not form:
        return {}
    if isinstance(form.get('frequency'), dict):
        if not form.get('recurring'):
            return {}
        fields = form['frequency']
    else:
        if form.get('recurring') is False:
            return {}
        fields = form

    freq_type = str(fields.get('frequencyType') or '').lower()
    if freq_type == 'custom':
        freq_type = 'custom_days'

    backend = {
        'type': freq_type,
        'interval': max(1, _to_int(fields.get('interval'), 0) or 1),
    }

    if freq_type == 'weekly' and isinstance(fields.get('daysOfWeek'), list):
        days = []
        for day in fields['daysOfWeek']:
            index = _day_index(day)
            if index is not None and index not in days:
                days.append(index)
        backend['dayOfWeek'] = days
    if freq_type == 'monthly' and fields.get('dayOfMonth'):
        backend['dayOfMonth'] = _to_int(fields['dayOfMonth'])
    if freq_type == 'yearly':
        if fields.get('dayOfMonth'):
            backend['dayOfMonth'] = _to_int(fields['dayOfMonth'])
        if fields.get('monthOfYear'):
            backend['monthOfYear'] = _to_int(fields['monthOfYear'])
    if freq_type == 'custom_days' and isinstance(fields.get('customDays'), list):
        backend['customDays'] = [d for d in (_to_int(day) for day in fields['customDays']) if d is not None]

    backend['endsType'] = fields.get('endsType') or 'never'
    if backend['endsType'] == 'after_occurrences' and fields.get('endsAfter'):
        backend['endsAfter'] = _to_int(fields['endsAfter'])
    if backend['endsType'] == 'on_date' and fields.get('endsOnDate'):
        backend['endsOnDate'] = fields['endsOnDate']
    return backend


def to_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1]
    parsed = datetime.fromisoformat(text)
    return parsed.replace(tzinfo=None)


def _js_weekday(day):
    # Python counts Monday = 0, the descriptor counts Sunday = 0
    return (day.weekday() + 1) % 7


def _add_months(year, month, months):
    total = year * 12 + (month - 1) + months
    return total // 12, total % 12 + 1


def _clamped(start, year, month, day):
    last = calendar.monthrange(year, month)[1]
    return start.replace(year=year, month=month, day=min(day, last))


def fixed_step(frequency):
    """Return the constant spacing of a series, or None for calendar-based ones."""
    freq_type = frequency.get('type')
    interval = max(1, _to_int(frequency.get('interval'), 1) or 1)
    if freq_type == 'hourly':
        return timedelta(hours=interval)
    if freq_type == 'daily':
        return timedelta(days=interval)
    if freq_type == 'weekly' and not frequency.get('dayOfWeek'):
        return timedelta(weeks=interval)
    if freq_type == 'custom_days' and not frequency.get('customDays'):
        return timedelta(days=interval)
    return None


def _calendar_candidates(frequency, start):
    freq_type = frequency.get('type')
    interval = max(1, _to_int(frequency.get('interval'), 1) or 1)

    if freq_type == 'weekly':
        days = set(frequency['dayOfWeek'])
        week_start = start.date() - timedelta(days=_js_weekday(start))
        current = start.date()
        while True:
            week_index = (current - week_start).days // 7
            if week_index % interval == 0 and _js_weekday(current) in days:
                yield datetime.combine(current, start.time())
            current += timedelta(days=1)

    elif freq_type == 'monthly':
        day = frequency.get('dayOfMonth') or start.day
        k = 0
        while True:
            year, month = _add_months(start.year, start.month, k * interval)
            if year > MAXYEAR:
                return
            candidate = _clamped(start, year, month, day)
            if candidate >= start:
                yield candidate
            k += 1

    elif freq_type == 'yearly':
        month = frequency.get('monthOfYear') or start.month
        day = frequency.get('dayOfMonth') or start.day
        k = 0
        while start.year + k * interval <= MAXYEAR:
            candidate = _clamped(start, start.year + k * interval, month, day)
            if candidate >= start:
                yield candidate
            k += 1

    elif freq_type == 'custom_days':
        days = sorted(set(frequency['customDays']))
        k = 0
        empty = 0
        # gives up once no allowed month holds any of the days, e.g. the 31st every February
        while empty < MAX_EMPTY_PERIODS:
            year, month = _add_months(start.year, start.month, k * interval)
            if year > MAXYEAR:
                return
            last = calendar.monthrange(year, month)[1]
            found = False
            for day in days:
                if day > last:
                    continue
                candidate = start.replace(year=year, month=month, day=day)
                if candidate >= start:
                    found = True
                    yield candidate
            empty = 0 if found else empty + 1
            k += 1

    else:
        raise ValueError(f"Unsupported frequency type: {freq_type!r}")


def iter_occurrences(frequency, start, after=None):
    """Yield the series' occurrences in order, starting from ``start``.

    Only occurrences strictly later than ``after`` are yielded, but end
    conditions still count the skipped ones.
    """
    start = to_datetime(start)
    after = to_datetime(after)
    if not frequency:
        if after is None or start > after:
            yield start
        return

    ends_type = frequency.get('endsType') or 'never'
    limit = _to_int(frequency.get('endsAfter')) if ends_type == 'after_occurrences' else None
    until = None
    if ends_type == 'on_date' and frequency.get('endsOnDate'):
        until = datetime.combine(to_datetime(frequency['endsOnDate']).date(), time.max)

    step = fixed_step(frequency)
    if step is not None:
        index = 0
        if after is not None and after >= start:
            index = int((after - start) // step) + 1
        while limit is None or index < limit:
            when = start + index * step
            if until is not None and when > until:
                return
            yield when
            index += 1
        return

    index = 0
    skipped = 0
    for when in _calendar_candidates(frequency, start):
        if limit is not None and index >= limit:
            return
        if until is not None and when > until:
            return
        index += 1
        if after is not None and when <= after:
            skipped += 1
            if skipped > MAX_SCAN:
                return
            continue
        yield when


def upcoming_occurrences(frequency, start, after=None, count=5):
    results = []
    if count <= 0:
        return results
    for when in iter_occurrences(frequency, start, after=after):
        results.append(when)
        if len(results) >= count:
            break
    return results


def next_occurrence(frequency, start, after=None):
    upcoming = upcoming_occurrences(frequency, start, after=after, count=1)
    return upcoming[0] if upcoming else None
