import math
from datetime import datetime, time, timezone

from flask import request
from flask_restful import abort
from marshmallow import ValidationError

from propdesk.extensions import db

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def success(data=None, message=None, status=200):
    body = {'success': True, 'data': data}
    if message:
        body['message'] = message
    return body, status


def fail(status, message, **extra):
    """Abort the current request with the standard error body."""
    abort(status, success=False, message=message, **extra)


def load_or_400(schema, payload=None, partial=False):
    if payload is None:
        payload = request.get_json(silent=True) or {}
    try:
        return schema.load(payload, partial=partial)
    except ValidationError as err:
        fail(400, 'Validation failed', errors=err.messages)


def get_or_404(model, object_id, label=None):
    obj = db.session.get(model, object_id)
    if obj is None:
        fail(404, f"{label or model.__name__} not found")
    return obj


def arg_bool(name):
    value = request.args.get(name)
    if value is None or value == '':
        return None
    return value.lower() in ('1', 'true', 'yes')


def page_args():
    page = request.args.get('page', 1, type=int) or 1
    limit = request.args.get('limit', DEFAULT_LIMIT, type=int) or DEFAULT_LIMIT
    return max(page, 1), min(max(limit, 1), MAX_LIMIT)


def page_body(items, total, page, limit):
    return {
        'success': True,
        'count': len(items),
        'total': total,
        'page': page,
        'limit': limit,
        'pages': max(1, math.ceil(total / limit)) if total else 1,
        'data': items,
    }, 200


def paginated(query, serialize):
    page, limit = page_args()
    pagination = query.paginate(page=page, per_page=limit, error_out=False)
    return page_body([serialize(item) for item in pagination.items], pagination.total, page, limit)


def paginated_list(items):
    """Page through an already materialised list."""
    page, limit = page_args()
    start = (page - 1) * limit
    return page_body(items[start:start + limit], len(items), page, limit)


def arg_date(name, end_of_day=False):
    """Parse an ISO date/datetime query argument; 400 when malformed."""
    value = request.args.get(name)
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        fail(400, f'Invalid date for {name}: {value}')
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    if end_of_day and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed
