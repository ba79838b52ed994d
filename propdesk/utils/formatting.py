"""Display decorations added to API records before they are returned.

The dashboards render these strings directly, so every decorator keeps
the raw fields untouched and only adds new keys.
"""
from propdesk.utils.frequency import to_datetime

DATE_FORMAT = '%b %d, %Y'

STATUS_DISPLAY = {
    'new': 'New',
    'assigned': 'Assigned',
    'in_progress': 'In Progress',
    'completed': 'Completed',
    'verified': 'Verified',
    'reopened': 'Reopened',
    'canceled': 'Canceled',
    'archived': 'Archived',
    'scheduled': 'Scheduled',
    'paused': 'Paused',
}

STATUS_CLASS = {
    'new': 'bg-blue-100 text-blue-800',
    'assigned': 'bg-purple-100 text-purple-800',
    'in_progress': 'bg-yellow-100 text-yellow-800',
    'completed': 'bg-green-100 text-green-800',
    'verified': 'bg-green-200 text-green-900',
    'reopened': 'bg-orange-100 text-orange-800',
    'canceled': 'bg-red-100 text-red-800',
    'archived': 'bg-gray-100 text-gray-800',
    'scheduled': 'bg-blue-100 text-blue-800',
    'paused': 'bg-gray-200 text-gray-800',
}

CATEGORY_DISPLAY = {
    'plumbing': 'Plumbing',
    'electrical': 'Electrical',
    'hvac': 'HVAC',
    'appliance': 'Appliance',
    'structural': 'Structural',
    'landscaping': 'Landscaping',
    'pest_control': 'Pest Control',
    'cleaning': 'Cleaning',
    'security': 'Safety & Security',
    'general': 'General Maintenance',
    'scheduled': 'Scheduled',
}

ONBOARDING_CATEGORY_DISPLAY = {
    'sop': 'Standard Operating Procedure',
    'training': 'Training Material',
    'guidelines': 'Guidelines',
    'policy': 'Policy Document',
    'welcome': 'Welcome Package',
}

VISIBILITY_DISPLAY = {
    'all_tenants': 'All Tenants',
    'property_tenants': 'Property Tenants',
    'unit_tenants': 'Unit Tenants',
    'specific_tenant': 'Specific Tenant',
}

DEFAULT_CLASS = 'bg-gray-100 text-gray-800'


def humanize(value, fallback='Unknown'):
    if not value:
        return fallback
    text = str(value).replace('_', ' ')
    return text[0].upper() + text[1:]


def _lookup(table, value):
    return table.get(str(value).lower()) if value else None


def format_date(value, fallback='N/A'):
    try:
        when = to_datetime(value) if value else None
    except (TypeError, ValueError):
        return fallback
    return when.strftime(DATE_FORMAT) if when else fallback


def _person_name(person, fallback):
    if not person:
        return fallback
    name = f"{person.get('first_name') or ''} {person.get('last_name') or ''}".strip()
    return name or person.get('email') or fallback


def format_request(data):
    if data is None:
        return None
    model = data.get('assigned_to_model')
    assigned = data.get('assigned_to')
    if model == 'Vendor' and assigned:
        assignee_name = assigned.get('name') or 'Unknown Vendor'
    elif model == 'User' and assigned:
        assignee_name = _person_name(assigned, 'Unknown User')
    else:
        assignee_name = 'Unassigned'
    return {
        **data,
        'status_display': _lookup(STATUS_DISPLAY, data.get('status')) or humanize(data.get('status')),
        'status_class': _lookup(STATUS_CLASS, data.get('status')) or DEFAULT_CLASS,
        'category_display': _lookup(CATEGORY_DISPLAY, data.get('category')) or humanize(data.get('category')),
        'priority_display': humanize(data.get('priority')),
        'created_at_formatted': format_date(data.get('created_at')),
        'updated_at_formatted': format_date(data.get('updated_at')),
        'creator_name': _person_name(data.get('created_by'), 'Unknown Creator'),
        'assignee_name': assignee_name,
        'property_name': (data.get('property') or {}).get('name') or 'Unknown Property',
        'unit_name': (data.get('unit') or {}).get('unit_name') or 'No Unit',
    }


def format_scheduled(data):
    if data is None:
        return None
    return {
        **data,
        'status_display': _lookup(STATUS_DISPLAY, data.get('status')) or humanize(data.get('status')),
        'status_class': _lookup(STATUS_CLASS, data.get('status')) or DEFAULT_CLASS,
        'category_display': _lookup(CATEGORY_DISPLAY, data.get('category')) or humanize(data.get('category')),
        'scheduled_date_formatted': format_date(data.get('scheduled_date')),
        'next_due_date_formatted': format_date(data.get('next_due_date')),
    }


def format_onboarding_document(document):
    if document is None:
        return None
    completed = bool(document.get('is_completed'))
    file_info = document.get('file') or {}
    return {
        **document,
        'formatted_created_at': format_date(document.get('created_at')),
        'formatted_completed_at': format_date(document.get('completed_at')),
        'status_class': 'bg-green-100 text-green-800' if completed else 'bg-yellow-100 text-yellow-800',
        'status_display': 'Completed' if completed else 'Pending',
        'creator_name': _person_name(document.get('created_by'), 'Unknown'),
        'property_name': (document.get('property') or {}).get('name') or 'All Properties',
        'unit_name': (document.get('unit') or {}).get('unit_name') or 'All Units',
        'tenant_name': _person_name(document.get('tenant'), 'All Tenants'),
        'visibility_display': _lookup(VISIBILITY_DISPLAY, document.get('visibility'))
        or humanize(document.get('visibility')),
        'category_display': _lookup(ONBOARDING_CATEGORY_DISPLAY, document.get('category'))
        or humanize(document.get('category')),
        'file_name': file_info.get('original_name') or 'Document',
    }
