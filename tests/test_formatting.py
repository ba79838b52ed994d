from propdesk.utils.formatting import format_date, format_onboarding_document, format_request, format_scheduled


def test_format_date():
    assert format_date('2026-03-05T10:00:00') == 'Mar 05, 2026'
    assert format_date('2026-03-05T10:00:00Z') == 'Mar 05, 2026'
    assert format_date(None) == 'N/A'
    assert format_date('not a date') == 'N/A'


def test_format_request_defaults():
    data = format_request({'status': 'in_progress', 'category': 'pest_control', 'priority': 'urgent'})
    assert data['status_display'] == 'In Progress'
    assert data['status_class'] == 'bg-yellow-100 text-yellow-800'
    assert data['category_display'] == 'Pest Control'
    assert data['priority_display'] == 'Urgent'
    assert data['creator_name'] == 'Unknown Creator'
    assert data['assignee_name'] == 'Unassigned'
    assert data['property_name'] == 'Unknown Property'
    assert data['unit_name'] == 'No Unit'


def test_format_request_names():
    data = format_request({
        'status': 'assigned',
        'category': 'plumbing',
        'priority': 'low',
        'created_by': {'first_name': 'Jane', 'last_name': 'Doe'},
        'assigned_to_model': 'Vendor',
        'assigned_to': {'name': 'Quick Plumbing'},
        'property': {'name': 'Sunset Apartments'},
        'unit': {'unit_name': 'A1'},
    })
    assert data['creator_name'] == 'Jane Doe'
    assert data['assignee_name'] == 'Quick Plumbing'
    assert data['property_name'] == 'Sunset Apartments'
    assert data['unit_name'] == 'A1'
    assert data['status'] == 'assigned'


def test_format_scheduled():
    data = format_scheduled({'status': 'paused', 'category': 'hvac', 'scheduled_date': '2026-01-01T09:00:00',
                             'next_due_date': None})
    assert data['status_display'] == 'Paused'
    assert data['category_display'] == 'HVAC'
    assert data['scheduled_date_formatted'] == 'Jan 01, 2026'
    assert data['next_due_date_formatted'] == 'N/A'


def test_format_onboarding_document_pending_defaults():
    data = format_onboarding_document({
        'category': 'sop',
        'visibility': 'all_tenants',
        'is_completed': False,
        'created_at': '2026-02-01T00:00:00',
    })
    assert data['formatted_created_at'] == 'Feb 01, 2026'
    assert data['formatted_completed_at'] == 'N/A'
    assert data['status_display'] == 'Pending'
    assert data['creator_name'] == 'Unknown'
    assert data['property_name'] == 'All Properties'
    assert data['unit_name'] == 'All Units'
    assert data['tenant_name'] == 'All Tenants'
    assert data['visibility_display'] == 'All Tenants'
    assert data['category_display'] == 'Standard Operating Procedure'
    assert data['file_name'] == 'Document'


def test_format_onboarding_document_completed():
    data = format_onboarding_document({
        'category': 'welcome',
        'visibility': 'specific_tenant',
        'is_completed': True,
        'completed_at': '2026-02-03T12:00:00',
        'tenant': {'first_name': 'Jane', 'last_name': 'Doe'},
        'file': {'original_name': 'welcome.pdf'},
    })
    assert data['status_display'] == 'Completed'
    assert data['status_class'] == 'bg-green-100 text-green-800'
    assert data['formatted_completed_at'] == 'Feb 03, 2026'
    assert data['tenant_name'] == 'Jane Doe'
    assert data['file_name'] == 'welcome.pdf'
