import calendar
from datetime import timezone

from marshmallow import (EXCLUDE, ValidationError, fields, post_load, pre_load, validate,
                         validates_schema)

from propdesk.models import MaintenanceCategory, ScheduledStatus, enum_values
from propdesk.utils.frequency import ENDS_TYPES, FREQUENCY_TYPES, build_backend_frequency, is_form_shape
from .base import BaseSchema, lowercase


class FrequencySchema(BaseSchema):
    """Validates the stored recurrence descriptor (camelCase keys on the wire)."""

    class Meta:
        unknown = EXCLUDE

    type = fields.String(required=True, validate=validate.OneOf(FREQUENCY_TYPES))
    interval = fields.Integer(load_default=1, validate=validate.Range(min=1, max=365))
    dayOfWeek = fields.List(fields.Integer(validate=validate.Range(min=0, max=6)))
    dayOfMonth = fields.Integer(validate=validate.Range(min=1, max=31))
    monthOfYear = fields.Integer(validate=validate.Range(min=1, max=12))
    customDays = fields.List(fields.Integer(validate=validate.Range(min=1, max=31)))
    endsType = fields.String(load_default='never', validate=validate.OneOf(ENDS_TYPES))
    endsAfter = fields.Integer(validate=validate.Range(min=1))
    endsOnDate = fields.Date()

    @pre_load
    def fill_defaults(self, data, **kwargs):
        # defaults also apply when the parent task is partially updated
        if isinstance(data, dict):
            data = {'interval': 1, 'endsType': 'never', **data}
        return data

    @validates_schema
    def check_combination(self, data, **kwargs):
        if 'type' not in data:
            raise ValidationError('Missing data for required field.', field_name='type')
        freq_type = data.get('type')
        if freq_type == 'weekly' and 'dayOfWeek' in data and not data['dayOfWeek']:
            raise ValidationError('Select at least one day of the week.', field_name='dayOfWeek')
        if freq_type == 'custom_days' and 'customDays' in data and not data['customDays']:
            raise ValidationError('Select at least one day of the month.', field_name='customDays')
        if freq_type == 'yearly' and data.get('dayOfMonth') and data.get('monthOfYear'):
            # 2000 is a leap year, so Feb 29 stays valid
            if data['dayOfMonth'] > calendar.monthrange(2000, data['monthOfYear'])[1]:
                raise ValidationError('Day does not exist in the selected month.', field_name='dayOfMonth')
        ends_type = data.get('endsType', 'never')
        if ends_type == 'after_occurrences' and not data.get('endsAfter'):
            raise ValidationError('Number of occurrences is required.', field_name='endsAfter')
        if ends_type == 'on_date' and not data.get('endsOnDate'):
            raise ValidationError('End date is required.', field_name='endsOnDate')

    @post_load
    def drop_unused(self, data, **kwargs):
        freq_type = data['type']
        keep = {
            'weekly': ('dayOfWeek',),
            'monthly': ('dayOfMonth',),
            'yearly': ('dayOfMonth', 'monthOfYear'),
            'custom_days': ('customDays',),
        }.get(freq_type, ())
        for key in ('dayOfWeek', 'dayOfMonth', 'monthOfYear', 'customDays'):
            if key not in keep:
                data.pop(key, None)
        if data.get('endsType') != 'after_occurrences':
            data.pop('endsAfter', None)
        if data.get('endsType') != 'on_date':
            data.pop('endsOnDate', None)
        if 'endsOnDate' in data:
            data['endsOnDate'] = data['endsOnDate'].isoformat()
        if 'dayOfWeek' in data:
            data['dayOfWeek'] = sorted(set(data['dayOfWeek']))
        if 'customDays' in data:
            data['customDays'] = sorted(set(data['customDays']))
        return data


class ScheduledMaintenanceSchema(BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=3, max=200))
    description = fields.String(allow_none=True)
    category = fields.String(required=True, validate=validate.OneOf(enum_values(MaintenanceCategory)))
    property_id = fields.Integer(required=True)
    unit_id = fields.Integer(allow_none=True)
    scheduled_date = fields.DateTime(required=True)
    recurring = fields.Boolean(load_default=False)
    frequency = fields.Nested(FrequencySchema, allow_none=True)
    assigned_vendor_id = fields.Integer(allow_none=True)
    status = fields.String(validate=validate.OneOf(enum_values(ScheduledStatus)))

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ('category', 'status'):
            if key in data:
                data[key] = lowercase(data[key])
        frequency = data.get('frequency')
        if is_form_shape(frequency):
            data['frequency'] = build_backend_frequency({
                'recurring': data.get('recurring', frequency.get('recurring', True)),
                'frequency': frequency,
            }) or None
        if 'recurring' in data and not data['recurring']:
            data['frequency'] = None
        elif not data.get('frequency'):
            data.pop('frequency', None)
        return data

    @validates_schema
    def frequency_for_recurring(self, data, **kwargs):
        if data.get('recurring') and not data.get('frequency') and not kwargs.get('partial'):
            raise ValidationError('Frequency is required for recurring tasks.', field_name='frequency')

    @post_load
    def naive_utc(self, data, **kwargs):
        when = data.get('scheduled_date')
        if when is not None and when.tzinfo is not None:
            data['scheduled_date'] = when.astimezone(timezone.utc).replace(tzinfo=None)
        return data
