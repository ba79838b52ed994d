"""Token-addressed views for people without an account (usually vendors).

Unknown, disabled and expired links all answer 404 so a token's
existence is never revealed.
"""
from flask import request
from flask_restful import Resource

from propdesk.models import Comment, CommentContext, MaintenanceRequest, NotificationType, ScheduledMaintenance, db
from propdesk.schemas import PublicCommentSchema, PublicUpdateSchema
from propdesk.utils.notify import notify, property_staff
from propdesk.utils.responses import fail, load_or_400, success
from . import maintenance, scheduled


def _payload():
    # Vendor pages post plain forms as often as JSON
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _load_public(model, token):
    obj = model.query.filter_by(public_token=token).first()
    if obj is None or not obj.public_link_active:
        fail(404, 'This link is invalid or has expired')
    return obj


def _public_comments(context_type, context_id):
    return [c.to_dict(public=True) for c in Comment.for_context(context_type, context_id, include_internal=False)]


def _add_comment(context_type, obj, name, message, phone, link):
    comment = Comment(context_type=context_type, context_id=obj.id, message=message,
                      external_name=name, external_phone=phone)
    db.session.add(comment)
    notify(property_staff(obj.property), f'{name} commented on "{obj.title}"',
           type=NotificationType.NEW_COMMENT, link=link, resource_type=context_type, resource_id=obj.id)
    return comment


class PublicView(Resource):
    model = None
    context_type = None

    def view(self, obj):
        data = obj.to_public_dict()
        data['comments'] = _public_comments(self.context_type, obj.id)
        return data

    def get(self, token):
        return success(self.view(_load_public(self.model, token)))


class PublicUpdate(PublicView):
    def change_status(self, obj, status):
        raise NotImplementedError

    def link(self, obj):
        raise NotImplementedError

    def post(self, token):
        obj = _load_public(self.model, token)
        data = load_or_400(PublicUpdateSchema(), _payload())

        if data.get('status'):
            self.change_status(obj, data['status'])
        if data.get('comment'):
            _add_comment(self.context_type, obj, data['name'], data['comment'], data.get('phone'), self.link(obj))

        db.session.commit()
        return success(self.view(obj), 'Update recorded. Thank you!')


class PublicComment(PublicView):
    def link(self, obj):
        raise NotImplementedError

    def post(self, token):
        obj = _load_public(self.model, token)
        data = load_or_400(PublicCommentSchema(), _payload())
        comment = _add_comment(self.context_type, obj, data['name'], data['message'], data.get('phone'),
                               self.link(obj))
        db.session.commit()
        return success(comment.to_dict(public=True), 'Comment added.', 201)


class _RequestMixin:
    model = MaintenanceRequest
    context_type = CommentContext.REQUEST.value

    def link(self, obj):
        return maintenance.request_link(obj)

    def change_status(self, obj, status):
        maintenance.change_status(obj, status, public=True)


class _ScheduledMixin:
    model = ScheduledMaintenance
    context_type = CommentContext.SCHEDULED_MAINTENANCE.value

    def link(self, obj):
        return f'/scheduled-maintenance/{obj.id}'

    def change_status(self, obj, status):
        scheduled.change_scheduled_status(obj, status, public=True)


class PublicRequestView(_RequestMixin, PublicView):
    pass


class PublicRequestUpdate(_RequestMixin, PublicUpdate):
    pass


class PublicRequestComment(_RequestMixin, PublicComment):
    pass


class PublicScheduledView(_ScheduledMixin, PublicView):
    pass


class PublicScheduledUpdate(_ScheduledMixin, PublicUpdate):
    pass


class PublicScheduledComment(_ScheduledMixin, PublicComment):
    pass
