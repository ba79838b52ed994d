import logging
from datetime import datetime

from flask import current_app, request
from flask_restful import Resource
from sqlalchemy import or_

from propdesk.models import (STAFF_ROLES, Invite, InviteRole, InviteStatus, NotificationType, Property, Unit, User,
                             Vendor, db)
from propdesk.schemas import InviteAcceptSchema, InviteSendSchema, InviteTokenSchema
from propdesk.utils.audit import record_audit
from propdesk.utils.mailer import send_invite_email
from propdesk.utils.notify import notify
from propdesk.utils.permissions import current_user, managed_property_ids, require_manager, roles_required
from propdesk.utils.responses import fail, get_or_404, load_or_400, paginated, success
from .auth import auth_payload
from .properties import link_user

logger = logging.getLogger(__name__)


def _invite_for_token(token):
    """Resolve a raw token to a still-usable invite, or abort."""
    invite = Invite.find_by_token(token)
    if invite is None:
        fail(404, 'Invite not found')
    if invite.expire_if_due():
        db.session.commit()
    if invite.status == InviteStatus.EXPIRED.value:
        fail(410, 'This invite has expired')
    if invite.status != InviteStatus.PENDING.value:
        fail(400, f'This invite has already been {invite.status}')
    return invite


def _deliver(invite, token):
    link, result = send_invite_email(invite, token)
    if not result.get('success'):
        logger.warning('Invite %s for %s was not emailed: %s', invite.id, invite.email, result.get('error'))
    return {
        'invite': invite.to_dict(),
        'invite_link': link,
        'email_sent': bool(result.get('success')),
    }


def _managed_invite(invite_id):
    user = current_user()
    invite = get_or_404(Invite, invite_id, 'Invite')
    if invite.generated_by_id != user.id:
        require_manager(user, invite.property_id)
    return user, invite


class InviteSendResource(Resource):
    @roles_required(*STAFF_ROLES)
    def post(self):
        user = current_user()
        data = load_or_400(InviteSendSchema())
        prop = get_or_404(Property, data['property_id'], 'Property')
        require_manager(user, prop.id)

        unit = None
        if data.get('unit_id'):
            unit = get_or_404(Unit, data['unit_id'], 'Unit')
            if unit.property_id != prop.id:
                fail(400, 'Unit does not belong to this property')

        pending = Invite.query.filter_by(email=data['email'], property_id=prop.id, role=data['role'],
                                         status=InviteStatus.PENDING.value).all()
        for existing in pending:
            existing.expire_if_due()
        if any(i.status == InviteStatus.PENDING.value for i in pending):
            fail(409, 'A pending invite already exists for this email')

        invite = Invite(email=data['email'], role=data['role'], property=prop, unit=unit, generated_by=user)
        token = invite.issue_token(current_app.config['INVITE_EXPIRY_DAYS'])
        db.session.add(invite)
        db.session.flush()
        record_audit('send', 'invite', invite.id, user=user, extra={'email': invite.email, 'role': invite.role})
        db.session.commit()

        return success(_deliver(invite, token), 'Invite sent successfully!', 201)


class InviteListResource(Resource):
    @roles_required(*STAFF_ROLES)
    def get(self):
        user = current_user()
        query = Invite.query
        ids = managed_property_ids(user)
        if ids is not None:
            query = query.filter(or_(Invite.generated_by_id == user.id, Invite.property_id.in_(ids or [-1])))

        status = request.args.get('status')
        if status:
            query = query.filter(Invite.status == status.lower())
        property_id = request.args.get('property_id', type=int)
        if property_id:
            query = query.filter(Invite.property_id == property_id)

        return paginated(query.order_by(Invite.created_at.desc(), Invite.id.desc()), lambda i: i.to_dict())


class InviteRevokeResource(Resource):
    @roles_required(*STAFF_ROLES)
    def delete(self, invite_id):
        user, invite = _managed_invite(invite_id)
        if invite.status != InviteStatus.PENDING.value:
            fail(400, 'Only pending invites can be revoked')
        invite.status = InviteStatus.REVOKED.value
        record_audit('revoke', 'invite', invite.id, user=user)
        db.session.commit()
        return success(invite.to_dict(), 'Invite revoked.')


class InviteResendResource(Resource):
    @roles_required(*STAFF_ROLES)
    def post(self, invite_id):
        user, invite = _managed_invite(invite_id)
        invite.expire_if_due()
        if invite.status not in (InviteStatus.PENDING.value, InviteStatus.EXPIRED.value):
            fail(400, f'Cannot resend an invite that was {invite.status}')

        token = invite.issue_token(current_app.config['INVITE_EXPIRY_DAYS'])
        invite.status = InviteStatus.PENDING.value
        invite.resend_count += 1
        record_audit('resend', 'invite', invite.id, user=user)
        db.session.commit()
        return success(_deliver(invite, token), 'Invite resent.')


class InviteVerifyResource(Resource):
    def get(self, token):
        invite = _invite_for_token(token)
        return success({
            'email': invite.email,
            'role': invite.role,
            'property_name': invite.property.name if invite.property else None,
            'unit_name': invite.unit.unit_name if invite.unit else None,
            'invited_by': invite.generated_by.full_name if invite.generated_by else None,
            'expires_at': invite.expires_at.isoformat(),
            'user_exists': User.query.filter_by(email=invite.email).first() is not None,
        })


def _accept_vendor(invite, data):
    vendor = Vendor.query.filter_by(email=invite.email).first()
    if vendor is None:
        name = ' '.join(filter(None, (data.get('first_name'), data.get('last_name')))) or invite.email
        if not data.get('phone'):
            fail(400, 'Validation failed', errors={'phone': ['Phone is required for vendors.']})
        vendor = Vendor(name=name, email=invite.email, phone=data['phone'], services=[],
                        added_by_id=invite.generated_by_id)
        db.session.add(vendor)
        db.session.flush()
    return vendor


def _accept_user(invite, data):
    user = User.query.filter_by(email=invite.email).first()
    if user is None:
        missing = [f for f in ('password', 'first_name', 'last_name') if not data.get(f)]
        if missing:
            fail(400, 'Validation failed', errors={f: ['Missing data for required field.'] for f in missing})
        user = User(email=invite.email, first_name=data['first_name'], last_name=data['last_name'],
                    phone=data.get('phone'), role=invite.role, email_verified=True)
        user.set_password(data['password'])
        db.session.add(user)
        db.session.flush()
    elif not user.is_active:
        fail(403, 'Account is deactivated')

    if invite.property is not None:
        link_user(user, invite.property, invite.role, invite.unit)
    return user


class InviteAcceptResource(Resource):
    def post(self):
        data = load_or_400(InviteAcceptSchema())
        invite = _invite_for_token(data['token'])

        if invite.role == InviteRole.VENDOR.value:
            vendor = _accept_vendor(invite, data)
            accepted_by, payload = None, {'vendor': vendor.to_dict()}
        else:
            accepted_by = _accept_user(invite, data)
            payload = None

        invite.status = InviteStatus.ACCEPTED.value
        invite.accepted_at = datetime.utcnow()
        invite.accepted_by = accepted_by
        record_audit('accept', 'invite', invite.id, user=accepted_by, extra={'email': invite.email})
        notify([invite.generated_by], f'{invite.email} accepted your invitation.',
               type=NotificationType.INVITE_ACCEPTED, link='/invites', resource_type='invite',
               resource_id=invite.id)
        db.session.commit()

        if payload is None:
            payload = auth_payload(accepted_by)
        return success(payload, 'Invite accepted. Welcome aboard!')


class InviteDeclineResource(Resource):
    def post(self):
        data = load_or_400(InviteTokenSchema())
        invite = _invite_for_token(data['token'])
        invite.status = InviteStatus.DECLINED.value
        record_audit('decline', 'invite', invite.id, extra={'email': invite.email})
        db.session.commit()
        return success(None, 'Invite declined.')
