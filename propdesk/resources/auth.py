import logging
from datetime import datetime

from flask import current_app
from flask_jwt_extended import create_access_token, jwt_required
from flask_restful import Resource

from propdesk.models import User, db
from propdesk.schemas import (ChangePasswordSchema, ForgotPasswordSchema, LoginSchema, NewPasswordSchema,
                              RegisterSchema, UserSchema)
from propdesk.utils.audit import record_audit
from propdesk.utils.mailer import send_password_reset_email, send_verification_email
from propdesk.utils.permissions import current_user
from propdesk.utils.responses import fail, load_or_400, success
from propdesk.utils.tokens import hash_token

logger = logging.getLogger(__name__)

user_schema = UserSchema()


def auth_payload(user):
    return {
        'token': create_access_token(identity=str(user.id), additional_claims={'role': user.role}),
        'user': user_schema.dump(user),
    }


class RegisterResource(Resource):
    def post(self):
        data = load_or_400(RegisterSchema())

        if User.query.filter_by(email=data['email']).first():
            fail(409, 'User already exists')

        user = User(
            email=data['email'],
            first_name=data['first_name'],
            last_name=data['last_name'],
            phone=data.get('phone'),
            role=data['role'],
        )
        user.set_password(data['password'])

        db.session.add(user)
        db.session.flush()
        record_audit('register', 'user', user.id, user=user)
        db.session.commit()

        return success(auth_payload(user), 'Account created successfully!', 201)


class LoginResource(Resource):
    def post(self):
        data = load_or_400(LoginSchema())

        user = User.query.filter_by(email=data['email']).first()

        if not user or not user.check_password(data['password']):
            logger.info('Failed login for %s', data['email'])
            fail(401, 'Invalid credentials')
        if not user.is_active:
            fail(403, 'Account is deactivated')
        if not user.is_approved and not user.is_admin:
            fail(403, 'Account is pending approval')

        user.last_login_at = datetime.utcnow()
        record_audit('login', 'user', user.id, user=user)
        db.session.commit()

        return success(auth_payload(user), 'Logged in successfully!')


class MeResource(Resource):
    @jwt_required()
    def get(self):
        return success(user_schema.dump(current_user()))


class LogoutResource(Resource):
    @jwt_required()
    def post(self):
        user = current_user()
        record_audit('logout', 'user', user.id, user=user)
        db.session.commit()
        return success(None, 'Logged out successfully.')


class ForgotPasswordResource(Resource):
    def post(self):
        data = load_or_400(ForgotPasswordSchema())
        user = User.query.filter_by(email=data['email']).first()

        if user and user.is_active:
            token = user.issue_reset_token(current_app.config['PASSWORD_RESET_EXPIRY_HOURS'])
            record_audit('password_reset_requested', 'user', user.id, user=user)
            db.session.commit()
            send_password_reset_email(user, token)

        # Same answer whether or not the account exists
        return success(None, 'If an account exists for that email, a reset link has been sent.')


class ResetPasswordResource(Resource):
    def post(self, token):
        data = load_or_400(NewPasswordSchema())
        user = User.query.filter_by(reset_token_hash=hash_token(token)).first()

        if not user or not user.reset_token_expires_at or user.reset_token_expires_at <= datetime.utcnow():
            fail(400, 'Password reset token is invalid or has expired')

        user.set_password(data['new_password'])
        user.clear_reset_token()
        record_audit('password_reset', 'user', user.id, user=user)
        db.session.commit()

        return success(None, 'Password has been reset.')


class ChangePasswordResource(Resource):
    @jwt_required()
    def put(self):
        user = current_user()
        data = load_or_400(ChangePasswordSchema())

        if not user.check_password(data['current_password']):
            fail(400, 'Current password is incorrect')
        if data['current_password'] == data['new_password']:
            fail(400, 'New password must differ from the current one')

        user.set_password(data['new_password'])
        user.clear_reset_token()
        record_audit('password_change', 'user', user.id, user=user)
        db.session.commit()

        return success(None, 'Password changed successfully.')


class SendVerificationEmailResource(Resource):
    @jwt_required()
    def post(self):
        user = current_user()
        if user.email_verified:
            fail(400, 'Email is already verified')

        token = user.issue_verification_token(current_app.config['EMAIL_VERIFICATION_EXPIRY_HOURS'])
        record_audit('verification_requested', 'user', user.id, user=user)
        db.session.commit()

        result = send_verification_email(user, token)
        return success({'email_sent': result['success']}, 'Verification email sent.')


class VerifyEmailResource(Resource):
    def get(self, token):
        user = User.query.filter_by(verification_token_hash=hash_token(token)).first()

        if (not user or not user.verification_token_expires_at
                or user.verification_token_expires_at <= datetime.utcnow()):
            fail(400, 'Verification token is invalid or has expired')

        user.mark_email_verified()
        record_audit('email_verified', 'user', user.id, user=user)
        db.session.commit()

        return success(user_schema.dump(user), 'Email verified successfully.')
