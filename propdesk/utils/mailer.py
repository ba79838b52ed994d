import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)


class MailClient:
    """Delivers transactional mail through an HTTP mail provider."""

    def __init__(self):
        config = current_app.config
        self.api_url = config.get('MAIL_API_URL', '')
        self.api_key = config.get('MAIL_API_KEY', '')
        self.sender = config.get('MAIL_FROM', 'no-reply@propdesk.local')

    @property
    def configured(self):
        return bool(self.api_url)

    def send(self, to, subject, body):
        if not self.configured:
            logger.info('Mail delivery not configured; skipping "%s" to %s', subject, to)
            return {'success': False, 'error': 'Mail delivery not configured'}

        payload = {
            'from': self.sender,
            'to': to,
            'subject': subject,
            'text': body,
        }
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self.api_key}',
        }

        try:
            response = requests.post(self.api_url, json=payload, headers=headers, timeout=30)
        except requests.exceptions.RequestException as e:
            logger.warning('Mail to %s failed: %s', to, e)
            return {'success': False, 'error': f'Request failed: {str(e)}'}

        if response.status_code in (200, 201, 202):
            try:
                data = response.json() if response.content else {}
            except ValueError:
                # accepted, but the provider did not answer with JSON
                data = {'raw': response.text}
            return {'success': True, 'data': data}
        logger.warning('Mail provider rejected message to %s: HTTP %s', to, response.status_code)
        return {'success': False, 'error': f'HTTP {response.status_code}: {response.text}'}


def frontend_link(path):
    return f"{current_app.config['FRONTEND_URL'].rstrip('/')}/{path.lstrip('/')}"


def send_invite_email(invite, token):
    link = frontend_link(f'accept-invite/{token}')
    property_name = invite.property.name if invite.property else 'PropDesk'
    body = (
        f"You have been invited to join {property_name} as a {invite.role}.\n\n"
        f"Accept the invitation here: {link}\n\n"
        f"This link expires on {invite.expires_at:%Y-%m-%d}."
    )
    result = MailClient().send(invite.email, f'Invitation to {property_name}', body)
    return link, result


def send_password_reset_email(user, token):
    link = frontend_link(f'reset-password/{token}')
    body = (
        f"Hello {user.first_name},\n\n"
        f"Reset your password here: {link}\n\n"
        "If you did not request this, you can ignore this message."
    )
    return MailClient().send(user.email, 'Reset your PropDesk password', body)


def send_verification_email(user, token):
    link = frontend_link(f'verify-email/{token}')
    body = (
        f"Hello {user.first_name},\n\n"
        f"Confirm your email address here: {link}\n\n"
        f"This link expires in {current_app.config['EMAIL_VERIFICATION_EXPIRY_HOURS']} hours."
    )
    return MailClient().send(user.email, 'Verify your PropDesk email address', body)
