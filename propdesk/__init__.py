import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from flask_restful import Api
from werkzeug.exceptions import HTTPException

from propdesk.config import Config
from propdesk.extensions import db, jwt, ma

logger = logging.getLogger(__name__)


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s [%(name)s] %(message)s')
    logging.getLogger('propdesk').setLevel(level)


def register_jwt_handlers():
    def _error(message, status=401):
        return jsonify(success=False, message=message), status

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _error('Authorization token is missing')

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _error('Invalid token')

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _error('Token has expired')


def register_routes(api):
    from propdesk.resources.audit import AuditLogDetailResource, AuditLogListResource
    from propdesk.resources.auth import (ChangePasswordResource, ForgotPasswordResource, LoginResource, LogoutResource,
                                         MeResource, RegisterResource, ResetPasswordResource,
                                         SendVerificationEmailResource, VerifyEmailResource)
    from propdesk.resources.dashboard import (CommonIssuesResource, DashboardResource, MaintenanceSummaryResource,
                                              ReportExportResource, VendorPerformanceResource)
    from propdesk.resources.invites import (InviteAcceptResource, InviteDeclineResource, InviteListResource,
                                            InviteResendResource, InviteRevokeResource, InviteSendResource,
                                            InviteVerifyResource)
    from propdesk.resources.maintenance import (MaintenanceRequestAction, MaintenanceRequestAssign,
                                                MaintenanceRequestComments, MaintenanceRequestDetail,
                                                MaintenanceRequestFeedback, MaintenanceRequestList,
                                                MaintenanceRequestMedia, MaintenanceRequestPublicLink)
    from propdesk.resources.media import MediaDetailResource, MediaListResource, MediaStatsResource
    from propdesk.resources.notifications import (NotificationDetailResource, NotificationListResource,
                                                  NotificationReadAllResource, NotificationReadResource,
                                                  NotificationUnreadCountResource)
    from propdesk.resources.onboarding import (OnboardingCompleteResource, OnboardingDetailResource,
                                               OnboardingDownloadResource, OnboardingListResource)
    from propdesk.resources.properties import (PropertyAssignUserResource, PropertyDetailResource,
                                               PropertyListResource, PropertyRemoveUserResource,
                                               UnitAssignTenantResource, UnitDetailResource, UnitListResource,
                                               UnitRemoveTenantResource)
    from propdesk.resources.public import (PublicRequestComment, PublicRequestUpdate, PublicRequestView,
                                           PublicScheduledComment, PublicScheduledUpdate, PublicScheduledView)
    from propdesk.resources.scheduled import (ScheduledMaintenanceDetail, ScheduledMaintenanceList,
                                              ScheduledMaintenancePause, ScheduledMaintenancePublicLink,
                                              ScheduledMaintenanceUpcoming)
    from propdesk.resources.users import (ProfileResource, UserActivationResource, UserApproveResource,
                                          UserDetailResource, UserListResource, UserResetPasswordResource,
                                          UserRoleResource)
    from propdesk.resources.vendors import (VendorDeactivateResource, VendorDetailResource, VendorListResource,
                                            VendorRateResource, VendorStatsResource)

    # Auth
    api.add_resource(RegisterResource, '/api/auth/register')
    api.add_resource(LoginResource, '/api/auth/login')
    api.add_resource(MeResource, '/api/auth/me')
    api.add_resource(LogoutResource, '/api/auth/logout')
    api.add_resource(ForgotPasswordResource, '/api/auth/forgot-password')
    api.add_resource(ResetPasswordResource, '/api/auth/reset-password/<string:token>')
    api.add_resource(ChangePasswordResource, '/api/auth/change-password')
    api.add_resource(SendVerificationEmailResource, '/api/auth/send-verification-email')
    api.add_resource(VerifyEmailResource, '/api/auth/verify-email/<string:token>')

    # Users
    api.add_resource(ProfileResource, '/api/users/profile')
    api.add_resource(UserListResource, '/api/users')
    api.add_resource(UserDetailResource, '/api/users/<int:user_id>')
    api.add_resource(UserApproveResource, '/api/users/<int:user_id>/approve')
    api.add_resource(UserRoleResource, '/api/users/<int:user_id>/role')
    api.add_resource(UserActivationResource, '/api/users/<int:user_id>/<any(activate, deactivate):action>')
    api.add_resource(UserResetPasswordResource, '/api/users/<int:user_id>/reset-password')

    # Properties and units
    api.add_resource(PropertyListResource, '/api/properties')
    api.add_resource(PropertyDetailResource, '/api/properties/<int:property_id>')
    api.add_resource(PropertyAssignUserResource, '/api/properties/<int:property_id>/assign-user')
    api.add_resource(PropertyRemoveUserResource, '/api/properties/<int:property_id>/remove-user/<int:user_id>')
    api.add_resource(UnitListResource, '/api/properties/<int:property_id>/units')
    api.add_resource(UnitDetailResource, '/api/properties/<int:property_id>/units/<int:unit_id>')
    api.add_resource(UnitAssignTenantResource,
                     '/api/properties/<int:property_id>/units/<int:unit_id>/assign-tenant')
    api.add_resource(UnitRemoveTenantResource,
                     '/api/properties/<int:property_id>/units/<int:unit_id>/remove-tenant/<int:tenant_id>')

    # Vendors
    api.add_resource(VendorListResource, '/api/vendors')
    api.add_resource(VendorStatsResource, '/api/vendors/stats')
    api.add_resource(VendorDetailResource, '/api/vendors/<int:vendor_id>')
    api.add_resource(VendorRateResource, '/api/vendors/<int:vendor_id>/rate')
    api.add_resource(VendorDeactivateResource, '/api/vendors/<int:vendor_id>/deactivate')

    # Maintenance requests
    api.add_resource(MaintenanceRequestList, '/api/requests')
    api.add_resource(MaintenanceRequestDetail, '/api/requests/<int:request_id>')
    api.add_resource(MaintenanceRequestAssign, '/api/requests/<int:request_id>/assign')
    api.add_resource(MaintenanceRequestMedia, '/api/requests/<int:request_id>/media')
    api.add_resource(MaintenanceRequestFeedback, '/api/requests/<int:request_id>/feedback')
    api.add_resource(MaintenanceRequestAction, '/api/requests/<int:request_id>/<any(verify, reopen, archive):action>')
    api.add_resource(MaintenanceRequestPublicLink,
                     '/api/requests/<int:request_id>/<any(enable, disable):action>-public-link')
    api.add_resource(MaintenanceRequestComments, '/api/requests/<int:request_id>/comments')

    # Media administration
    api.add_resource(MediaListResource, '/api/media')
    api.add_resource(MediaStatsResource, '/api/media/stats')
    api.add_resource(MediaDetailResource, '/api/media/<int:request_id>/<string:filename>')

    # Scheduled maintenance
    api.add_resource(ScheduledMaintenanceList, '/api/scheduled-maintenance')
    api.add_resource(ScheduledMaintenanceDetail, '/api/scheduled-maintenance/<int:task_id>')
    api.add_resource(ScheduledMaintenancePause, '/api/scheduled-maintenance/<int:task_id>/<any(pause, resume):action>')
    api.add_resource(ScheduledMaintenanceUpcoming, '/api/scheduled-maintenance/<int:task_id>/upcoming')
    api.add_resource(ScheduledMaintenancePublicLink,
                     '/api/scheduled-maintenance/<int:task_id>/<any(enable, disable):action>-public-link')

    # Public links
    api.add_resource(PublicRequestView, '/api/public/requests/<string:token>')
    api.add_resource(PublicRequestUpdate, '/api/public/requests/<string:token>/update')
    api.add_resource(PublicRequestComment, '/api/public/requests/<string:token>/comments')
    api.add_resource(PublicScheduledView, '/api/public/scheduled-maintenance/<string:token>')
    api.add_resource(PublicScheduledUpdate, '/api/public/scheduled-maintenance/<string:token>/update')
    api.add_resource(PublicScheduledComment, '/api/public/scheduled-maintenance/<string:token>/comments')

    # Invites
    api.add_resource(InviteSendResource, '/api/invites/send')
    api.add_resource(InviteListResource, '/api/invites')
    api.add_resource(InviteRevokeResource, '/api/invites/<int:invite_id>')
    api.add_resource(InviteResendResource, '/api/invites/resend/<int:invite_id>')
    api.add_resource(InviteVerifyResource, '/api/invites/verify/<string:token>')
    api.add_resource(InviteAcceptResource, '/api/invites/accept')
    api.add_resource(InviteDeclineResource, '/api/invites/decline')

    # Onboarding
    api.add_resource(OnboardingListResource, '/api/onboarding')
    api.add_resource(OnboardingDetailResource, '/api/onboarding/<int:document_id>')
    api.add_resource(OnboardingCompleteResource, '/api/onboarding/<int:document_id>/complete')
    api.add_resource(OnboardingDownloadResource, '/api/onboarding/<int:document_id>/download')

    # Notifications
    api.add_resource(NotificationListResource, '/api/notifications')
    api.add_resource(NotificationUnreadCountResource, '/api/notifications/unread-count')
    api.add_resource(NotificationReadAllResource, '/api/notifications/read-all')
    api.add_resource(NotificationReadResource, '/api/notifications/<int:notification_id>/read')
    api.add_resource(NotificationDetailResource, '/api/notifications/<int:notification_id>')

    # Audit logs, dashboard and reports
    api.add_resource(AuditLogListResource, '/api/audit-logs')
    api.add_resource(AuditLogDetailResource, '/api/audit-logs/<int:log_id>')
    api.add_resource(DashboardResource, '/api/dashboard')
    api.add_resource(MaintenanceSummaryResource, '/api/reports/maintenance-summary')
    api.add_resource(VendorPerformanceResource, '/api/reports/vendor-performance')
    api.add_resource(CommonIssuesResource, '/api/reports/common-issues')
    api.add_resource(ReportExportResource, '/api/reports/export')


def create_app(config_overrides=None, config_class=Config):
    app = Flask(__name__)

    # Configuration
    app.config.from_object(config_class)
    if config_overrides:
        app.config.update(config_overrides)
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    register_jwt_handlers()
    CORS(app, resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}}, supports_credentials=True)

    # Initialize API
    api = Api(app)
    register_routes(api)

    @app.route('/health')
    def health():
        return jsonify(status='healthy')

    @app.errorhandler(Exception)
    def unhandled_error(error):
        if isinstance(error, HTTPException):
            return error
        db.session.rollback()
        logger.exception('Unhandled error: %s', error)
        return jsonify(success=False, message='Internal server error'), 500

    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    # Create tables
    with app.app_context():
        db.create_all()

    logger.info('PropDesk API ready (database: %s)', app.config['SQLALCHEMY_DATABASE_URI'].split('@')[-1])
    return app
