import logging
from datetime import datetime

from flask import request, send_from_directory
from flask_jwt_extended import jwt_required
from flask_restful import Resource
from sqlalchemy import or_, select

from propdesk.models import (STAFF_ROLES, NotificationType, OnboardingCompletion, OnboardingDocument,
                             OnboardingVisibility, Property, Unit, User, UserRole, db)
from propdesk.schemas import OnboardingDocumentSchema
from propdesk.utils.audit import record_audit
from propdesk.utils.formatting import format_onboarding_document
from propdesk.utils.notify import notify
from propdesk.utils.permissions import (can_view_property, current_user, is_tenant_of, managed_property_ids,
                                        require_manager, roles_required)
from propdesk.utils.responses import arg_bool, fail, get_or_404, load_or_400, paginated, success
from propdesk.utils.storage import delete_upload, save_upload, upload_dir

logger = logging.getLogger(__name__)

DOCUMENT_DIR = 'onboarding'


def serialize(document, viewer=None):
    return format_onboarding_document(document.to_dict(viewer=viewer))


def _form_payload():
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _validate_scope(user, data):
    """Check the referenced property, unit and tenant against each other."""
    property_id = data.get('property_id')
    if property_id:
        get_or_404(Property, property_id, 'Property')
        require_manager(user, property_id)
    elif not user.is_admin and data.get('visibility') == OnboardingVisibility.ALL_TENANTS.value:
        fail(400, 'Select a property for this document')

    unit_id = data.get('unit_id')
    if unit_id:
        unit = get_or_404(Unit, unit_id, 'Unit')
        if property_id and unit.property_id != property_id:
            fail(400, 'Unit does not belong to this property')
        require_manager(user, unit.property_id)

    tenant_id = data.get('tenant_id')
    if tenant_id:
        tenant = get_or_404(User, tenant_id, 'Tenant')
        if tenant.role != UserRole.TENANT.value:
            fail(400, 'Selected user is not a tenant')
        if not user.is_admin:
            managed = managed_property_ids(user)
            if property_id:
                managed = [property_id]
            if not any(is_tenant_of(tenant, pid) for pid in managed):
                fail(403, 'Tenant does not live on a property you manage')


def audience(document):
    """Tenants who can see a document."""
    if document.visibility == OnboardingVisibility.SPECIFIC_TENANT.value:
        return [document.tenant] if document.tenant else []
    if document.visibility == OnboardingVisibility.UNIT_TENANTS.value:
        return document.unit.current_tenants() if document.unit else []
    if document.property is not None:
        return document.property.users_with_role(UserRole.TENANT.value)
    return User.query.filter_by(role=UserRole.TENANT.value, is_active=True).all()


def load_document(document_id, manage=False):
    user = current_user()
    document = get_or_404(OnboardingDocument, document_id, 'Document')
    if user.role == UserRole.TENANT.value:
        if manage or not document.is_visible_to_tenant(user):
            fail(403, 'Access denied')
    elif not user.is_admin and document.created_by_id != user.id:
        if document.property_id is None or not can_view_property(user, document.property_id):
            fail(403, 'Access denied')
        if manage:
            require_manager(user, document.property_id)
    return user, document


class OnboardingListResource(Resource):
    @jwt_required()
    def get(self):
        user = current_user()
        query = OnboardingDocument.query

        if user.role == UserRole.TENANT.value:
            query = query.filter(OnboardingDocument.visible_to(user))
            completed = arg_bool('completed')
            if completed is not None:
                done = select(OnboardingCompletion.document_id).where(OnboardingCompletion.tenant_id == user.id)
                column = OnboardingDocument.id
                query = query.filter(column.in_(done) if completed else ~column.in_(done))
        else:
            ids = managed_property_ids(user)
            if ids is not None:
                query = query.filter(or_(OnboardingDocument.property_id.in_(ids or [-1]),
                                         OnboardingDocument.created_by_id == user.id))

        for arg in ('category', 'visibility'):
            value = request.args.get(arg)
            if value:
                query = query.filter(getattr(OnboardingDocument, arg) == value.lower())
        property_id = request.args.get('property_id', type=int)
        if property_id:
            query = query.filter(OnboardingDocument.property_id == property_id)
        search = request.args.get('search')
        if search:
            query = query.filter(OnboardingDocument.title.ilike(f'%{search}%'))

        query = query.order_by(OnboardingDocument.created_at.desc(), OnboardingDocument.id.desc())
        return paginated(query, lambda d: serialize(d, viewer=user))

    @roles_required(*STAFF_ROLES)
    def post(self):
        user = current_user()
        upload = request.files.get('document_file')
        if upload is None or not upload.filename:
            fail(400, 'A document file is required')

        data = load_or_400(OnboardingDocumentSchema(), _form_payload())
        _validate_scope(user, data)

        try:
            stored = save_upload(upload, DOCUMENT_DIR)
        except ValueError as err:
            fail(400, str(err))

        document = OnboardingDocument(
            created_by=user,
            stored_filename=stored['stored_name'],
            original_filename=stored['original_name'],
            mime_type=stored['mime_type'],
            file_size=stored['size'],
            **data,
        )
        db.session.add(document)
        db.session.flush()

        record_audit('create', 'onboarding_document', document.id, user=user, description=document.title)
        notify(audience(document), f'New onboarding document: {document.title}',
               type=NotificationType.ONBOARDING, link='/onboarding',
               resource_type='onboarding_document', resource_id=document.id, exclude=user)
        db.session.commit()
        return success(serialize(document, viewer=user), 'Document uploaded successfully!', 201)


class OnboardingDetailResource(Resource):
    @jwt_required()
    def get(self, document_id):
        user, document = load_document(document_id)
        return success(serialize(document, viewer=user))

    @roles_required(*STAFF_ROLES)
    def put(self, document_id):
        user, document = load_document(document_id, manage=True)
        data = load_or_400(OnboardingDocumentSchema(), _form_payload(), partial=True)
        merged = {
            'visibility': document.visibility,
            'property_id': document.property_id,
            'unit_id': document.unit_id,
            'tenant_id': document.tenant_id,
            **data,
        }
        _validate_scope(user, merged)

        upload = request.files.get('document_file')
        if upload is not None and upload.filename:
            try:
                stored = save_upload(upload, DOCUMENT_DIR)
            except ValueError as err:
                fail(400, str(err))
            delete_upload(DOCUMENT_DIR, document.stored_filename)
            document.stored_filename = stored['stored_name']
            document.original_filename = stored['original_name']
            document.mime_type = stored['mime_type']
            document.file_size = stored['size']

        for field, value in data.items():
            setattr(document, field, value)
        record_audit('update', 'onboarding_document', document.id, user=user, extra={'fields': sorted(data)})
        db.session.commit()
        return success(serialize(document, viewer=user), 'Document updated.')

    @roles_required(*STAFF_ROLES)
    def delete(self, document_id):
        user, document = load_document(document_id, manage=True)
        delete_upload(DOCUMENT_DIR, document.stored_filename)
        record_audit('delete', 'onboarding_document', document.id, user=user, description=document.title)
        db.session.delete(document)
        db.session.commit()
        return success(None, 'Document deleted.')


class OnboardingCompleteResource(Resource):
    @roles_required(UserRole.TENANT.value)
    def patch(self, document_id):
        user, document = load_document(document_id)
        completion = document.completion_for(user)
        if completion is None:
            completion = OnboardingCompletion(document=document, tenant_id=user.id, completed_at=datetime.utcnow())
            db.session.add(completion)
            record_audit('complete', 'onboarding_document', document.id, user=user)
            if document.created_by is not None:
                notify([document.created_by], f'{user.full_name} completed "{document.title}"',
                       type=NotificationType.ONBOARDING, link='/onboarding',
                       resource_type='onboarding_document', resource_id=document.id)
            db.session.commit()
        return success(serialize(document, viewer=user), 'Document marked as completed.')


class OnboardingDownloadResource(Resource):
    @jwt_required()
    def get(self, document_id):
        _, document = load_document(document_id)
        logger.debug('Serving onboarding document %s', document.id)
        return send_from_directory(upload_dir(DOCUMENT_DIR), document.stored_filename, as_attachment=True,
                                   download_name=document.original_filename or document.stored_filename,
                                   mimetype=document.mime_type)
