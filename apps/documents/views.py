"""
Document API views.

Employee and equipment documents are served under ``/v1/documents`` and
checked against the ``documents`` module; company documents live under
``/v1/company/documents`` and use ``company.documents``. A document of
the other scope is reported as not found.
"""
import logging

from django.http import FileResponse
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework import status
from rest_framework.parsers import MultiPartParser, FormParser
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import NotFoundError, StorageError
from apps.core.permissions import requires_permission
from apps.core.views import CompanyAPIView, invalid_request
from apps.documents import storage
from apps.documents.models import DocumentType
from apps.documents.paths import validate_file
from apps.documents.serializers import (
    DocumentSerializer, DocumentDetailSerializer, DocumentUploadSerializer,
    DocumentRequestSerializer, DocumentReviewSerializer, DocumentTypeSerializer,
    DocumentTypeWriteSerializer, DocumentTypeRefSerializer,
)
from apps.documents.services import DocumentService, DocumentTypeService

logger = logging.getLogger(__name__)

DOCUMENTS_MODULE = 'documents'
COMPANY_DOCUMENTS_MODULE = 'company.documents'
DOCUMENT_TYPES_MODULE = 'company.document-types'

SUBJECT_PARAMETERS = [
    OpenApiParameter('employee_id', OpenApiTypes.UUID, OpenApiParameter.QUERY),
    OpenApiParameter('vehicle_id', OpenApiTypes.UUID, OpenApiParameter.QUERY),
]


class DocumentScopeMixin:
    """Shared lookups of the employee/equipment and the company document views."""
    permission_module = DOCUMENTS_MODULE
    company_scope = False

    def in_scope(self, document_type):
        is_company = document_type.applies_to == DocumentType.APPLIES_TO_COMPANY
        return is_company == self.company_scope

    def get_document(self, request, document_id):
        document = DocumentService.get_document(request.tenant, document_id)
        if not self.in_scope(document.document_type):
            raise NotFoundError('Document not found', {'document_id': str(document_id)})
        return document

    def check_type(self, request, document_type_id):
        document_type = DocumentTypeService.get_document_type(request.tenant, document_type_id)
        if not self.in_scope(document_type):
            raise NotFoundError('Document type not found', {'document_type_id': str(document_type_id)})
        return document_type

    def get_subject(self, request, data):
        if self.company_scope:
            return None
        return DocumentService.resolve_subject(
            request.tenant, data.get('employee_id'), data.get('vehicle_id')
        )


class DocumentListView(DocumentScopeMixin, CompanyAPIView):
    """
    GET  /v1/documents - filter by subject, type, state and period
    POST /v1/documents - upload a file (multipart)
    """
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        tags=['Documents'],
        parameters=SUBJECT_PARAMETERS + [
            OpenApiParameter('document_type_id', OpenApiTypes.UUID, OpenApiParameter.QUERY),
            OpenApiParameter('state', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('period', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('applies_to', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('page', OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        responses={200: DocumentSerializer(many=True)}
    )
    def get(self, request):
        params = request.query_params
        subject = self.get_subject(request, params)
        if self.company_scope:
            applies_to = DocumentType.APPLIES_TO_COMPANY
        else:
            applies_to = params.get('applies_to')
            if applies_to not in (DocumentType.APPLIES_TO_EMPLOYEE, DocumentType.APPLIES_TO_EQUIPMENT):
                applies_to = None

        documents = DocumentService.list_documents(
            request.tenant,
            subject=subject,
            document_type_id=params.get('document_type_id'),
            state=params.get('state'),
            period=params.get('period'),
            applies_to=applies_to,
        )
        if not self.company_scope:
            documents = documents.exclude(document_type__applies_to=DocumentType.APPLIES_TO_COMPANY)
        return self.paginate(request, documents, DocumentSerializer)

    @extend_schema(tags=['Documents'], request=DocumentUploadSerializer, responses={201: DocumentSerializer})
    def post(self, request):
        serializer = DocumentUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data = serializer.validated_data
        self.check_type(request, data['document_type_id'])
        upload = data['file']
        validate_file(upload.name, upload.size)

        document = DocumentService.upload(
            request.tenant,
            data['document_type_id'],
            file_name=upload.name,
            content=upload.read(),
            subject=self.get_subject(request, data),
            period=data.get('period'),
            expiration_date=data.get('expiration_date'),
            action=data.get('action'),
            submit=data.get('submit', False),
            actor=request.user,
        )
        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)


class DocumentRequestView(DocumentScopeMixin, CompanyAPIView):
    """POST /v1/documents/request - create a pending document to be uploaded later"""

    @extend_schema(tags=['Documents'], request=DocumentRequestSerializer, responses={201: DocumentSerializer})
    def post(self, request):
        serializer = DocumentRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data = serializer.validated_data
        self.check_type(request, data['document_type_id'])
        document = DocumentService.request_document(
            request.tenant,
            data['document_type_id'],
            subject=self.get_subject(request, data),
            period=data.get('period'),
        )
        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)


class DocumentDetailView(DocumentScopeMixin, CompanyAPIView):
    """GET/DELETE /v1/documents/{id}"""

    @extend_schema(tags=['Documents'], responses={200: DocumentDetailSerializer})
    def get(self, request, document_id):
        document = self.get_document(request, document_id)
        return Response(DocumentDetailSerializer(document).data)

    @extend_schema(tags=['Documents'], responses={204: None})
    def delete(self, request, document_id):
        document = self.get_document(request, document_id)
        DocumentService.delete(request.tenant, document.id, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DocumentRevertView(DocumentScopeMixin, CompanyAPIView):
    """
    POST /v1/documents/{id}/revert

    Removes the newest version. Returns the restored document, or 204 when
    the document had a single version and was deleted.
    """

    @extend_schema(tags=['Documents'], request=None, responses={200: DocumentDetailSerializer, 204: None})
    @requires_permission(DOCUMENTS_MODULE, 'delete')
    def post(self, request, document_id):
        document = self.get_document(request, document_id)
        document = DocumentService.revert(request.tenant, document.id, actor=request.user)
        if document is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(DocumentDetailSerializer(document).data)


class DocumentReviewView(DocumentScopeMixin, CompanyAPIView):
    """POST /v1/documents/{id}/review - approve or reject"""

    @extend_schema(tags=['Documents'], request=DocumentReviewSerializer, responses={200: DocumentSerializer})
    @requires_permission(DOCUMENTS_MODULE, 'update')
    def post(self, request, document_id):
        serializer = DocumentReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        document = self.get_document(request, document_id)
        document = DocumentService.review(
            request.tenant,
            document.id,
            approve=serializer.validated_data['approve'],
            notes=serializer.validated_data.get('notes'),
            actor=request.user,
        )
        return Response(DocumentSerializer(document).data)


class DocumentExpireView(DocumentScopeMixin, CompanyAPIView):
    """POST /v1/documents/{id}/expire"""

    @extend_schema(tags=['Documents'], request=None, responses={200: DocumentSerializer})
    @requires_permission(DOCUMENTS_MODULE, 'update')
    def post(self, request, document_id):
        document = self.get_document(request, document_id)
        document = DocumentService.mark_expired(request.tenant, document.id)
        return Response(DocumentSerializer(document).data)


class DocumentDownloadView(DocumentScopeMixin, CompanyAPIView):
    """GET /v1/documents/{id}/download - presigned URL of the current or a past version"""

    @extend_schema(
        tags=['Documents'],
        parameters=[OpenApiParameter('version_id', OpenApiTypes.UUID, OpenApiParameter.QUERY)],
    )
    def get(self, request, document_id):
        document = self.get_document(request, document_id)
        return Response(DocumentService.get_download_url(
            request.tenant, document.id, version_id=request.query_params.get('version_id')
        ))


class DocumentComplianceView(DocumentScopeMixin, CompanyAPIView):
    """
    GET /v1/documents/compliance?employee_id=|vehicle_id=

    Compliance status, summary counts, pending mandatory types and the
    types still open for upload.
    """

    @extend_schema(tags=['Documents'], parameters=SUBJECT_PARAMETERS)
    def get(self, request):
        company = request.tenant
        subject = self.get_subject(request, request.query_params)

        return Response({
            'compliance': DocumentService.compliance(company, subject),
            'summary': DocumentService.summary(company, subject),
            'pending_types': DocumentTypeRefSerializer(
                DocumentService.pending_types(company, subject), many=True
            ).data,
            'available_types': DocumentTypeRefSerializer(
                DocumentService.available_types_for_upload(company, subject), many=True
            ).data,
        })


class CompanyScope:
    permission_module = COMPANY_DOCUMENTS_MODULE
    company_scope = True


class CompanyDocumentListView(CompanyScope, DocumentListView):
    pass


class CompanyDocumentRequestView(CompanyScope, DocumentRequestView):
    pass


class CompanyDocumentDetailView(CompanyScope, DocumentDetailView):
    pass


class CompanyDocumentRevertView(CompanyScope, DocumentRevertView):
    post = requires_permission(COMPANY_DOCUMENTS_MODULE, 'delete')(DocumentRevertView.post)


class CompanyDocumentReviewView(CompanyScope, DocumentReviewView):
    post = requires_permission(COMPANY_DOCUMENTS_MODULE, 'update')(DocumentReviewView.post)


class CompanyDocumentExpireView(CompanyScope, DocumentExpireView):
    post = requires_permission(COMPANY_DOCUMENTS_MODULE, 'update')(DocumentExpireView.post)


class CompanyDocumentDownloadView(CompanyScope, DocumentDownloadView):
    pass


class CompanyDocumentComplianceView(CompanyScope, DocumentComplianceView):
    pass


class DocumentFileView(APIView):
    """
    GET/PUT /v1/documents/files/{token}

    Serves and receives files of the local storage provider through signed,
    time-limited tokens; the token is the only credential.
    """
    authentication_classes = []
    permission_classes = []

    def _payload(self, token, method):
        try:
            return storage.read_signed_token(token, method)
        except StorageError as e:
            logger.info("Rejected file link", extra={'reason': e.message})
            return None

    @extend_schema(tags=['Documents'], responses={200: OpenApiTypes.BINARY})
    def get(self, request, token):
        payload = self._payload(token, 'GET')
        if payload is None:
            return Response({'error': 'Invalid or expired link', 'code': 'INVALID_LINK'}, status=status.HTTP_403_FORBIDDEN)
        try:
            handle = storage.open_local_file(payload['key'])
        except FileNotFoundError:
            return Response({'error': 'File not found', 'code': 'NOT_FOUND'}, status=status.HTTP_404_NOT_FOUND)
        return FileResponse(handle, filename=payload.get('name') or None)

    @extend_schema(tags=['Documents'], request=OpenApiTypes.BINARY, responses={204: None})
    def put(self, request, token):
        payload = self._payload(token, 'PUT')
        if payload is None:
            return Response({'error': 'Invalid or expired link', 'code': 'INVALID_LINK'}, status=status.HTTP_403_FORBIDDEN)
        validate_file(payload['key'], int(request.META.get('CONTENT_LENGTH') or 0))
        content = request.read()
        validate_file(payload['key'], len(content))
        storage.save_local_file(payload['key'], content)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DocumentTypeListView(CompanyAPIView):
    """
    GET  /v1/document-types
    POST /v1/document-types
    """
    permission_module = DOCUMENT_TYPES_MODULE

    @extend_schema(
        tags=['Document Types'],
        parameters=[
            OpenApiParameter('applies_to', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('is_active', OpenApiTypes.BOOL, OpenApiParameter.QUERY),
            OpenApiParameter('search', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('page', OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        responses={200: DocumentTypeSerializer(many=True)}
    )
    def get(self, request):
        is_active = request.query_params.get('is_active')
        document_types = DocumentTypeService.list_document_types(
            request.tenant,
            applies_to=request.query_params.get('applies_to'),
            is_active=None if is_active is None else is_active.lower() == 'true',
            search=request.query_params.get('search'),
        )
        return self.paginate(request, document_types, DocumentTypeSerializer)

    @extend_schema(tags=['Document Types'], request=DocumentTypeWriteSerializer, responses={201: DocumentTypeSerializer})
    def post(self, request):
        serializer = DocumentTypeWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data = dict(serializer.validated_data)
        conditions = data.pop('conditions', None)
        document_type = DocumentTypeService.create_document_type(request.tenant, data, conditions)
        return Response(DocumentTypeSerializer(document_type).data, status=status.HTTP_201_CREATED)


class DocumentTypeDetailView(CompanyAPIView):
    """GET/PUT/DELETE /v1/document-types/{id}"""
    permission_module = DOCUMENT_TYPES_MODULE

    @extend_schema(tags=['Document Types'], responses={200: DocumentTypeSerializer})
    def get(self, request, document_type_id):
        document_type = DocumentTypeService.get_document_type(request.tenant, document_type_id)
        return Response(DocumentTypeSerializer(document_type).data)

    @extend_schema(tags=['Document Types'], request=DocumentTypeWriteSerializer, responses={200: DocumentTypeSerializer})
    def put(self, request, document_type_id):
        serializer = DocumentTypeWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data = dict(serializer.validated_data)
        conditions = data.pop('conditions', None)
        document_type = DocumentTypeService.update_document_type(
            request.tenant, document_type_id, data, conditions
        )
        return Response(DocumentTypeSerializer(document_type).data)

    patch = put

    @extend_schema(tags=['Document Types'], responses={204: None})
    def delete(self, request, document_type_id):
        DocumentTypeService.delete_document_type(request.tenant, document_type_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DocumentTypeOptionsView(CompanyAPIView):
    """GET /v1/document-types/options - values conditions can reference"""
    permission_module = DOCUMENT_TYPES_MODULE

    @extend_schema(tags=['Document Types'])
    def get(self, request):
        return Response(DocumentTypeService.condition_options(request.tenant))


class DocumentTypeCountsView(CompanyAPIView):
    """GET /v1/document-types/counts - tab counters per target"""
    permission_module = DOCUMENT_TYPES_MODULE

    @extend_schema(tags=['Document Types'])
    def get(self, request):
        return Response(DocumentTypeService.tab_counts(request.tenant))
