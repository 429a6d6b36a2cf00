"""
Document API URLs: documents, company documents and document types.
"""
from django.urls import path
from apps.documents import views

app_name = 'documents'


def _document_patterns(prefix, name, list_view, request_view, compliance_view,
                       detail_view, revert_view, review_view, expire_view, download_view):
    return [
        path(prefix, list_view.as_view(), name=f'{name}-list'),
        path(f'{prefix}/request', request_view.as_view(), name=f'{name}-request'),
        path(f'{prefix}/compliance', compliance_view.as_view(), name=f'{name}-compliance'),
        path(f'{prefix}/<uuid:document_id>', detail_view.as_view(), name=f'{name}-detail'),
        path(f'{prefix}/<uuid:document_id>/revert', revert_view.as_view(), name=f'{name}-revert'),
        path(f'{prefix}/<uuid:document_id>/review', review_view.as_view(), name=f'{name}-review'),
        path(f'{prefix}/<uuid:document_id>/expire', expire_view.as_view(), name=f'{name}-expire'),
        path(f'{prefix}/<uuid:document_id>/download', download_view.as_view(), name=f'{name}-download'),
    ]


urlpatterns = [
    path('documents/files/<str:token>', views.DocumentFileView.as_view(), name='document-file'),
    path('document-types', views.DocumentTypeListView.as_view(), name='document-type-list'),
    path('document-types/options', views.DocumentTypeOptionsView.as_view(), name='document-type-options'),
    path('document-types/counts', views.DocumentTypeCountsView.as_view(), name='document-type-counts'),
    path('document-types/<uuid:document_type_id>', views.DocumentTypeDetailView.as_view(), name='document-type-detail'),
] + _document_patterns(
    'documents', 'document',
    views.DocumentListView, views.DocumentRequestView, views.DocumentComplianceView,
    views.DocumentDetailView, views.DocumentRevertView, views.DocumentReviewView,
    views.DocumentExpireView, views.DocumentDownloadView,
) + _document_patterns(
    'company/documents', 'company-document',
    views.CompanyDocumentListView, views.CompanyDocumentRequestView, views.CompanyDocumentComplianceView,
    views.CompanyDocumentDetailView, views.CompanyDocumentRevertView, views.CompanyDocumentReviewView,
    views.CompanyDocumentExpireView, views.CompanyDocumentDownloadView,
)
