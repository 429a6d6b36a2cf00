"""
Storage keys and file checks for uploaded documents.

Keys are derived from the company, the subject, the document type and
the period:

    {company}/employees/{employee}/documents/{type}[/{period}]/{date}-{type}-{token}.{ext}
    {company}/equipment/{vehicle}/documents/...
    {company}/company/documents/...

Documents shared by every employee or vehicle use ``shared`` in place of
the subject id.
"""
import os
import uuid
from typing import Optional

from django.conf import settings
from django.utils import timezone
from django.utils.text import slugify

from apps.core.exceptions import ValidationError
from apps.equipment.models import Vehicle
from apps.hr.models import Employee

DEFAULT_EXTENSION = 'pdf'

ALLOWED_EXTENSIONS = {
    'jpg', 'jpeg', 'png', 'webp', 'gif', 'pdf', 'doc', 'docx', 'xls', 'xlsx',
}

CONTENT_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'webp': 'image/webp',
    'gif': 'image/gif',
    'pdf': 'application/pdf',
    'doc': 'application/msword',
    'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'xls': 'application/vnd.ms-excel',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}


def file_extension(filename: Optional[str]) -> str:
    _, ext = os.path.splitext(os.path.basename(filename or ''))
    return ext.lstrip('.').lower() or DEFAULT_EXTENSION


def content_type_for(filename: Optional[str]) -> str:
    return CONTENT_TYPES.get(file_extension(filename), 'application/octet-stream')


def validate_file(filename: str, size: int):
    """Reject files over the size limit or with an extension not in the allow list."""
    max_size = settings.DOCUMENT_MAX_FILE_SIZE
    if size > max_size:
        raise ValidationError(
            f'File exceeds the maximum size of {max_size // (1024 * 1024)}MB',
            {'file_size': size}
        )

    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(f'File extension .{ext} is not allowed', {'file_name': filename})


def document_filename(document_type_name: str, original_filename: str, today=None) -> str:
    """``2024-01-15-driving-license-3f2a9c1d.pdf``"""
    today = today or timezone.localdate()
    type_slug = slugify(document_type_name)[:30] or 'document'
    token = uuid.uuid4().hex[:8]
    return f"{today.isoformat()}-{type_slug}-{token}.{file_extension(original_filename)}"


def subject_prefix(company, subject, applies_to: str) -> str:
    company_slug = slugify(company.slug or company.name) or str(company.id)
    if isinstance(subject, Employee):
        return f"{company_slug}/employees/{subject.id}"
    if isinstance(subject, Vehicle):
        return f"{company_slug}/equipment/{subject.id}"
    if applies_to == 'EMPLOYEE':
        return f"{company_slug}/employees/shared"
    if applies_to == 'EQUIPMENT':
        return f"{company_slug}/equipment/shared"
    return f"{company_slug}/company"


def document_key(company, subject, document_type, filename: str, period: str = '') -> str:
    parts = [
        subject_prefix(company, subject, document_type.applies_to),
        'documents',
        document_type.slug or slugify(document_type.name),
    ]
    if period:
        parts.append(period)
    parts.append(filename)
    return '/'.join(parts)
