"""
Tests for document storage providers and storage keys.
"""
import pytest
from datetime import date
from unittest import mock
from botocore.exceptions import ClientError
from django.core import signing

from apps.core.exceptions import StorageError, ValidationError
from apps.documents import storage
from apps.documents.models import DocumentType
from apps.documents.paths import content_type_for, document_filename, document_key, validate_file
from apps.equipment.models import Vehicle
from apps.hr.models import Employee


class TestLocalStorage:

    def test_upload_and_delete(self, local_storage):
        key = storage.upload_file('acme/company/documents/statute/a.pdf', b'data', 'application/pdf')

        assert key == 'acme/company/documents/statute/a.pdf'
        assert (local_storage / key).read_bytes() == b'data'

        storage.delete_file(key)

        assert not (local_storage / key).exists()

    def test_upload_overwrites_same_key(self, local_storage):
        storage.upload_file('acme/a.pdf', b'first')
        key = storage.upload_file('acme/a.pdf', b'second')

        assert key == 'acme/a.pdf'
        assert (local_storage / key).read_bytes() == b'second'

    def test_download_url_carries_signed_key(self):
        url = storage.get_presigned_download_url('acme/a.pdf', file_name='a.pdf')

        assert url.startswith('/v1/documents/files/')
        token = url.rstrip('/').rsplit('/', 1)[-1]
        payload = storage.read_signed_token(token, 'GET')
        assert payload == {'key': 'acme/a.pdf', 'method': 'GET', 'name': 'a.pdf', 'expires_in': 3600}

    def test_token_is_bound_to_its_method(self):
        upload = storage.get_presigned_upload_url('acme/a.pdf', 'application/pdf')
        token = upload['url'].rstrip('/').rsplit('/', 1)[-1]

        assert upload['method'] == 'PUT'
        assert upload['headers'] == {'Content-Type': 'application/pdf'}
        assert storage.read_signed_token(token, 'PUT')['key'] == 'acme/a.pdf'
        with pytest.raises(StorageError):
            storage.read_signed_token(token, 'GET')

    def test_tampered_token(self):
        token = signing.dumps({'key': 'acme/a.pdf', 'method': 'GET'}, salt='another.salt')

        with pytest.raises(StorageError):
            storage.read_signed_token(token, 'GET')

    def test_expired_token(self, settings):
        token = signing.dumps({'key': 'acme/a.pdf', 'method': 'GET'}, salt=storage.SIGNING_SALT)
        settings.PRESIGNED_URL_EXPIRES = -1

        with pytest.raises(StorageError) as exc_info:
            storage.read_signed_token(token, 'GET')

        assert exc_info.value.message == 'Link has expired'

    def test_token_uses_its_own_expiry(self, settings):
        short_url = storage.get_presigned_download_url('acme/a.pdf', expires_in=-1)
        long_url = storage.get_presigned_download_url('acme/a.pdf', expires_in=600)
        settings.PRESIGNED_URL_EXPIRES = -1

        with pytest.raises(StorageError) as exc_info:
            storage.read_signed_token(short_url.rstrip('/').rsplit('/', 1)[-1], 'GET')
        assert exc_info.value.message == 'Link has expired'
        assert storage.read_signed_token(long_url.rstrip('/').rsplit('/', 1)[-1], 'GET')['expires_in'] == 600

    def test_unknown_provider(self, settings):
        settings.STORAGE_PROVIDER = 'ftp'

        with pytest.raises(StorageError):
            storage.get_storage()


class TestS3Storage:

    @pytest.fixture
    def s3_client(self, settings):
        settings.STORAGE_PROVIDER = 's3'
        settings.S3_BUCKET = 'gestio-documents'
        settings.S3_ENDPOINT_URL = 'http://minio:9000'
        with mock.patch('apps.documents.storage.boto3.client') as client_factory:
            yield client_factory.return_value

    def test_upload(self, s3_client):
        key = storage.upload_file('acme/a.pdf', b'data', 'application/pdf')

        assert key == 'acme/a.pdf'
        s3_client.put_object.assert_called_once_with(
            Bucket='gestio-documents', Key='acme/a.pdf', Body=b'data', ContentType='application/pdf'
        )

    def test_client_errors_become_storage_errors(self, s3_client):
        s3_client.put_object.side_effect = ClientError(
            {'Error': {'Code': 'NoSuchBucket', 'Message': 'missing'}}, 'PutObject'
        )

        with pytest.raises(StorageError):
            storage.upload_file('acme/a.pdf', b'data')

    def test_download_url_sets_file_name(self, s3_client):
        s3_client.generate_presigned_url.return_value = 'https://minio/signed'

        url = storage.get_presigned_download_url('acme/a.pdf', expires_in=60, file_name='a.pdf')

        assert url == 'https://minio/signed'
        s3_client.generate_presigned_url.assert_called_once_with(
            'get_object',
            Params={
                'Bucket': 'gestio-documents',
                'Key': 'acme/a.pdf',
                'ResponseContentDisposition': 'inline; filename="a.pdf"',
            },
            ExpiresIn=60,
        )

    def test_delete(self, s3_client):
        storage.delete_file('acme/a.pdf')

        s3_client.delete_object.assert_called_once_with(Bucket='gestio-documents', Key='acme/a.pdf')

    def test_missing_bucket(self, settings, s3_client):
        settings.S3_BUCKET = None

        with pytest.raises(StorageError):
            storage.get_storage()


class TestPaths:

    def test_validate_file(self, settings):
        settings.DOCUMENT_MAX_FILE_SIZE = 100

        validate_file('scan.JPG', 100)
        with pytest.raises(ValidationError):
            validate_file('scan.jpg', 101)
        with pytest.raises(ValidationError):
            validate_file('script.sh', 10)

    def test_missing_extension_defaults_to_pdf(self):
        assert document_filename('ID card', 'scan', today=date(2024, 1, 15)).endswith('.pdf')
        assert content_type_for('scan') == 'application/pdf'

    def test_filename(self):
        name = document_filename('Driving License', 'scan.PNG', today=date(2024, 1, 15))

        assert name.startswith('2024-01-15-driving-license-')
        assert name.endswith('.png')
        assert len(name) == len('2024-01-15-driving-license-') + 8 + len('.png')

    @pytest.mark.django_db
    def test_keys_per_subject(self, company):
        employee = Employee.objects.create(company=company, employee_number='1', first_name='A', last_name='B')
        vehicle = Vehicle.objects.create(company=company, domain='AB123CD')
        payslip = DocumentType(company=company, name='Payslip', slug='payslip', applies_to='EMPLOYEE')
        insurance = DocumentType(company=company, name='Insurance', slug='insurance', applies_to='EQUIPMENT')
        statute = DocumentType(company=company, name='Statute', slug='statute', applies_to='COMPANY')

        assert document_key(company, employee, payslip, 'f.pdf', '2024-01') == (
            f'transportes-del-sur/employees/{employee.id}/documents/payslip/2024-01/f.pdf'
        )
        assert document_key(company, vehicle, insurance, 'f.pdf') == (
            f'transportes-del-sur/equipment/{vehicle.id}/documents/insurance/f.pdf'
        )
        assert document_key(company, None, payslip, 'f.pdf') == (
            'transportes-del-sur/employees/shared/documents/payslip/f.pdf'
        )
        assert document_key(company, None, statute, 'f.pdf') == (
            'transportes-del-sur/company/documents/statute/f.pdf'
        )
