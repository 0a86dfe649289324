"""
Tests for clinical history attachments.
"""
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.clinical import services
from apps.clinical.models import Attachment
from apps.core.exceptions import NotFound, ValidationFailed


def _pdf(name='informe.pdf', content=b'%PDF-1.4 test'):
    return SimpleUploadedFile(name, content, content_type='application/pdf')


@pytest.mark.django_db
class TestAttachmentService:
    def test_upload(self, history, student_user):
        attachment = services.upload_attachment(
            history.id, _pdf(), {'kind': 'lab_result', 'description': 'Hemograma'}, actor=student_user
        )
        assert attachment.original_name == 'informe.pdf'
        assert attachment.mime_type == 'application/pdf'
        assert attachment.size_bytes == len(b'%PDF-1.4 test')
        assert attachment.file.name.startswith(f'attachments/{history.id}/')
        assert attachment.file.storage.exists(attachment.file.name)

    def test_default_kind(self, history):
        assert services.upload_attachment(history.id, _pdf(), {}).kind == 'document'

    def test_unknown_history(self):
        with pytest.raises(NotFound):
            services.upload_attachment(777, _pdf(), {})

    def test_missing_file(self, history):
        with pytest.raises(ValidationFailed):
            services.upload_attachment(history.id, None, {})

    def test_too_large(self, history, settings):
        settings.ATTACHMENT_MAX_BYTES = 8
        with pytest.raises(ValidationFailed) as exc_info:
            services.upload_attachment(history.id, _pdf(), {})
        assert exc_info.value.details['max_bytes'] == 8
        assert not Attachment.objects.exists()

    def test_mime_type_not_allowed(self, history):
        upload = SimpleUploadedFile('script.sh', b'#!/bin/sh', content_type='application/x-sh')
        with pytest.raises(ValidationFailed):
            services.upload_attachment(history.id, upload, {})

    def test_update_only_description_and_kind(self, history):
        attachment = services.upload_attachment(history.id, _pdf(), {})
        updated = services.update_attachment(attachment.id, {'description': 'Panorámica', 'kind': 'xray'})
        assert (updated.description, updated.kind) == ('Panorámica', 'xray')
        with pytest.raises(ValidationFailed):
            services.update_attachment(attachment.id, {'original_name': 'otro.pdf'})

    def test_delete_removes_file(self, history):
        attachment = services.upload_attachment(history.id, _pdf(), {})
        name, storage = attachment.file.name, attachment.file.storage
        services.delete_attachment(attachment.id)
        assert not Attachment.objects.exists()
        assert not storage.exists(name)

    def test_history_delete_removes_files(self, history):
        attachment = services.upload_attachment(history.id, _pdf(), {})
        name, storage = attachment.file.name, attachment.file.storage
        services.delete_history(history.id)
        assert not storage.exists(name)


@pytest.mark.django_db
class TestAttachmentEndpoints:
    def test_upload_and_download(self, teacher_client, history):
        response = teacher_client.post(
            '/api/v1/attachments/',
            {'history_id': history.id, 'file': _pdf(), 'kind': 'document'},
            format='multipart',
        )
        assert response.status_code == 201

        download = teacher_client.get(f"/api/v1/attachments/{response.data['id']}/download/")
        assert download.status_code == 200
        assert b''.join(download.streaming_content) == b'%PDF-1.4 test'

    def test_upload_rejected_type(self, teacher_client, history):
        upload = SimpleUploadedFile('virus.exe', b'MZ', content_type='application/x-msdownload')
        response = teacher_client.post(
            '/api/v1/attachments/', {'history_id': history.id, 'file': upload}, format='multipart'
        )
        assert response.status_code == 400
        assert response.data['error']['details']['mime_type'] == 'application/x-msdownload'

    def test_list_by_history(self, student_client, history):
        services.upload_attachment(history.id, _pdf(), {})
        response = student_client.get('/api/v1/attachments/', {'history_id': history.id})
        assert len(response.data) == 1
