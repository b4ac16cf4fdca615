"""
Test suite for Attachments module
Tests: local storage service, upload/download/delete endpoints and their permissions
"""
import os
import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError, transaction
from django.test import TestCase, SimpleTestCase, override_settings
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.attachments.models import Attachment
from backend.attachments.storage import LocalStorageService, guess_mime_type, DEFAULT_MIME_TYPE
from backend.projects.models import ProjectMember


class TempUploadDirMixin:
    def use_temp_upload_dir(self):
        self.upload_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.upload_dir, ignore_errors=True)
        upload_override = override_settings(UPLOAD_DIR=self.upload_dir)
        upload_override.enable()
        self.addCleanup(upload_override.disable)


class LocalStorageServiceTests(TempUploadDirMixin, SimpleTestCase):
    def setUp(self):
        self.use_temp_upload_dir()
        self.storage = LocalStorageService()

    def test_save_and_read(self):
        stored = self.storage.save_file(b'hello', 'notes.txt', 'text/plain')
        self.assertEqual(stored.original_name, 'notes.txt')
        self.assertTrue(stored.filename.endswith('.txt'))
        self.assertNotEqual(stored.filename, 'notes.txt')
        self.assertEqual(stored.size, 5)
        self.assertEqual(self.storage.get_file(stored.filename).content, b'hello')
        self.assertEqual(self.storage.list_files(), [stored.filename])

    def test_save_from_chunks(self):
        stored = self.storage.save_file(iter([b'ab', b'cd']), 'data.bin', DEFAULT_MIME_TYPE)
        self.assertEqual(self.storage.get_file_stats(stored.filename).size, 4)

    def test_delete(self):
        stored = self.storage.save_file(b'x', 'a.png', 'image/png')
        self.assertTrue(self.storage.delete_file(stored.filename))
        self.assertFalse(self.storage.delete_file(stored.filename))
        self.assertIsNone(self.storage.get_file(stored.filename))

    def test_names_outside_upload_dir_are_refused(self):
        outside = os.path.join(os.path.dirname(self.upload_dir), 'secret.txt')
        for name in ('../secret.txt', outside, '..', 'a\\b.txt', ''):
            self.assertIsNone(self.storage.get_file(name), name)
            self.assertFalse(self.storage.delete_file(name), name)

    def test_mime_lookup(self):
        self.assertEqual(guess_mime_type('report.PDF'), 'application/pdf')
        self.assertEqual(guess_mime_type('sheet.xlsx'), 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
        self.assertEqual(guess_mime_type('archive.tar.gz'), DEFAULT_MIME_TYPE)
        self.assertEqual(guess_mime_type('README'), DEFAULT_MIME_TYPE)


class AttachmentAPITests(TempUploadDirMixin, TestCase):
    def setUp(self):
        self.use_temp_upload_dir()
        self.owner = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.owner)
        self.task = TestDataFactory.create_task(self.project, self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def upload(self, client=None, name='spec.txt', content=b'file body', task=None):
        client = client or self.client
        data = {
            'file': SimpleUploadedFile(name, content, content_type='text/plain'),
            'task': task if task is not None else self.task.id,
        }
        return client.post('/api/attachments/upload/', data, format='multipart')

    def test_upload(self):
        response = self.upload()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'spec.txt')
        self.assertEqual(response.data['size'], 9)
        self.assertEqual(response.data['uploaded_by']['id'], self.owner.id)
        self.assertTrue(os.path.isfile(os.path.join(self.upload_dir, response.data['url'])))

    def test_upload_without_file(self):
        response = self.client.post('/api/attachments/upload/', {'task': self.task.id}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No file uploaded')

    def test_upload_without_task(self):
        response = self.upload(task='')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('task', response.data)

    @override_settings(MAX_UPLOAD_SIZE=4)
    def test_upload_too_large(self):
        response = self.upload(content=b'12345')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(os.listdir(self.upload_dir), [])
        self.assertFalse(Attachment.objects.exists())

    def test_non_member_cannot_upload(self):
        outsider = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = self.upload(client=outsider)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_and_download(self):
        attachment_id = self.upload(content=b'download me').data['id']

        response = self.client.get(f'/api/attachments/task/{self.task.id}/')
        self.assertEqual([a['id'] for a in response.data], [attachment_id])

        response = self.client.get(response.data[0]['download_url'])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, b'download me')
        self.assertIn('attachment; filename="spec.txt"', response['Content-Disposition'])

    def test_download_missing_file(self):
        attachment = Attachment.objects.create(
            task=self.task, name='gone.txt', url='123-abc.txt', mime_type='text/plain', size=1, uploaded_by=self.owner
        )
        response = self.client.get(f'/api/attachments/download/{attachment.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'File not found on disk')

    def test_task_detail_lists_attachments(self):
        self.upload()
        response = self.client.get(f'/api/tasks/{self.task.id}/')
        self.assertEqual(len(response.data['attachments']), 1)
        self.assertEqual(response.data['attachment_count'], 1)

    def test_delete_by_creator(self):
        data = self.upload().data
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete(f"/api/attachments/{data['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Attachment.objects.exists())
        self.assertEqual(os.listdir(self.upload_dir), [])

    def test_delete_by_plain_member_denied(self):
        member = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, member)
        attachment_id = self.upload().data['id']
        client = AuthenticatedAPIClient().authenticate_user(member)
        response = client.delete(f'/api/attachments/{attachment_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Access denied')

    def test_delete_by_manager(self):
        manager = TestDataFactory.create_user()
        TestDataFactory.add_project_member(self.project, manager, role=ProjectMember.Role.MANAGER)
        attachment_id = self.upload().data['id']
        client = AuthenticatedAPIClient().authenticate_user(manager)
        response = client.delete(f'/api/attachments/{attachment_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_file_kept_until_delete_commits(self):
        self.upload()
        with self.captureOnCommitCallbacks() as callbacks:
            Attachment.objects.get().delete()
        self.assertEqual(len(os.listdir(self.upload_dir)), 1)
        self.assertEqual(len(callbacks), 1)

        callbacks[0]()
        self.assertEqual(os.listdir(self.upload_dir), [])

    def test_rolled_back_delete_keeps_file(self):
        self.upload()
        with self.captureOnCommitCallbacks(execute=True):
            try:
                with transaction.atomic():
                    Attachment.objects.get().delete()
                    raise IntegrityError('abort')
            except IntegrityError:
                pass
        self.assertTrue(Attachment.objects.exists())
        self.assertEqual(len(os.listdir(self.upload_dir)), 1)

    def test_task_delete_removes_files(self):
        self.upload(name='a.txt')
        self.upload(name='b.txt')
        self.assertEqual(len(os.listdir(self.upload_dir)), 2)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete(f'/api/tasks/{self.task.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Attachment.objects.exists())
        self.assertEqual(os.listdir(self.upload_dir), [])

    def test_project_delete_removes_files(self):
        self.upload()
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete(f'/api/projects/{self.project.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(os.listdir(self.upload_dir), [])

    def test_row_delete_with_missing_file(self):
        data = self.upload().data
        os.remove(os.path.join(self.upload_dir, Attachment.objects.get().url))
        with self.captureOnCommitCallbacks(execute=True):
            with self.assertLogs('backend.attachments.signals', level='WARNING'):
                response = self.client.delete(f"/api/attachments/{data['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Attachment.objects.exists())
