from types import SimpleNamespace

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from documents import views
from documents.models import (
    Document, DocumentStatus, RecipientRole, SigningStatus, Webhook, WebhookEvent
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def queued(monkeypatch):
    calls = []

    def delay(*args, **kwargs):
        calls.append((args, kwargs))
        return SimpleNamespace(id='job-1')

    monkeypatch.setattr(views, 'seal_document_task', SimpleNamespace(delay=delay))
    return calls


class TestSeal:

    def test_seal_is_queued(self, client, queued, create_document):
        document = create_document()

        response = client.post(
            reverse('documents:document-seal', args=[document.pk]),
            {'send_email': False},
            format='json',
            HTTP_USER_AGENT='pytest',
            REMOTE_ADDR='10.0.0.3',
        )

        assert response.status_code == 202
        assert response.data == {'document_id': document.pk, 'job_id': 'job-1', 'is_resealing': False}

        args, kwargs = queued[0]
        assert args == (document.pk,)
        assert kwargs['send_email'] is False
        assert kwargs['is_resealing'] is False
        assert kwargs['request_metadata'] == {'ip_address': '10.0.0.3', 'user_agent': 'pytest'}

    def test_send_email_defaults_to_true(self, client, queued, create_document):
        document = create_document()

        client.post(reverse('documents:document-seal', args=[document.pk]), {}, format='json')

        assert queued[0][1]['send_email'] is True

    def test_incomplete_document_is_refused(self, client, queued, create_document):
        document = create_document(recipients=((RecipientRole.SIGNER, SigningStatus.PENDING),))

        response = client.post(reverse('documents:document-seal', args=[document.pk]), {}, format='json')

        assert response.status_code == 400
        assert 'error' in response.data
        assert queued == []

    def test_reseal_requires_a_sealed_document(self, client, queued, create_document):
        document = create_document()

        response = client.post(reverse('documents:document-reseal', args=[document.pk]), {}, format='json')

        assert response.status_code == 400
        assert queued == []

    def test_reseal_is_queued(self, client, queued, create_document):
        document = create_document(status=DocumentStatus.COMPLETED)

        response = client.post(reverse('documents:document-reseal', args=[document.pk]), {}, format='json')

        assert response.status_code == 202
        assert response.data['is_resealing'] is True
        assert queued[0][1]['is_resealing'] is True

    def test_unknown_document(self, client, queued):
        response = client.post(reverse('documents:document-seal', args=[999]), {}, format='json')

        assert response.status_code == 404


class TestDownload:

    def test_download_sealed_pdf(self, client, storage, create_document):
        document = create_document(status=DocumentStatus.COMPLETED)

        response = client.get(reverse('documents:document-download', args=[document.pk]))

        assert response.status_code == 200
        assert response['Content-Type'] == 'application/pdf'
        assert response['Content-Disposition'] == 'attachment; filename="contract.pdf"'
        assert response.content == storage.get_bytes(document.document_data)

    def test_pending_document_cannot_be_downloaded(self, client, create_document):
        document = create_document()

        response = client.get(reverse('documents:document-download', args=[document.pk]))

        assert response.status_code == 400

    def test_completed_document_without_data(self, client, create_document):
        document = create_document(status=DocumentStatus.COMPLETED)
        Document.objects.filter(pk=document.pk).update(document_data=None)

        response = client.get(reverse('documents:document-download', args=[document.pk]))

        assert response.status_code == 404


def test_document_detail_lists_fields(client, create_document, add_field):
    document = create_document()
    add_field(document, custom_text='hello')

    response = client.get(reverse('documents:document-detail', args=[document.pk]))

    assert response.status_code == 200
    assert response.data['document_fields'][0]['custom_text'] == 'hello'
    assert len(response.data['recipients']) == 1


def test_document_list(client, create_document):
    create_document()
    create_document(title='nda.pdf')

    response = client.get(reverse('documents:document-list'))

    assert response.status_code == 200
    assert response.data['count'] == 2


class TestWebhooks:

    def test_create_generates_a_secret(self, client):
        response = client.post(
            reverse('documents:webhook-list'),
            {'url': 'https://hooks.example.com/in', 'event_triggers': ['DOCUMENT_COMPLETED']},
            format='json',
        )

        assert response.status_code == 201
        webhook = Webhook.objects.get(pk=response.data['id'])
        assert len(webhook.secret) > 20
        assert response.data['events_list'] == ['Document Completed']

    @pytest.mark.parametrize('triggers', [[], ['DOCUMENT_VIEWED']])
    def test_create_rejects_bad_triggers(self, client, triggers):
        response = client.post(
            reverse('documents:webhook-list'),
            {'url': 'https://hooks.example.com/in', 'event_triggers': triggers},
            format='json',
        )

        assert response.status_code == 400
        assert 'event_triggers' in response.data

    def test_events_are_listed(self, client):
        webhook = Webhook.objects.create(
            url='https://hooks.example.com/in', event_triggers=['DOCUMENT_COMPLETED'], secret='s'
        )
        WebhookEvent.objects.create(webhook=webhook, event_type='DOCUMENT_COMPLETED', payload={'id': 1})

        response = client.get(reverse('documents:webhook-events', args=[webhook.pk]))

        assert response.status_code == 200
        assert response.data['count'] == 1
        assert response.data['results'][0]['payload'] == {'id': 1}
