import logging
from pathlib import PurePosixPath

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import HttpResponse
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from .models import Document, Webhook
from .serializers import (
    DocumentDetailSerializer,
    DocumentListSerializer,
    SealRequestSerializer,
    WebhookEventSerializer,
    WebhookSerializer,
)
from .services.audit_logs import extract_request_metadata
from .services.document_service import DocumentService
from .services.storage import get_document_storage
from .tasks import seal_document_task

logger = logging.getLogger(__name__)


class StandardResultsSetPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 1000


class DocumentViewSet(viewsets.ReadOnlyModelViewSet):
    """Read access to documents plus the seal / reseal / download actions."""
    queryset = Document.objects.select_related('document_data', 'team').prefetch_related(
        'recipients', 'fields', 'audit_logs'
    )
    pagination_class = StandardResultsSetPagination

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'list':
            return DocumentListSerializer
        return DocumentDetailSerializer

    def _enqueue_seal(self, request, is_resealing):
        document = self.get_object()

        if not DocumentService.is_document_complete(list(document.recipients.all())):
            raise DjangoValidationError('All recipients must sign or reject before sealing')

        if is_resealing and not DocumentService.is_document_completed(document.status):
            raise DjangoValidationError('Only sealed documents can be resealed')

        serializer = SealRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = seal_document_task.delay(
            document.pk,
            send_email=serializer.validated_data['send_email'],
            is_resealing=is_resealing,
            request_metadata=extract_request_metadata(request),
        )
        logger.info("Queued %s of document %s as job %s",
                    'reseal' if is_resealing else 'seal', document.pk, result.id)

        return Response(
            {'document_id': document.pk, 'job_id': result.id, 'is_resealing': is_resealing},
            status=status.HTTP_202_ACCEPTED
        )

    @action(detail=True, methods=['post'])
    def seal(self, request, pk=None):
        """Queue sealing of a document whose recipients have all acted."""
        try:
            return self._enqueue_seal(request, is_resealing=False)
        except DjangoValidationError as e:
            return Response({'error': e.messages[0]}, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=True, methods=['post'])
    def reseal(self, request, pk=None):
        """Queue a re-render of an already sealed document from its original PDF."""
        try:
            return self._enqueue_seal(request, is_resealing=True)
        except DjangoValidationError as e:
            return Response({'error': e.messages[0]}, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        """Download the sealed PDF."""
        document = self.get_object()

        if not DocumentService.is_document_completed(document.status):
            return Response(
                {'error': 'Document must be completed before downloading'},
                status=status.HTTP_400_BAD_REQUEST
            )

        if document.document_data is None:
            return Response({'error': 'Document has no data'}, status=status.HTTP_404_NOT_FOUND)

        pdf_bytes = get_document_storage().get_bytes(document.document_data)
        filename = PurePosixPath(document.document_data.data).name

        response = HttpResponse(pdf_bytes, content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response


class WebhookViewSet(viewsets.ModelViewSet):
    """CRUD for webhook subscriptions, plus their delivery history."""
    queryset = Webhook.objects.all()
    serializer_class = WebhookSerializer
    pagination_class = StandardResultsSetPagination

    def perform_create(self, serializer):
        user = self.request.user if self.request.user.is_authenticated else None
        serializer.save(user=user)

    @action(detail=True, methods=['get'])
    def events(self, request, pk=None):
        """List events fired for a webhook, newest first."""
        webhook = self.get_object()
        events = webhook.webhook_events.prefetch_related('delivery_logs')

        page = self.paginate_queryset(events)
        if page is not None:
            return self.get_paginated_response(WebhookEventSerializer(page, many=True).data)
        return Response(WebhookEventSerializer(events, many=True).data)
