import logging
import time
from datetime import timedelta

import requests
from celery import shared_task
from django.utils import timezone

from ..models import Webhook, WebhookEvent, WebhookDeliveryLog
from .hashing import HashingService

logger = logging.getLogger(__name__)


class WebhookDeliveryError(Exception):
    """The endpoint answered with a non-2xx status."""


class WebhookService:
    """Notify subscribed endpoints when a document is sealed or rejected."""

    # Maximum retry attempts
    MAX_RETRIES = 3

    # Retry delays (in seconds)
    RETRY_DELAYS = [60, 300, 900]  # 1 min, 5 min, 15 min

    # Request timeout
    REQUEST_TIMEOUT = 10

    @staticmethod
    def get_matching_webhooks(event_type: str, user_id=None, team_id=None):
        """
        Enabled webhooks subscribed to event_type for the given owner.

        Team documents notify the team's webhooks; personal documents notify
        the user's webhooks that are not attached to a team.
        """
        webhooks = Webhook.objects.filter(enabled=True)
        if team_id is not None:
            webhooks = webhooks.filter(team_id=team_id)
        else:
            webhooks = webhooks.filter(user_id=user_id, team__isnull=True)

        # Filter in Python (JSON containment lookups are not available on SQLite)
        return [webhook for webhook in webhooks if event_type in (webhook.event_triggers or [])]

    @staticmethod
    def trigger_event(event_type: str, payload: dict, user_id=None, team_id=None):
        """
        Trigger a webhook event for all matching webhooks.

        Returns:
            list[WebhookEvent]: one event per notified webhook
        """
        matching_webhooks = WebhookService.get_matching_webhooks(event_type, user_id, team_id)

        logger.info(f"Triggering event '{event_type}' for {len(matching_webhooks)} webhook(s)")

        events = []
        for webhook in matching_webhooks:
            event = WebhookEvent.objects.create(
                webhook=webhook,
                event_type=event_type,
                payload=payload,
                status='pending'
            )
            deliver_webhook_event.delay(event.id)
            events.append(event)

        return events

    @staticmethod
    def build_delivery_payload(event: WebhookEvent) -> dict:
        return {
            'event': event.event_type,
            'payload': event.payload,
            'createdAt': event.created_at.isoformat(),
            'webhookEndpoint': event.webhook.url,
        }

    @staticmethod
    def deliver_event(event: WebhookEvent, retry_attempt: int = 0):
        """
        POST one event to its endpoint and record the attempt.

        Args:
            event: WebhookEvent instance
            retry_attempt: Current retry attempt number
        """
        webhook = event.webhook
        payload = WebhookService.build_delivery_payload(event)

        headers = {
            'Content-Type': 'application/json',
            'X-Webhook-Signature': WebhookService.generate_signature(webhook, payload),
            'X-Webhook-Event': event.event_type,
            'X-Webhook-Delivery': str(event.id),
        }

        start_time = time.time()
        responded = False
        try:
            response = requests.post(
                webhook.url,
                data=HashingService.stable_json(payload),
                headers=headers,
                timeout=WebhookService.REQUEST_TIMEOUT
            )
            responded = True
            duration_ms = int((time.time() - start_time) * 1000)

            WebhookDeliveryLog.objects.create(
                event=event,
                status_code=response.status_code,
                response_body=response.text[:1000],
                duration_ms=duration_ms
            )

            if not 200 <= response.status_code < 300:
                raise WebhookDeliveryError(f"HTTP {response.status_code}: {response.text[:200]}")

            event.status = 'delivered'
            event.delivered_at = timezone.now()
            event.attempt_count = retry_attempt + 1
            event.save(update_fields=['status', 'delivered_at', 'attempt_count'])

            WebhookService.increment_delivery_attempt(webhook, success=True)
            logger.info(f"✅ Webhook {webhook.id} delivered successfully (HTTP {response.status_code})")
            return

        except requests.exceptions.Timeout:
            error_msg = "Request timeout"
        except requests.exceptions.ConnectionError:
            error_msg = "Connection error"
        except (requests.exceptions.RequestException, WebhookDeliveryError) as e:
            error_msg = str(e)

        if not responded:
            WebhookDeliveryLog.objects.create(
                event=event,
                error_message=error_msg,
                duration_ms=int((time.time() - start_time) * 1000)
            )

        logger.warning(f"❌ Webhook delivery failed: {error_msg}")
        WebhookService.handle_failure(event, retry_attempt, error_msg)

    @staticmethod
    def handle_failure(event: WebhookEvent, retry_attempt: int, error_msg: str):
        """Schedule the next retry, or mark the event failed once retries are exhausted."""
        event.last_error = error_msg
        event.attempt_count = retry_attempt + 1

        if retry_attempt < WebhookService.MAX_RETRIES:
            retry_delay = WebhookService.RETRY_DELAYS[retry_attempt]
            event.status = 'retrying'
            event.next_retry_at = timezone.now() + timedelta(seconds=retry_delay)
            event.save()

            retry_webhook_event.apply_async(
                args=[event.id, retry_attempt + 1],
                countdown=retry_delay
            )

            logger.info(f"⏳ Retrying webhook {event.webhook_id} in {retry_delay}s")
        else:
            event.status = 'failed'
            event.save()

            WebhookService.increment_delivery_attempt(event.webhook, success=False)
            logger.error(f"❌ Webhook {event.webhook_id} failed after {WebhookService.MAX_RETRIES} retries")

    @staticmethod
    def generate_signature(webhook, payload: dict) -> str:
        """
        HMAC-SHA256 of the delivery body, keyed with the webhook secret.

        Args:
            webhook: Webhook instance
            payload: dict, event payload

        Returns:
            str: Hexadecimal signature
        """
        return HashingService.compute_hmac_sha256(webhook.secret, payload)

    @staticmethod
    def increment_delivery_attempt(webhook, success: bool):
        """
        Track delivery statistics.

        Args:
            webhook: Webhook instance
            success: bool, whether delivery was successful
        """
        webhook.total_deliveries += 1
        if success:
            webhook.successful_deliveries += 1
        else:
            webhook.failed_deliveries += 1
        webhook.last_triggered_at = timezone.now()
        webhook.save(update_fields=[
            'total_deliveries',
            'successful_deliveries',
            'failed_deliveries',
            'last_triggered_at'
        ])


# Celery tasks for async webhook delivery
@shared_task
def deliver_webhook_event(event_id: int):
    """First delivery attempt of a document event."""
    try:
        event = WebhookEvent.objects.select_related('webhook').get(id=event_id)
    except WebhookEvent.DoesNotExist:
        logger.error(f"WebhookEvent {event_id} not found")
        return
    WebhookService.deliver_event(event, retry_attempt=0)


@shared_task
def retry_webhook_event(event_id: int, retry_attempt: int):
    """Later delivery attempt, scheduled by handle_failure."""
    try:
        event = WebhookEvent.objects.select_related('webhook').get(id=event_id)
    except WebhookEvent.DoesNotExist:
        logger.error(f"WebhookEvent {event_id} not found")
        return
    WebhookService.deliver_event(event, retry_attempt=retry_attempt)


def get_webhook_service() -> WebhookService:
    return WebhookService()
