import secrets

from rest_framework import serializers

from .models import (
    Document, DocumentAuditLog, DocumentData, Field, Recipient,
    Webhook, WebhookEvent, WebhookDeliveryLog
)


class RecipientSerializer(serializers.ModelSerializer):
    """Serializer for Recipient."""

    class Meta:
        model = Recipient
        fields = [
            'id', 'email', 'name', 'role', 'signing_status',
            'rejection_reason', 'signed_at'
        ]
        read_only_fields = fields


class FieldSerializer(serializers.ModelSerializer):
    """Serializer for Field with its placement."""

    class Meta:
        model = Field
        fields = [
            'id', 'recipient', 'type', 'page',
            'position_x', 'position_y', 'width', 'height',
            'custom_text', 'inserted', 'field_meta'
        ]
        read_only_fields = fields


class DocumentDataSerializer(serializers.ModelSerializer):

    class Meta:
        model = DocumentData
        fields = ['id', 'data', 'initial_data', 'sha256']
        read_only_fields = fields


class DocumentAuditLogSerializer(serializers.ModelSerializer):

    class Meta:
        model = DocumentAuditLog
        fields = ['id', 'type', 'data', 'name', 'email', 'ip_address', 'user_agent', 'created_at']
        read_only_fields = fields


class DocumentListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for document lists."""
    recipient_count = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            'id', 'title', 'status', 'team', 'completed_at',
            'created_at', 'updated_at', 'recipient_count'
        ]
        read_only_fields = fields

    def get_recipient_count(self, obj):
        return obj.recipients.count()


class DocumentDetailSerializer(serializers.ModelSerializer):
    """Full document with recipients, fields and audit trail."""
    recipients = RecipientSerializer(many=True, read_only=True)
    document_fields = FieldSerializer(source='fields', many=True, read_only=True)
    document_data = DocumentDataSerializer(read_only=True)
    audit_logs = DocumentAuditLogSerializer(many=True, read_only=True)

    class Meta:
        model = Document
        fields = [
            'id', 'title', 'status', 'owner', 'team', 'qr_token',
            'use_legacy_field_insertion', 'language', 'completed_at',
            'created_at', 'updated_at', 'document_data', 'recipients',
            'document_fields', 'audit_logs'
        ]
        read_only_fields = fields


class SealRequestSerializer(serializers.Serializer):
    """Payload for enqueuing a seal or reseal."""
    send_email = serializers.BooleanField(default=True)


class WebhookDocumentPayloadSerializer(serializers.ModelSerializer):
    """Document as delivered in DOCUMENT_COMPLETED / DOCUMENT_REJECTED webhooks."""
    user_id = serializers.IntegerField(source='owner_id', read_only=True)
    team_id = serializers.IntegerField(read_only=True)
    document_data = DocumentDataSerializer(read_only=True)
    recipients = RecipientSerializer(many=True, read_only=True)

    class Meta:
        model = Document
        fields = [
            'id', 'title', 'status', 'user_id', 'team_id', 'qr_token',
            'language', 'completed_at', 'created_at', 'updated_at',
            'document_data', 'recipients'
        ]
        read_only_fields = fields


class WebhookDeliveryLogSerializer(serializers.ModelSerializer):
    """Serializer for webhook delivery logs."""

    class Meta:
        model = WebhookDeliveryLog
        fields = [
            'id',
            'status_code',
            'response_body',
            'error_message',
            'duration_ms',
            'created_at',
        ]
        read_only_fields = fields


class WebhookEventSerializer(serializers.ModelSerializer):
    """Serializer for webhook events."""
    delivery_logs = WebhookDeliveryLogSerializer(many=True, read_only=True)

    class Meta:
        model = WebhookEvent
        fields = [
            'id',
            'webhook',
            'event_type',
            'payload',
            'status',
            'attempt_count',
            'last_error',
            'created_at',
            'delivered_at',
            'next_retry_at',
            'delivery_logs',
        ]
        read_only_fields = fields


class WebhookSerializer(serializers.ModelSerializer):
    """Serializer for webhooks."""
    events_list = serializers.SerializerMethodField()
    success_rate = serializers.SerializerMethodField()

    class Meta:
        model = Webhook
        fields = [
            'id',
            'url',
            'event_triggers',
            'events_list',
            'secret',
            'enabled',
            'team',
            'created_at',
            'updated_at',
            'last_triggered_at',
            'total_deliveries',
            'successful_deliveries',
            'failed_deliveries',
            'success_rate',
        ]
        read_only_fields = [
            'id',
            'secret',
            'created_at',
            'updated_at',
            'last_triggered_at',
            'total_deliveries',
            'successful_deliveries',
            'failed_deliveries',
        ]

    def validate_event_triggers(self, value):
        """Only known events can be subscribed to."""
        known = dict(Webhook.EVENTS)
        if not isinstance(value, list) or not value:
            raise serializers.ValidationError('Subscribe to at least one event')
        unknown = [event for event in value if event not in known]
        if unknown:
            raise serializers.ValidationError(f"Unknown events: {', '.join(unknown)}")
        return value

    def get_events_list(self, obj):
        """Return human-readable event names."""
        return [
            dict(Webhook.EVENTS).get(event, event)
            for event in obj.event_triggers
        ]

    def get_success_rate(self, obj):
        """Calculate delivery success rate."""
        if obj.total_deliveries == 0:
            return None
        return round((obj.successful_deliveries / obj.total_deliveries) * 100, 2)

    def create(self, validated_data):
        """Auto-generate secret on creation."""
        validated_data['secret'] = secrets.token_urlsafe(32)
        return super().create(validated_data)
