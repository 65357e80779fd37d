from django.contrib import admin
from .models import (
    Document, DocumentAuditLog, DocumentData, Field, JobTask, Recipient,
    Signature, Team, Webhook, WebhookEvent
)


class RecipientInline(admin.TabularInline):
    model = Recipient
    extra = 0
    fields = ('name', 'email', 'role', 'signing_status', 'rejection_reason', 'signed_at')


class FieldInline(admin.TabularInline):
    model = Field
    extra = 0
    fields = ('recipient', 'type', 'page', 'position_x', 'position_y', 'width', 'height', 'inserted')


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'include_signing_certificate', 'created_at')
    search_fields = ('name',)


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'team', 'completed_at', 'created_at', 'updated_at')
    search_fields = ('title', 'qr_token')
    list_filter = ('status', 'use_legacy_field_insertion', 'created_at')
    readonly_fields = ('qr_token', 'completed_at', 'created_at', 'updated_at')
    inlines = [RecipientInline, FieldInline]
    fieldsets = (
        ('Document Info', {
            'fields': ('title', 'owner', 'team', 'language')
        }),
        ('Status', {
            'fields': ('status', 'completed_at', 'document_data', 'use_legacy_field_insertion')
        }),
        ('Metadata', {
            'fields': ('qr_token', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(DocumentData)
class DocumentDataAdmin(admin.ModelAdmin):
    list_display = ('id', 'data', 'initial_data', 'sha256', 'created_at')
    search_fields = ('sha256', 'data')
    readonly_fields = ('sha256', 'created_at')


@admin.register(Signature)
class SignatureAdmin(admin.ModelAdmin):
    list_display = ('field', 'recipient', 'created_at')
    readonly_fields = ('created_at',)


@admin.register(DocumentAuditLog)
class DocumentAuditLogAdmin(admin.ModelAdmin):
    list_display = ('document', 'type', 'email', 'ip_address', 'created_at')
    list_filter = ('type', 'created_at')
    search_fields = ('document__title', 'email')
    readonly_fields = ('document', 'type', 'data', 'user', 'name', 'email',
                       'ip_address', 'user_agent', 'created_at')

    def has_change_permission(self, request, obj=None):
        """Audit entries are append-only."""
        return False


@admin.register(Webhook)
class WebhookAdmin(admin.ModelAdmin):
    list_display = ('url', 'enabled', 'team', 'total_deliveries', 'failed_deliveries', 'last_triggered_at')
    list_filter = ('enabled',)
    search_fields = ('url',)
    readonly_fields = ('secret', 'total_deliveries', 'successful_deliveries', 'failed_deliveries',
                       'last_triggered_at', 'created_at', 'updated_at')


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ('webhook', 'event_type', 'status', 'attempt_count', 'created_at', 'delivered_at')
    list_filter = ('event_type', 'status')
    readonly_fields = ('created_at', 'delivered_at', 'next_retry_at')


@admin.register(JobTask)
class JobTaskAdmin(admin.ModelAdmin):
    list_display = ('job_id', 'name', 'created_at')
    search_fields = ('job_id',)
    readonly_fields = ('job_id', 'name', 'result', 'created_at')
