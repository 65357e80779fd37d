from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.core.exceptions import ValidationError


class DocumentStatus(models.TextChoices):
    DRAFT = 'DRAFT', 'Draft'
    PENDING = 'PENDING', 'Pending'
    COMPLETED = 'COMPLETED', 'Completed'
    REJECTED = 'REJECTED', 'Rejected'


class RecipientRole(models.TextChoices):
    SIGNER = 'SIGNER', 'Signer'
    APPROVER = 'APPROVER', 'Approver'
    VIEWER = 'VIEWER', 'Viewer'
    ASSISTANT = 'ASSISTANT', 'Assistant'
    CC = 'CC', 'CC'


class SigningStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    SIGNED = 'SIGNED', 'Signed'
    REJECTED = 'REJECTED', 'Rejected'


class FieldType(models.TextChoices):
    SIGNATURE = 'SIGNATURE', 'Signature'
    FREE_SIGNATURE = 'FREE_SIGNATURE', 'Free signature'
    INITIALS = 'INITIALS', 'Initials'
    NAME = 'NAME', 'Name'
    EMAIL = 'EMAIL', 'Email'
    DATE = 'DATE', 'Date'
    TEXT = 'TEXT', 'Text'
    NUMBER = 'NUMBER', 'Number'
    RADIO = 'RADIO', 'Radio'
    CHECKBOX = 'CHECKBOX', 'Checkbox'
    DROPDOWN = 'DROPDOWN', 'Dropdown'


SIGNATURE_FIELD_TYPES = (FieldType.SIGNATURE, FieldType.FREE_SIGNATURE)

# Advanced fields are only required when their field_meta says so
ADVANCED_FIELD_TYPES = (
    FieldType.TEXT,
    FieldType.NUMBER,
    FieldType.RADIO,
    FieldType.CHECKBOX,
    FieldType.DROPDOWN,
)


class Team(models.Model):
    """
    Team owning documents. Holds the team-wide signing preferences.
    """
    name = models.CharField(max_length=255)
    include_signing_certificate = models.BooleanField(
        default=True,
        help_text="Append the signing certificate to sealed documents"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class DocumentData(models.Model):
    """
    Storage reference for a document's PDF bytes.

    `initial_data` points at the pristine upload and never changes;
    `data` points at the current rendering (replaced on every seal).
    """
    data = models.CharField(max_length=512, help_text="Storage path of the current PDF")
    initial_data = models.CharField(max_length=512, help_text="Storage path of the pristine PDF")
    sha256 = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"DocumentData {self.pk} ({self.data})"


class Document(models.Model):
    """
    Document represents one signing workflow over a single PDF.
    """
    title = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=DocumentStatus.choices,
        default=DocumentStatus.DRAFT
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='documents'
    )
    team = models.ForeignKey(
        Team,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='documents'
    )
    document_data = models.ForeignKey(
        DocumentData,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='documents'
    )
    qr_token = models.CharField(max_length=64, null=True, blank=True, unique=True)
    use_legacy_field_insertion = models.BooleanField(default=False)
    language = models.CharField(max_length=10, default='en')
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def include_signing_certificate(self):
        if self.team is None:
            return True
        return self.team.include_signing_certificate


class Recipient(models.Model):
    """
    A party to the document. CC recipients only receive copies.
    """
    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name='recipients'
    )
    email = models.EmailField(blank=True)
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(
        max_length=20,
        choices=RecipientRole.choices,
        default=RecipientRole.SIGNER
    )
    signing_status = models.CharField(
        max_length=20,
        choices=SigningStatus.choices,
        default=SigningStatus.PENDING
    )
    rejection_reason = models.TextField(null=True, blank=True)
    signed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.name or self.email} ({self.role}) - {self.document}"

    def clean(self):
        """Rejected recipients should say why."""
        if self.signing_status == SigningStatus.REJECTED and self.rejection_reason is None:
            raise ValidationError({'rejection_reason': 'A rejection reason is required when rejecting'})


class Field(models.Model):
    """
    Field placed on a document page for one recipient.

    Position and size are percentages (0-100) of the page, measured from
    the top-left corner.
    """
    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name='fields'
    )
    recipient = models.ForeignKey(
        Recipient,
        on_delete=models.CASCADE,
        related_name='fields'
    )
    type = models.CharField(max_length=20, choices=FieldType.choices)

    page = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    position_x = models.DecimalField(
        max_digits=10, decimal_places=6, default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    position_y = models.DecimalField(
        max_digits=10, decimal_places=6, default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    width = models.DecimalField(
        max_digits=10, decimal_places=6, default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    height = models.DecimalField(
        max_digits=10, decimal_places=6, default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )

    custom_text = models.TextField(blank=True, default='')
    inserted = models.BooleanField(default=False)
    field_meta = models.JSONField(null=True, blank=True)

    class Meta:
        ordering = ['page', 'position_y', 'position_x', 'id']

    def __str__(self):
        return f"{self.type} on page {self.page} - {self.document}"

    @property
    def is_signature_field(self):
        return self.type in SIGNATURE_FIELD_TYPES


class Signature(models.Model):
    """
    Signature captured for a signature-bearing field.
    Either an image (PNG data URL) or a typed name.
    """
    field = models.OneToOneField(
        Field,
        on_delete=models.CASCADE,
        related_name='signature'
    )
    recipient = models.ForeignKey(
        Recipient,
        on_delete=models.CASCADE,
        related_name='signatures'
    )
    signature_image_as_base64 = models.TextField(null=True, blank=True)
    typed_signature = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Signature for field {self.field_id}"


class DocumentAuditLog(models.Model):
    """
    Append-only audit trail entry for a document.
    """
    TYPES = [
        ('DOCUMENT_COMPLETED', 'Document completed'),
        ('EMAIL_SENT', 'Email sent'),
    ]

    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name='audit_logs'
    )
    type = models.CharField(max_length=50, choices=TYPES)
    data = models.JSONField(default=dict)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )
    name = models.CharField(max_length=255, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['document', 'type'], name='documents_d_documen_4c8e1f_idx'),
        ]

    def __str__(self):
        return f"{self.type} - {self.document}"


class Webhook(models.Model):
    """
    Webhook registration for external systems to listen to events.
    """
    EVENTS = [
        ('DOCUMENT_COMPLETED', 'Document Completed'),
        ('DOCUMENT_REJECTED', 'Document Rejected'),
    ]

    url = models.URLField(
        help_text="External endpoint URL to receive webhook events"
    )
    event_triggers = models.JSONField(
        default=list,
        help_text="List of events to subscribe to (e.g., ['DOCUMENT_COMPLETED'])"
    )
    secret = models.CharField(
        max_length=255,
        help_text="Secret key for webhook signature verification (HMAC-SHA256)"
    )
    enabled = models.BooleanField(
        default=True,
        help_text="Whether this webhook is enabled"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='webhooks'
    )
    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='webhooks'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_triggered_at = models.DateTimeField(null=True, blank=True)

    total_deliveries = models.PositiveIntegerField(default=0)
    successful_deliveries = models.PositiveIntegerField(default=0)
    failed_deliveries = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['enabled', 'created_at'], name='documents_w_enabled_9a7d2b_idx'),
        ]

    def __str__(self):
        return f"Webhook: {self.url}"


class WebhookEvent(models.Model):
    """
    Record of each webhook event fired (for audit trail and debugging).
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('delivered', 'Delivered'),
        ('failed', 'Failed'),
        ('retrying', 'Retrying'),
    ]

    webhook = models.ForeignKey(
        Webhook,
        on_delete=models.CASCADE,
        related_name='webhook_events'
    )
    event_type = models.CharField(max_length=50, choices=Webhook.EVENTS)
    payload = models.JSONField(help_text="Event data sent to webhook")
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending'
    )
    attempt_count = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    next_retry_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['webhook', 'status', 'created_at'], name='documents_w_webhook_3f61c0_idx'),
            models.Index(fields=['event_type', 'created_at'], name='documents_w_event_t_b28e94_idx'),
        ]

    def __str__(self):
        return f"{self.event_type} - {self.status}"


class WebhookDeliveryLog(models.Model):
    """
    Detailed log of each delivery attempt (for debugging).
    """
    event = models.ForeignKey(
        WebhookEvent,
        on_delete=models.CASCADE,
        related_name='delivery_logs'
    )
    status_code = models.PositiveIntegerField(null=True, blank=True)
    response_body = models.TextField(blank=True)
    error_message = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    duration_ms = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="How long the HTTP request took in milliseconds"
    )

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['event', 'created_at'], name='documents_w_event_i_5d07aa_idx'),
        ]

    def __str__(self):
        return f"Delivery Log - {self.event} (HTTP {self.status_code})"


class JobTask(models.Model):
    """
    Durable result of one named step of a background job.
    A re-run of the same job returns the stored result instead of redoing the step.
    """
    job_id = models.CharField(max_length=255)
    name = models.CharField(max_length=100)
    result = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['job_id', 'name'],
                name='unique_job_task_name'
            )
        ]

    def __str__(self):
        return f"{self.job_id}:{self.name}"
