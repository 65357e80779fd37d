"""
backend/documents/urls.py

"""

# ----------------------------
# Django imports
# ----------------------------
from django.urls import path

# ----------------------------
# Local view imports
# ----------------------------
from .views import DocumentViewSet, WebhookViewSet

# App namespace for reverse() lookups
app_name = 'documents'

# ----------------------------
# Primary document routes
# ----------------------------
urlpatterns = [
    path('', DocumentViewSet.as_view({'get': 'list'}), name='document-list'),
    # Paginated list of documents with their status.

    path('<int:pk>/', DocumentViewSet.as_view({'get': 'retrieve'}), name='document-detail'),
    # Document with recipients, fields, current document data and audit trail.

    path('<int:pk>/seal/', DocumentViewSet.as_view({'post': 'seal'}), name='document-seal'),
    # Queue sealing once every recipient has signed or one has rejected. Returns 202.

    path('<int:pk>/reseal/', DocumentViewSet.as_view({'post': 'reseal'}), name='document-reseal'),
    # Queue a re-render of a sealed document from its pristine upload. Returns 202.

    path('<int:pk>/download/', DocumentViewSet.as_view({'get': 'download'}), name='document-download'),
    # Sealed PDF of a completed or rejected document.
]

# ----------------------------
# Webhook routes
# ----------------------------
webhook_urls = [
    path('webhooks/', WebhookViewSet.as_view({'get': 'list', 'post': 'create'}), name='webhook-list'),
    # Create or list webhooks. Webhooks allow external services to receive event notifications.

    path('webhooks/<int:pk>/', WebhookViewSet.as_view({'get': 'retrieve', 'patch': 'partial_update', 'delete': 'destroy'}), name='webhook-detail'),
    # Retrieve, update or delete a webhook configuration.

    path('webhooks/<int:pk>/events/', WebhookViewSet.as_view({'get': 'events'}), name='webhook-events'),
    # Events fired for a webhook with their delivery attempts.
]

# Combine primary urlpatterns with webhook routes
urlpatterns += webhook_urls
