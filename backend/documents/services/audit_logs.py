"""
Helpers for building document audit log entries.

Request metadata is a plain dict (``ip_address``, ``user_agent``) so it can
travel through Celery task arguments.
"""

from .token_utils import generate_transaction_id


def get_client_ip(request):
    """Extract client IP from request."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def extract_request_metadata(request) -> dict:
    """Request metadata worth recording in the audit trail."""
    return {
        'ip_address': get_client_ip(request),
        'user_agent': request.META.get('HTTP_USER_AGENT', ''),
    }


def create_document_audit_log_data(type, document_id, data=None, request_metadata=None,
                                   user=None, name=None, email=None) -> dict:
    """
    Build the keyword arguments of a DocumentAuditLog row.

    Every entry gets a fresh ``transaction_id`` in its data unless one is given.

    Args:
        type: audit log type (e.g. 'DOCUMENT_COMPLETED')
        document_id: id of the document the entry belongs to
        data: type specific payload
        request_metadata: dict with ip_address / user_agent, or None
        user, name, email: the actor, all optional

    Returns:
        dict: ready for ``DocumentAuditLog.objects.create(**...)``
    """
    request_metadata = request_metadata or {}
    payload = {'transaction_id': generate_transaction_id()}
    payload.update(data or {})

    return {
        'type': type,
        'document_id': document_id,
        'data': payload,
        'user': user,
        'name': name,
        'email': email,
        'ip_address': request_metadata.get('ip_address') or None,
        'user_agent': request_metadata.get('user_agent') or None,
    }
