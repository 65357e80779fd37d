from .hashing import HashingService, get_hashing_service
from .token_utils import generate_prefixed_id
from .document_service import DocumentService, get_document_service
from .job_runner import JobRunIO, LocalJobRunIO
from .seal_document import DocumentSealingService, get_document_sealing_service
from .webhook_service import WebhookService

__all__ = [
    'HashingService',
    'get_hashing_service',
    'generate_prefixed_id',
    'DocumentService',
    'get_document_service',
    'JobRunIO',
    'LocalJobRunIO',
    'DocumentSealingService',
    'get_document_sealing_service',
    'WebhookService',
]
