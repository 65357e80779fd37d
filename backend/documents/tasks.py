"""
Celery entry points for the sealing pipeline.
"""

import logging

from celery import shared_task

from .exceptions import SealPreconditionError
from .models import Document
from .services.job_runner import JobRunIO
from .services.seal_document import get_document_sealing_service

logger = logging.getLogger(__name__)

# Seconds to wait before each retry of a failed seal
SEAL_RETRY_DELAYS = [30, 120, 600]


@shared_task(bind=True, name='documents.seal_document', max_retries=len(SEAL_RETRY_DELAYS))
def seal_document_task(self, document_id: int, send_email: bool = True, is_resealing: bool = False,
                       request_metadata: dict = None):
    """
    Seal a document in the background.

    The Celery task id keys the step checkpoints, so a retry resumes after
    the last completed step. Precondition failures are not retried: the
    document has to change before sealing can succeed.
    """
    io = JobRunIO(job_id=self.request.id or f'seal-{document_id}')

    try:
        document = get_document_sealing_service().seal_document(
            document_id,
            send_email=send_email,
            is_resealing=is_resealing,
            request_metadata=request_metadata,
            io=io,
        )
    except SealPreconditionError as e:
        logger.warning("Not sealing document %s: %s", document_id, e)
        return {'ok': False, 'error': 'precondition_failed', 'detail': str(e)}
    except Document.DoesNotExist:
        logger.warning("Not sealing document %s: it does not exist", document_id)
        return {'ok': False, 'error': 'not_found', 'detail': f"Document {document_id} does not exist"}
    except Exception as e:
        attempt = self.request.retries
        if attempt >= len(SEAL_RETRY_DELAYS):
            logger.error("Sealing document %s failed after %d retries", document_id, attempt)
            raise
        logger.warning("Sealing document %s failed (%s), retrying", document_id, e)
        raise self.retry(exc=e, countdown=SEAL_RETRY_DELAYS[attempt])

    return {'ok': True, 'document_id': document.pk, 'status': document.status}
