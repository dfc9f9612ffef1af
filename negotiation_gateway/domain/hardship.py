"""Hardship gate - documentation review state and the term cap it unlocks"""

import asyncio
import logging
from typing import Awaitable, Dict, FrozenSet, List, Optional, Protocol, Sequence

from negotiation_gateway.domain.exceptions import ExternalServiceError, HardshipTransitionError
from negotiation_gateway.domain.models import (
    ClassificationResult,
    HardshipReview,
    HardshipStatus,
    PolicyConfig,
    UploadedDocument,
)

logger = logging.getLogger(__name__)

ACCEPTED_CONTENT_TYPES = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/jpg",
        "image/png",
        "text/plain",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024  # 10MB

GENERIC_FAILURE_REASON = "classification_unavailable"
UNSUPPORTED_DOCUMENT_REASON = "unsupported_document"

_ALLOWED_TRANSITIONS: Dict[HardshipStatus, FrozenSet[HardshipStatus]] = {
    HardshipStatus.UNSET: frozenset({HardshipStatus.PENDING_REVIEW}),
    HardshipStatus.PENDING_REVIEW: frozenset({HardshipStatus.APPROVED, HardshipStatus.REJECTED}),
    HardshipStatus.REJECTED: frozenset({HardshipStatus.PENDING_REVIEW}),
    HardshipStatus.APPROVED: frozenset(),
}


class DocumentClassifier(Protocol):
    """Anything that can judge one hardship document"""

    def classify(self, document: UploadedDocument) -> Awaitable[ClassificationResult]: ...


def max_allowed_term(status: HardshipStatus, policy: PolicyConfig) -> int:
    """Longest term length allowed for a hardship status"""
    if status == HardshipStatus.APPROVED:
        return policy.extended_term_cap
    return policy.base_term_cap


def is_supported_document(document: UploadedDocument) -> bool:
    return document.content_type in ACCEPTED_CONTENT_TYPES and 0 <= document.size <= MAX_DOCUMENT_BYTES


class HardshipGate:
    """
    Owns the hardship status of one session.

    Status only changes through transition(), which enforces:
    Unset → PendingReview → Approved | Rejected, Rejected → PendingReview.
    Approved is terminal.
    """

    def __init__(self, policy: PolicyConfig, status: HardshipStatus = HardshipStatus.UNSET):
        self.policy = policy
        self._status = status

    @property
    def status(self) -> HardshipStatus:
        return self._status

    @property
    def approved(self) -> bool:
        return self._status == HardshipStatus.APPROVED

    def max_allowed_term(self) -> int:
        return max_allowed_term(self._status, self.policy)

    def transition(self, new_status: HardshipStatus) -> HardshipStatus:
        if new_status not in _ALLOWED_TRANSITIONS[self._status]:
            raise HardshipTransitionError(
                f"Cannot move hardship status from {self._status.value} to {new_status.value}"
            )
        self._status = new_status
        return self._status

    async def submit_documents(
        self,
        documents: Sequence[UploadedDocument],
        classifier: DocumentClassifier,
        timeout: Optional[float] = None,
    ) -> HardshipReview:
        """
        Review one upload batch as a single gate transition.

        The batch is approved when any supported document is classified as
        approved. Classifier errors and timeouts count as rejection with a
        generic reason, so the status never stays PendingReview. If the
        review is cancelled the previous status is restored.
        """
        if self._status == HardshipStatus.APPROVED:
            return HardshipReview(status=self._status, reason_label="already_approved", classified=False)
        if not documents:
            return HardshipReview(status=self._status, reason_label="no_documents", classified=False)

        previous = self._status
        transitions: List[HardshipStatus] = [self.transition(HardshipStatus.PENDING_REVIEW)]
        try:
            approved, reason = await self._classify_batch(documents, classifier, timeout)
        except BaseException:
            # Nothing confirmed, leave the status as it was before the batch
            self._status = previous
            raise

        transitions.append(self.transition(HardshipStatus.APPROVED if approved else HardshipStatus.REJECTED))
        return HardshipReview(status=self._status, reason_label=reason, transitions=tuple(transitions))

    async def _classify_batch(
        self,
        documents: Sequence[UploadedDocument],
        classifier: DocumentClassifier,
        timeout: Optional[float],
    ) -> tuple[bool, str]:
        supported = [doc for doc in documents if is_supported_document(doc)]
        if not supported:
            return False, UNSUPPORTED_DOCUMENT_REASON

        try:
            results = await asyncio.wait_for(
                asyncio.gather(*(classifier.classify(doc) for doc in supported), return_exceptions=True),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Document classification timed out", extra={"documents": len(supported)})
            return False, GENERIC_FAILURE_REASON

        reasons = []
        for doc, result in zip(supported, results):
            if isinstance(result, ExternalServiceError):
                logger.warning(f"Document classification failed: {result}", extra={"document": doc.name})
                reasons.append(GENERIC_FAILURE_REASON)
                continue
            if isinstance(result, BaseException):
                raise result
            if result.approved:
                return True, result.reason_label
            reasons.append(result.reason_label)

        return False, reasons[0] if reasons else GENERIC_FAILURE_REASON
