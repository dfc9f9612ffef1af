"""Hardship document classifier HTTP client"""

import httpx

from negotiation_gateway.config import settings
from negotiation_gateway.domain.exceptions import ExternalServiceFailure, ExternalServiceTimeout
from negotiation_gateway.domain.models import ClassificationResult, UploadedDocument


class ClassifierClient:
    """Client for the external hardship document classifier"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.classifier_api_base
        self.timeout = timeout or settings.classifier_timeout_seconds
        self.transport = transport

    async def classify(self, document: UploadedDocument) -> ClassificationResult:
        """
        Judge whether one document demonstrates a qualifying hardship.

        Raises:
            ExternalServiceTimeout: On timeout
            ExternalServiceFailure: On HTTP errors or a malformed response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/classify",
                    json={
                        "name": document.name,
                        "type": document.content_type,
                        "size": document.size,
                        "data_url": document.data_url,
                    },
                )
                response.raise_for_status()
                data = response.json()

                approved = data["approved"]
                if not isinstance(approved, bool):
                    raise TypeError("approved must be a boolean")
                return ClassificationResult(approved=approved, reason_label=str(data.get("reason_label", "")))

            except httpx.TimeoutException as e:
                raise ExternalServiceTimeout(f"Classifier timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ExternalServiceFailure(f"Classifier error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ExternalServiceFailure(f"Classifier unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise ExternalServiceFailure(f"Invalid classification payload: {e}") from e
