"""Language model HTTP client (OpenAI-compatible chat completions API)"""

from typing import Any, Dict, List, Sequence

import httpx

from negotiation_gateway.config import settings
from negotiation_gateway.domain.exceptions import ExternalServiceFailure, ExternalServiceTimeout
from negotiation_gateway.domain.models import ChatMessage
from negotiation_gateway.infrastructure.observability.metrics import model_latency_histogram


class ModelClient:
    """Client for the text-completion collaborator that words each reply"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model_name: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.model_api_base
        self.api_key = api_key if api_key is not None else settings.model_api_key
        self.model_name = model_name or settings.model_name
        self.timeout = timeout or settings.model_timeout_seconds
        self.transport = transport

    def _messages(self, system_context: str, conversation_history: Sequence[ChatMessage]) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": system_context}]
        for msg in conversation_history:
            role = "user" if msg.role == "user" else "assistant"
            messages.append({"role": role, "content": msg.content})
        return messages

    async def complete(self, system_context: str, conversation_history: Sequence[ChatMessage]) -> str:
        """
        Ask the model for the next assistant message.

        Raises:
            ExternalServiceTimeout: When the model does not answer within the timeout
            ExternalServiceFailure: On HTTP errors or a malformed response
        """
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "messages": self._messages(system_context, conversation_history),
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with model_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/chat/completions",
                        json=payload,
                        headers=headers,
                    )
                response.raise_for_status()
                data = response.json()
                content = data["choices"][0]["message"]["content"]
                if not isinstance(content, str):
                    raise TypeError("message content is not text")
                return content

            except httpx.TimeoutException as e:
                raise ExternalServiceTimeout(f"Model API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ExternalServiceFailure(f"Model API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ExternalServiceFailure(f"Model API unreachable: {e}") from e
            except (KeyError, IndexError, ValueError, TypeError) as e:
                raise ExternalServiceFailure(f"Invalid completion payload from model: {e}") from e
