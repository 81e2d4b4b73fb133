"""Client for the hosted text-generation backend (Cloudflare Workers AI)."""

import logging
from typing import Any, AsyncIterator

import httpx

from .config import Settings
from .exceptions import UpstreamFetchError, UpstreamTimeoutError
from .models import ConversationTurn

logger = logging.getLogger(__name__)


class InferenceStream:
    """An open streamed response from the backend.

    The stream is lazy, finite and can be consumed once. It must be closed
    whether or not it was read to the end.
    """

    def __init__(self, response: httpx.Response) -> None:
        self.response = response

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self.response.aiter_bytes():
            if chunk:
                yield chunk

    async def aclose(self) -> None:
        await self.response.aclose()


class InferenceClient:
    """Opens streamed chat completions against the inference endpoint."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        """
        Initialize the inference client.

        Args:
            client: Shared HTTP client
            settings: Endpoint, credentials and timeout
        """
        self.client = client
        self.settings = settings

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"
        return headers

    async def open_stream(self, messages: list[ConversationTurn]) -> InferenceStream:
        """
        Send the conversation and return once the backend has accepted it.

        Args:
            messages: Full conversation, system prompt first

        Returns:
            The open response stream

        Raises:
            UpstreamTimeoutError: The backend did not respond in time
            UpstreamFetchError: Network error or non-success status
        """
        url = self.settings.resolved_inference_url()
        payload: dict[str, Any] = {
            "messages": [turn.model_dump() for turn in messages],
            "stream": True,
        }
        logger.info(f"Sending {len(messages)} message(s) to {self.settings.model}")
        logger.debug(f"Inference payload: {payload}")

        try:
            request = self.client.build_request(
                "POST",
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.settings.inference_timeout,
            )
            response = await self.client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError("Inference backend timed out") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamFetchError(f"Inference backend unreachable: {e}") from e

        if not response.is_success:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body = ""
            finally:
                await response.aclose()
            logger.error(f"Inference backend returned {response.status_code}: {body[:500]}")
            raise UpstreamFetchError(
                f"Inference backend returned {response.status_code}",
                status_code=response.status_code,
            )

        return InferenceStream(response)
