"""Chat proxy: inject catalog context and relay the model's stream."""

import logging
from typing import AsyncIterator, Optional, Sequence

import httpx

from .catalog import CatalogProvider
from .directives import parse_assistant_text
from .exceptions import ValidationError
from .inference import InferenceClient, InferenceStream
from .models import AssistantReply, ConversationTurn
from .prompt import build_system_prompt
from .sse import SSETextAccumulator

logger = logging.getLogger(__name__)


def compose_messages(
    system_prompt: str, history: Sequence[ConversationTurn], message: str
) -> list[ConversationTurn]:
    """Return ``[system] + history + [user]``. History is forwarded as-is."""
    return [
        ConversationTurn(role="system", content=system_prompt),
        *history,
        ConversationTurn(role="user", content=message),
    ]


async def relay(stream: InferenceStream) -> AsyncIterator[bytes]:
    """Forward backend chunks one at a time, closing the backend when done.

    The next chunk is only read after the previous one has been taken by the
    consumer. If the consumer stops early (client disconnect) the generator is
    closed and the backend response with it. A backend failure after the
    first byte cannot be reported in-band, so the stream just ends without
    the ``[DONE]`` sentinel.
    """
    forwarded = 0
    try:
        async for chunk in stream.aiter_bytes():
            forwarded += len(chunk)
            yield chunk
    except (httpx.HTTPError, httpx.StreamError) as e:
        logger.error(f"Inference stream failed after {forwarded} bytes: {e}", exc_info=True)
    finally:
        await stream.aclose()
        logger.debug(f"Relayed {forwarded} bytes")


class ChatProxy:
    """Builds the conversation for the model and relays its answer."""

    def __init__(self, catalog_provider: CatalogProvider, inference_client: InferenceClient) -> None:
        self.catalog_provider = catalog_provider
        self.inference_client = inference_client

    async def handle_chat(
        self, message: str, history: Optional[Sequence[ConversationTurn]] = None
    ) -> AsyncIterator[bytes]:
        """
        Start a chat completion and return its byte stream.

        Everything that can fail before the first byte (validation, catalog,
        backend connection and status) raises from this coroutine. The
        returned iterator relays the backend's SSE bytes unchanged.

        Args:
            message: The new user message
            history: Prior turns supplied by the client

        Raises:
            ValidationError: ``message`` is empty
            UpstreamFetchError: The backend rejected the request or is unreachable
        """
        if not message or not message.strip():
            raise ValidationError("Message is required")

        catalog = await self.catalog_provider.get_catalog()
        system_prompt = build_system_prompt(catalog)
        messages = compose_messages(system_prompt, history or [], message)

        stream = await self.inference_client.open_stream(messages)
        return relay(stream)

    async def collect_reply(
        self, message: str, history: Optional[Sequence[ConversationTurn]] = None
    ) -> AssistantReply:
        """Run a chat to completion and extract any cart command."""
        accumulator = SSETextAccumulator()
        chunks = await self.handle_chat(message, history)
        async for chunk in chunks:
            accumulator.feed(chunk)
        accumulator.close()
        if not accumulator.done:
            logger.warning("Inference stream ended without [DONE]; reply may be truncated")
        return parse_assistant_text(accumulator.text, completed=accumulator.done)
