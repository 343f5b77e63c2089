"""Chat proxy — forwards conversations to an OpenAI-compatible provider.

Learn: the provider key stays server-side. /chat relays the provider's
SSE stream (content-decoded); /chat/complete consumes it with the SSE parser
and returns the joined text for callers that cannot read a stream.
"""

from typing import AsyncIterator

import httpx
import structlog

from folio.realtime.sse import iter_chat_tokens

logger = structlog.get_logger()


class ChatProviderError(Exception):
    """The provider answered with an error status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Chat provider returned {status_code}")
        self.status_code = status_code
        self.body = body


class ChatProxy:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_url: str,
        api_key: str,
        model: str,
        timeout: float = 60.0,
    ):
        self.client = client
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    async def open_stream(self, messages: list[dict]) -> httpx.Response:
        """Start a streaming completion. The caller must aclose() the response.

        Raises ChatProviderError on a non-2xx answer (the response is
        already closed in that case).
        """
        request = self.client.build_request(
            "POST",
            self.api_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"model": self.model, "messages": messages, "stream": True},
            timeout=self.timeout,
        )
        response = await self.client.send(request, stream=True)
        if response.is_error:
            body = (await response.aread()).decode(errors="replace")
            await response.aclose()
            logger.warning(
                "chat.provider_error", status=response.status_code, body=body[:500]
            )
            raise ChatProviderError(response.status_code, body)
        return response

    async def relay(self, response: httpx.Response) -> AsyncIterator[bytes]:
        """Pass the upstream body through, closing it at the end.

        Bytes are content-decoded: the provider may gzip its reply, and the
        Content-Encoding header is not forwarded to the browser.
        """
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()

    async def complete(self, messages: list[dict]) -> str:
        response = await self.open_stream(messages)
        try:
            return "".join([token async for token in iter_chat_tokens(response.aiter_lines())])
        finally:
            await response.aclose()
