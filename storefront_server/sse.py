"""Reassemble assistant text from a relayed server-sent-events stream."""

import codecs
import json
import logging

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSETextAccumulator:
    """Accumulates ``response`` deltas from ``data: {...}`` events.

    Bytes may be fed in arbitrarily sized chunks; lines and multi-byte UTF-8
    sequences split across chunks are reassembled before parsing.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""
        self._parts: list[str] = []
        self.done = False

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def feed(self, chunk: bytes) -> None:
        if self.done:
            return
        self._pending += self._decoder.decode(chunk)
        *lines, self._pending = self._pending.split("\n")
        for line in lines:
            self._handle_line(line.rstrip("\r"))
            if self.done:
                break

    def close(self) -> None:
        """Flush a trailing line that was not newline-terminated."""
        self._pending += self._decoder.decode(b"", final=True)
        if self._pending and not self.done:
            self._handle_line(self._pending.rstrip("\r"))
        self._pending = ""

    def _handle_line(self, line: str) -> None:
        if not line.startswith(DATA_PREFIX):
            return
        data = line[len(DATA_PREFIX):]
        if data == DONE_SENTINEL:
            self.done = True
            return
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            logger.debug(f"Skipping invalid event payload: {data!r}")
            return
        if isinstance(payload, dict) and payload.get("response"):
            self._parts.append(str(payload["response"]))
