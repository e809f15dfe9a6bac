"""Decoding of ``text/event-stream`` bodies into messages."""
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, List, Optional


@dataclass(frozen=True)
class SSEMessage:
    data: str
    event: Optional[str] = None
    id: Optional[str] = None

    @property
    def is_default(self) -> bool:
        # Unnamed events are what a browser delivers to EventSource.onmessage
        return self.event in (None, "message")


async def iter_sse_messages(lines: AsyncIterable[str]) -> AsyncIterator[SSEMessage]:
    """Yield one SSEMessage per blank-line terminated block of fields.

    Comment lines (``: ping``) are keep-alives and are skipped. Multiple
    ``data:`` lines are joined with newlines. Blocks without data are dropped.
    """
    data: List[str] = []
    event: Optional[str] = None
    last_id: Optional[str] = None

    async for raw in lines:
        line = raw.rstrip("\r\n")
        if not line:
            if data:
                yield SSEMessage(data="\n".join(data), event=event, id=last_id)
            data, event = [], None
            continue
        if line.startswith(":"):
            continue

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data.append(value)
        elif name == "event":
            event = value or None
        elif name == "id":
            last_id = value
        # "retry" and unknown fields are ignored

    # Servers sometimes close without the final blank line
    if data:
        yield SSEMessage(data="\n".join(data), event=event, id=last_id)
