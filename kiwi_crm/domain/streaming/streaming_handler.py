from typing import AsyncIterator, Optional
import asyncio
import structlog

logger = structlog.get_logger(__name__)


class CancellationToken:
    """Cancellation signal shared by the stream reader and the agent loop"""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "client aborted"):
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class StreamingHandler:
    """Relays agent text chunks to the HTTP response as they are produced"""

    def __init__(self, cancellation: Optional[CancellationToken] = None):
        self.cancellation = cancellation or CancellationToken()

    async def open(self, source: AsyncIterator[str]) -> AsyncIterator[str]:
        """Start the source and return the relay stream.

        The first chunk is pulled before anything is sent, so a failure
        before the model produced any text propagates to the caller here
        and can still become an ordinary error response.
        """

        iterator = source.__aiter__()
        try:
            first = await iterator.__anext__()
        except StopAsyncIteration:
            first = None
        except BaseException:
            await self._close(iterator)
            raise

        return self._relay(first, iterator)

    async def _relay(self, first: Optional[str], iterator: AsyncIterator[str]) -> AsyncIterator[str]:
        sent_chunks = 0
        try:
            if first:
                sent_chunks += 1
                yield first

            async for chunk in iterator:
                if self.cancellation.cancelled:
                    logger.info("Stream cancelled", reason=self.cancellation.reason, sent_chunks=sent_chunks)
                    break
                if not chunk:
                    continue
                sent_chunks += 1
                yield chunk

        except (asyncio.CancelledError, GeneratorExit):
            # Client went away; an abort is not a failure
            self.cancellation.cancel("client disconnected")
            logger.info("Stream cancelled", reason=self.cancellation.reason, sent_chunks=sent_chunks)
            raise
        except Exception as e:
            logger.error("Stream failed after output began", error=str(e), sent_chunks=sent_chunks)
            raise
        finally:
            await self._close(iterator)

        logger.debug("Stream complete", sent_chunks=sent_chunks)

    @staticmethod
    async def _close(iterator: AsyncIterator[str]):
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
