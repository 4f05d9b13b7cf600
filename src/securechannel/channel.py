"""
In-memory message channel and async endpoints.

The channel is a reliable, order-preserving duplex path between two
endpoints backed by asyncio queues. Endpoints only share messages, never
state. Each Endpoint serializes access to its own session with a
per-session lock and can push the CPU-bound steps (exponentiation,
cipher rounds) to an executor.
"""

import asyncio
import logging
from concurrent.futures import Executor
from typing import Optional, Tuple

from .envelope import encode_hello, decode_hello, encode_record, decode_record
from .session import HandshakeSession
from .types import Record, SessionKeys, ChannelClosedError, InvalidEnvelopeError

logger = logging.getLogger(__name__)


class MemoryChannel:
    """One end of an in-memory duplex channel."""

    def __init__(self, inbox: asyncio.Queue, outbox: asyncio.Queue) -> None:
        self._inbox = inbox
        self._outbox = outbox
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, data: bytes) -> None:
        """Queue bytes for the other end."""
        if self._closed:
            raise ChannelClosedError("Channel is closed")
        await self._outbox.put(data)

    async def receive(self) -> bytes:
        """Wait for the next message from the other end."""
        return await self._inbox.get()

    def close(self) -> None:
        self._closed = True


def create_channel_pair() -> Tuple[MemoryChannel, MemoryChannel]:
    """Create two connected channel ends."""
    a_to_b: asyncio.Queue = asyncio.Queue()
    b_to_a: asyncio.Queue = asyncio.Queue()
    return MemoryChannel(b_to_a, a_to_b), MemoryChannel(a_to_b, b_to_a)


class Endpoint:
    """
    Drives one HandshakeSession over a channel.

    Example usage:
        ```python
        client_end, server_end = create_channel_pair()
        client = Endpoint(HandshakeSession(MODP_2048, Role.CLIENT), client_end)
        server = Endpoint(HandshakeSession(MODP_2048, Role.SERVER), server_end)

        await run_handshake(client, server)
        await client.send(b"hello")
        assert await server.receive() == b"hello"
        ```
    """

    def __init__(
        self,
        session: HandshakeSession,
        channel: MemoryChannel,
        executor: Optional[Executor] = None,
    ) -> None:
        """
        Args:
            session: The session this endpoint owns.
            channel: Our end of the channel.
            executor: Optional executor for CPU-bound steps.
        """
        self.session = session
        self.channel = channel
        self._executor = executor
        self._lock = asyncio.Lock()
        self._receive_lock = asyncio.Lock()

    async def _run(self, func, *args):
        if self._executor is None:
            return func(*args)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    async def handshake(self) -> SessionKeys:
        """
        Exchange hellos with the peer and derive the session keys.

        Returns:
            The derived SessionKeys
        """
        # Same lock order as receive(): channel reads first, then the session
        async with self._receive_lock, self._lock:
            hello = await self._run(self.session.start)
            await self.channel.send(encode_hello(hello))

            data = await self.channel.receive()
            try:
                peer_hello = decode_hello(data)
            except InvalidEnvelopeError as e:
                self.session.abort(str(e))
                raise

            self.session.receive_hello(peer_hello)
            keys = await self._run(self.session.derive_keys)

        logger.debug("%s handshake complete", self.session.role.name.lower())
        return keys

    async def send(self, plaintext: bytes) -> Record:
        """Seal a message and send it to the peer."""
        async with self._lock:
            record = await self._run(self.session.seal, plaintext)
            await self.channel.send(encode_record(record))
        return record

    async def receive(self) -> bytes:
        """
        Wait for the next record and return its plaintext.

        Raises:
            InvalidEnvelopeError: If the message is not a record
            IntegrityError: If the record fails verification
        """
        async with self._receive_lock:
            data = await self.channel.receive()
            record = decode_record(data)
            async with self._lock:
                return await self._run(self.session.open, record)

    async def close(self) -> None:
        """Close the session and our end of the channel."""
        async with self._lock:
            self.session.close()
            self.channel.close()


async def run_handshake(client: Endpoint, server: Endpoint) -> Tuple[SessionKeys, SessionKeys]:
    """Run both sides of the handshake concurrently."""
    client_keys, server_keys = await asyncio.gather(client.handshake(), server.handshake())
    return client_keys, server_keys
