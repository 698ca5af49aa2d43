"""Drives one turn's agent events through the encoder onto a transport."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from chatwire.config import StreamingConfig
from chatwire.encoder import FrameEncoder
from chatwire.errors import TransportClosedError
from chatwire.events import AgentEvent
from chatwire.frames import error_frame
from chatwire.transport import Transport

logger = logging.getLogger(__name__)


@dataclass
class StreamOutcome:
    """What happened to one streamed turn.

    Args:
        frames_written: Frames the transport accepted.
        terminated: Whether a finish or error frame went out.
        disconnected: Whether a write failed because the peer was gone.
    """

    frames_written: int = 0
    terminated: bool = False
    disconnected: bool = False


async def stream_turn(
    events: AsyncIterator[AgentEvent],
    transport: Transport,
    config: StreamingConfig | None = None,
) -> StreamOutcome:
    """Encode *events* in arrival order and write them to *transport*.

    Stops consuming after a terminal event.  An exception from the event
    source becomes a single error frame.  A failed write ends the turn
    silently; the peer cannot receive an error frame anyway.  The
    transport is closed in every case.
    """
    encoder = FrameEncoder(config)
    outcome = StreamOutcome()

    async def _write_all(frames: AsyncIterator[str]) -> None:
        async for frame in frames:
            await transport.write(frame)
            outcome.frames_written += 1

    try:
        try:
            async for event in events:
                await _write_all(encoder.encode(event))
                if encoder.terminated:
                    break
        except TransportClosedError:
            raise
        except Exception as e:
            logger.error(f"Event source failed: {e}", exc_info=True)
            await _write_all(encoder.encode_error(str(e) or type(e).__name__))
    except TransportClosedError as e:
        logger.info(f"Transport closed mid-stream, stopping turn: {e}")
        outcome.disconnected = True
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
        outcome.terminated = encoder.terminated
        if not encoder.terminated and not outcome.disconnected:
            logger.warning("Event source ended without a terminal event")
        await transport.close()
    return outcome


async def fail_fast(transport: Transport, message: str) -> StreamOutcome:
    """Write a single error frame and close, before anything else is sent."""
    outcome = StreamOutcome()
    try:
        await transport.write(error_frame(message))
        outcome.frames_written = 1
        outcome.terminated = True
    except TransportClosedError as e:
        logger.info(f"Transport closed before error frame could be sent: {e}")
        outcome.disconnected = True
    finally:
        await transport.close()
    return outcome
