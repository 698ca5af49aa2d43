"""Tracks how much of a cumulative string has already been sent."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class DeltaTracker:
    """Turns cumulative content into unseen suffixes, per stream id.

    Producers are expected to only ever grow the content.  An update that
    does not grow it is a no-op: nothing is returned and the sent length
    is kept, so text already on the wire is never repeated.
    """

    def __init__(self) -> None:
        self._sent: dict[str, int] = {}

    def diff(self, stream_id: str, cumulative: str) -> str:
        last = self._sent.get(stream_id, 0)
        if len(cumulative) <= last:
            if len(cumulative) < last:
                logger.debug(
                    f"Stream {stream_id} shrank from {last} to "
                    f"{len(cumulative)} chars; ignoring"
                )
            return ""
        self._sent[stream_id] = len(cumulative)
        return cumulative[last:]

    def sent_length(self, stream_id: str) -> int:
        return self._sent.get(stream_id, 0)

    def reset(self, stream_id: str | None = None) -> None:
        if stream_id is None:
            self._sent.clear()
        else:
            self._sent.pop(stream_id, None)
