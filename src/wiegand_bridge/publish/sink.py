"""
Publish Sinks
=============

The sink is the only collaborator downstream of the decoder. It receives
textual values under hierarchical topics and is responsible for its own
connection management; the bridge never retries a publication.
"""

import logging
from dataclasses import dataclass
from typing import List, Protocol


logger = logging.getLogger(__name__)


class PublishSink(Protocol):
    """Protocol for key/value publish sinks."""

    def publish(self, topic: str, payload: str, retained: bool = True) -> None:
        """Push one value. Must not block on network acknowledgment."""
        ...

    def close(self) -> None:
        """Release the sink's resources."""
        ...


@dataclass(frozen=True, slots=True)
class Publication:
    """One recorded publication."""

    topic: str
    payload: str
    retained: bool


class MemorySink:
    """
    Sink that keeps publications in memory.

    Used for dry runs (no broker) and tests. Retained values are also
    tracked per topic, the way a broker would hold them. Dry runs pass
    record=False so the publication log does not grow for the life of
    the process.

    Attributes:
        publications: Every publication in order
        retained: Last retained payload per topic
    """

    def __init__(self, echo: bool = False, record: bool = True) -> None:
        """
        Args:
            echo: Log each publication at INFO
            record: Append each publication to `publications`
        """
        self.echo = echo
        self.record = record
        self.publications: List[Publication] = []
        self.retained: dict = {}
        self.closed = False

    def publish(self, topic: str, payload: str, retained: bool = True) -> None:
        if self.record:
            self.publications.append(Publication(topic, payload, retained))
        if retained:
            self.retained[topic] = payload
        if self.echo:
            logger.info(f"{topic} = {payload!r}")

    def close(self) -> None:
        self.closed = True

    def topics(self) -> List[str]:
        """Topics in publication order."""
        return [p.topic for p in self.publications]

    def clear(self) -> None:
        self.publications.clear()
        self.retained.clear()
