"""Step progress events and the channel that carries them.

A ``ProgressChannel`` fans each ``StepEvent`` out to synchronous observers
(handy in tests) and to any number of async iterators created with
``stream()``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

logger = logging.getLogger(__name__)

ProgressObserver = Callable[["StepEvent"], None]


@dataclass(frozen=True)
class StepEvent:
    """A route step has started."""

    route_id: str
    index: int
    step: str
    total: int

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1


class ProgressChannel:
    """Publish/subscribe channel for step events of one execution."""

    def __init__(self):
        self._observers: list[ProgressObserver] = []
        self._queues: list[asyncio.Queue] = []
        self._history: list[StepEvent] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def events(self) -> list[StepEvent]:
        """Every event published so far."""
        return list(self._history)

    def subscribe(self, observer: ProgressObserver) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def publish(self, event: StepEvent) -> None:
        if self._closed:
            raise RuntimeError("Cannot publish to a closed progress channel")
        self._history.append(event)
        for queue in self._queues:
            queue.put_nowait(event)
        for observer in list(self._observers):
            observer(event)

    def close(self) -> None:
        """Signal the end of the execution to every stream."""
        if self._closed:
            return
        self._closed = True
        for queue in self._queues:
            queue.put_nowait(None)

    async def stream(self, replay: bool = True) -> AsyncIterator[StepEvent]:
        """Iterate events as they arrive until the channel closes.

        With ``replay`` the iterator first yields events published before it
        was created.
        """
        queue: asyncio.Queue[Optional[StepEvent]] = asyncio.Queue()
        if replay:
            for event in self._history:
                queue.put_nowait(event)
        if self._closed:
            queue.put_nowait(None)
        else:
            self._queues.append(queue)

        try:
            while True:
                event = await queue.get()
                if event is None:
                    return
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)
