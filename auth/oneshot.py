"""
oneshot.py

Single-value handoff from a worker thread to an asyncio waiter.
Built on concurrent.futures.Future so the producing side never needs an
event loop and the consuming side can await it with asyncio.wrap_future.
Part of DayLight — Desktop Planner Bridge.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Future, InvalidStateError
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """The sender went away without sending a value."""


class OneShotSender(Generic[T]):
    """
    Producing end of a one-shot channel.

    Owned by exactly one thread. Sends at most one value; closing without
    sending wakes the receiver with ChannelClosed.
    """

    def __init__(self, future: Future) -> None:
        self._future = future

    @property
    def receiver_dropped(self) -> bool:
        """True once the receiving end has been closed."""
        return self._future.cancelled()

    def send(self, value: T) -> bool:
        """
        Deliver the value to the receiver.

        Args:
            value: The value to hand over.

        Returns:
            True if the value was stored, False if the receiver was already
            dropped or a value was sent before.
        """
        try:
            self._future.set_result(value)
        except InvalidStateError:
            return False
        return True

    def close(self) -> None:
        """Close without a value. No-op if a value was sent or the receiver is gone."""
        try:
            self._future.set_exception(ChannelClosed())
        except InvalidStateError:
            pass

    def on_receiver_dropped(self, callback: Callable[[], None]) -> None:
        """
        Register a callback fired when the receiver is closed before a value
        was delivered. Runs on whichever thread drops the receiver.
        """

        def _fire(future: Future) -> None:
            if future.cancelled():
                callback()

        self._future.add_done_callback(_fire)


class OneShotReceiver(Generic[T]):
    """Consuming end of a one-shot channel."""

    def __init__(self, future: Future) -> None:
        self._future = future

    async def recv(self) -> T:
        """
        Suspend until the value arrives.

        Returns:
            The sent value.

        Raises:
            ChannelClosed: If the sender closed without sending.
            asyncio.CancelledError: If the waiting task is cancelled; this
                also drops the receiver.
        """
        return await asyncio.wrap_future(self._future)

    def close(self) -> None:
        """Drop the receiver. A value sent afterwards is discarded."""
        self._future.cancel()

    @property
    def closed(self) -> bool:
        return self._future.cancelled()


def channel() -> tuple[OneShotSender, OneShotReceiver]:
    """
    Create a connected sender/receiver pair.

    Returns:
        (sender, receiver) sharing one future.

    Example:
        tx, rx = channel()
        threading.Thread(target=tx.send, args=("abc",)).start()
        value = await rx.recv()
    """
    future: Future = Future()
    return OneShotSender(future), OneShotReceiver(future)
