"""Activation state machine: triggers, window ordering and focus changes"""

import asyncio
import functools
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .channel import Event, Trigger, TriggerChannel, UserCancelled, UserSelected
from .constants import DEFAULT_CONFIG
from .niri import CompositorClient, CompositorError, Window
from .window_cache import WindowOrderCache

logger = logging.getLogger(__name__)


class OverlayState(Enum):
    """Overlay state machine states"""
    HIDDEN = "hidden"      # Overlay not shown, trigger queries the compositor
    VISIBLE = "visible"    # Overlay shown, trigger advances the selection


class Presenter(ABC):
    """Receives directives from the controller

    The presenter reports the user's choice back by sending UserSelected
    or UserCancelled through the controller's channel.
    """

    @abstractmethod
    def show(self, windows: List[Window]):
        """Present windows in the given order, first one selected"""

    @abstractmethod
    def advance_selection(self):
        """Select the next window, wrapping around at the end"""

    @abstractmethod
    def dismiss(self):
        """Hide the overlay"""

    @abstractmethod
    def operation_failed(self, error: Exception):
        """Report a failed compositor call and hide the overlay"""


def presentation_order(order: Sequence[int], swap_first: bool = True) -> List[int]:
    """Order in which windows are shown to the user

    The most recent window is usually the one already focused, so the
    second most recent one is moved to the first slot.

    Args:
        order: Window IDs, most recent first
        swap_first: Whether to swap the first two entries

    Returns:
        New list, the input is left untouched
    """
    presented = list(order)
    if swap_first and len(presented) > 1:
        presented[0], presented[1] = presented[1], presented[0]
    return presented


class ActivationController:
    """Owns the window cache and the overlay state

    All events are consumed by one task from the channel and handled one
    at a time. Compositor calls run on a single worker thread and are
    awaited, so no other event touches the cache or the state while a
    call is in flight; triggers arriving meanwhile wait in the channel.
    """

    def __init__(self, client: CompositorClient, presenter: Presenter, channel: TriggerChannel,
                 config: Optional[Dict] = None, executor: Optional[Executor] = None):
        """Initialize controller

        Args:
            client: Compositor client (blocking)
            presenter: Overlay presenter
            channel: Mailbox delivering triggers and user choices
            config: Configuration dictionary
            executor: Worker for blocking compositor calls
        """
        self.client = client
        self.presenter = presenter
        self.channel = channel
        self.config = dict(DEFAULT_CONFIG, **(config or {}))

        self.state = OverlayState.HIDDEN
        self.cache = WindowOrderCache()

        # Windows currently on screen, keyed by ID
        self._presented: Dict[int, Window] = {}

        self._own_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="niri-ipc")

    async def run(self):
        """Consume events until cancelled"""
        self.channel.attach(asyncio.get_running_loop())
        logger.info("Activation controller started")
        try:
            while True:
                event = await self.channel.receive()
                await self.handle_event(event)
        finally:
            if self._own_executor:
                self.executor.shutdown(wait=False)
            logger.info("Activation controller stopped")

    async def handle_event(self, event: Event):
        """Run the state transition for one event

        Args:
            event: Event taken from the channel
        """
        logger.debug(f"[STATE] {event!r} in state {self.state.value}")

        if isinstance(event, Trigger):
            await self._on_trigger()
        elif isinstance(event, UserSelected):
            await self._on_selected(event.window_id)
        elif isinstance(event, UserCancelled):
            self._on_cancelled()
        else:
            logger.warning(f"Ignoring unknown event {event!r}")

    async def _call(self, func, *args):
        """Run a blocking compositor call on the worker and wait for it"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, functools.partial(func, *args))

    def _query_windows(self):
        # Runs on the worker thread
        windows = self.client.list_windows()
        workspace_id = None
        if self.config.get('workspace_only') and windows:
            workspace_id = self.client.focused_workspace_id()
        return windows, workspace_id

    async def _on_trigger(self):
        """Handle trigger - HIDDEN → VISIBLE, or advance while VISIBLE"""
        if self.state == OverlayState.VISIBLE:
            self.presenter.advance_selection()
            return

        try:
            windows, workspace_id = await self._call(self._query_windows)
        except CompositorError as e:
            self._fail(e)
            return

        windows_by_id = {window.id: window for window in windows}
        self.cache.reconcile(windows_by_id)

        order = self.cache.snapshot_order()
        if workspace_id is not None:
            order = [wid for wid in order if windows_by_id[wid].workspace_id == workspace_id]

        if not order:
            logger.debug("No windows to present, staying hidden")
            return

        presented = presentation_order(order, self.config.get('swap_first', True))
        self._presented = {wid: windows_by_id[wid] for wid in presented}

        logger.debug(f"[STATE] HIDDEN → VISIBLE with {len(presented)} window(s)")
        self.state = OverlayState.VISIBLE
        self.presenter.show([windows_by_id[wid] for wid in presented])

    async def _on_selected(self, window_id: int):
        """Handle user choice - VISIBLE → HIDDEN after focusing the window"""
        if self.state != OverlayState.VISIBLE:
            logger.debug(f"Ignoring selection of {window_id}, overlay is hidden")
            return

        if window_id not in self._presented:
            logger.warning(f"Ignoring selection of {window_id}, it was not presented")
            return

        self.cache.move_to_front(window_id)

        try:
            await self._call(self.client.focus_window, window_id)
        except CompositorError as e:
            self._fail(e)
            return

        self._hide()
        self.presenter.dismiss()

    def _on_cancelled(self):
        self._hide()
        self.presenter.dismiss()

    def _hide(self):
        if self.state != OverlayState.HIDDEN:
            logger.debug("[STATE] VISIBLE → HIDDEN")
        self.state = OverlayState.HIDDEN
        self._presented = {}

    def _fail(self, error: CompositorError):
        logger.error(f"Compositor call failed: {error}")
        self._hide()
        self.presenter.operation_failed(error)
