"""Compositor access: the client interface and its niri IPC implementation"""

import json
import logging
import os
import socket
from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional

from .constants import NIRI_SOCKET_ENV, NIRI_READ_CHUNK

logger = logging.getLogger(__name__)


class CompositorError(Exception):
    """Compositor could not be reached or refused a request"""


class StaleWindowError(CompositorError):
    """Requested window no longer exists"""

    def __init__(self, window_id: int):
        super().__init__(f"Window {window_id} no longer exists")
        self.window_id = window_id


class Window(NamedTuple):
    """Window as reported by the compositor"""
    id: int
    app_id: str = ""
    title: str = ""
    workspace_id: Optional[int] = None
    is_focused: bool = False

    @property
    def label(self) -> str:
        """Fallback display label when no desktop app matches"""
        return self.app_id or self.title or f"Window {self.id}"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Window":
        return cls(
            id=int(data['id']),
            app_id=data.get('app_id') or "",
            title=(data.get('title') or "").replace("\n", " "),
            workspace_id=data.get('workspace_id'),
            is_focused=bool(data.get('is_focused', False)),
        )


class CompositorClient(ABC):
    """Blocking queries and commands against the compositor

    Every method may block and may raise CompositorError, so callers on
    an event loop must dispatch them to a worker.
    """

    @abstractmethod
    def list_windows(self) -> List[Window]:
        """Enumerate open windows"""

    @abstractmethod
    def focus_window(self, window_id: int):
        """Give focus to a window

        Raises:
            StaleWindowError: If the window is gone
            CompositorError: On transport failure
        """

    def focused_workspace_id(self) -> Optional[int]:
        """ID of the focused workspace, None if unknown"""
        return None


class NiriClient(CompositorClient):
    """niri IPC client

    niri listens on the Unix socket named by $NIRI_SOCKET and answers each
    newline-terminated JSON request with one JSON line, either
    {"Ok": ...} or {"Err": "..."}. A fresh connection is used per request.
    """

    def __init__(self, socket_path: Optional[str] = None, timeout: float = 2.0):
        """Initialize client

        Args:
            socket_path: Path to the niri socket (default: $NIRI_SOCKET)
            timeout: Per-request timeout in seconds

        Raises:
            CompositorError: If no socket path is known
        """
        self.socket_path = socket_path or os.environ.get(NIRI_SOCKET_ENV)
        if not self.socket_path:
            raise CompositorError(f"${NIRI_SOCKET_ENV} is not set, is niri running?")
        self.timeout = timeout

    def request(self, payload: Any) -> Any:
        """Send one request and return the content of the Ok reply

        Args:
            payload: JSON-serializable request

        Returns:
            Value under the reply's "Ok" key

        Raises:
            CompositorError: On connection failure, timeout, Err reply
                or malformed reply
        """
        message = json.dumps(payload).encode() + b"\n"
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(self.timeout)
                sock.connect(self.socket_path)
                sock.sendall(message)
                sock.shutdown(socket.SHUT_WR)
                raw = self._read_line(sock)
        except socket.timeout as e:
            raise CompositorError(f"niri did not answer within {self.timeout}s") from e
        except OSError as e:
            raise CompositorError(f"niri socket error: {e}") from e

        try:
            reply = json.loads(raw)
        except ValueError as e:
            raise CompositorError(f"Malformed reply from niri: {raw[:200]!r}") from e

        if not isinstance(reply, dict):
            raise CompositorError(f"Unexpected reply from niri: {reply!r}")
        if 'Err' in reply:
            raise CompositorError(f"niri refused request: {reply['Err']}")
        if 'Ok' not in reply:
            raise CompositorError(f"Unexpected reply from niri: {reply!r}")
        return reply['Ok']

    @staticmethod
    def _read_line(sock: socket.socket) -> bytes:
        chunks = []
        while True:
            chunk = sock.recv(NIRI_READ_CHUNK)
            if not chunk:
                break
            chunks.append(chunk)
            if b"\n" in chunk:
                break
        data = b"".join(chunks)
        if not data:
            raise CompositorError("niri closed the connection without replying")
        return data.split(b"\n", 1)[0]

    def _response(self, request: str) -> Any:
        ok = self.request(request)
        try:
            return ok[request]
        except (KeyError, TypeError) as e:
            raise CompositorError(f"Unexpected {request} reply from niri: {ok!r}") from e

    def list_windows(self) -> List[Window]:
        try:
            windows = [Window.from_json(w) for w in self._response("Windows")]
        except (KeyError, TypeError, ValueError) as e:
            raise CompositorError(f"Malformed window list from niri: {e}") from e
        logger.debug(f"niri reported {len(windows)} window(s)")
        return windows

    def focused_workspace_id(self) -> Optional[int]:
        try:
            for workspace in self._response("Workspaces"):
                if workspace.get('is_focused'):
                    return workspace.get('id')
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise CompositorError(f"Malformed workspace list from niri: {e}") from e
        return None

    def focus_window(self, window_id: int):
        # niri silently ignores focus actions for unknown IDs
        if all(window.id != window_id for window in self.list_windows()):
            raise StaleWindowError(window_id)

        self.request({"Action": {"FocusWindow": {"id": window_id}}})
        logger.debug(f"Focused window {window_id}")
