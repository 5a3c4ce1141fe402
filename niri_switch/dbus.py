"""D-Bus service receiving activation requests, and the matching client call"""

import logging
from typing import Callable, Optional

from gi.repository import Gio

from .channel import ChannelFull, Trigger, TriggerChannel
from .constants import DBUS_DAEMON_ID, DBUS_DAEMON_INTERFACE, DBUS_DAEMON_PATH, DBUS_LIMITS_EXCEEDED

logger = logging.getLogger(__name__)

INTROSPECTION_XML = f"""
<node>
  <interface name="{DBUS_DAEMON_INTERFACE}">
    <method name="Activate"/>
  </interface>
</node>
"""

# How long the GLib thread waits for the controller loop to take a trigger
ENQUEUE_TIMEOUT = 1.0


class DaemonService:
    """Owns the daemon's bus name and turns Activate calls into triggers"""

    def __init__(self, channel: TriggerChannel, on_name_lost: Optional[Callable[[], None]] = None):
        """Initialize service

        Args:
            channel: Mailbox consumed by the activation controller
            on_name_lost: Called if the bus name cannot be owned
        """
        self.channel = channel
        self.on_name_lost = on_name_lost
        self.owner_id = None
        self.registration_id = None
        self.node_info = Gio.DBusNodeInfo.new_for_xml(INTROSPECTION_XML)

    def start(self):
        """Request the bus name on the session bus"""
        if self.owner_id is None:
            self.owner_id = Gio.bus_own_name(
                Gio.BusType.SESSION,
                DBUS_DAEMON_ID,
                Gio.BusNameOwnerFlags.NONE,
                self._on_bus_acquired,
                self._on_name_acquired,
                self._on_name_lost,
            )

    def stop(self):
        """Release the bus name"""
        if self.owner_id is not None:
            Gio.bus_unown_name(self.owner_id)
            self.owner_id = None
            logger.info("D-Bus service stopped")

    def _on_bus_acquired(self, connection: Gio.DBusConnection, name: str):
        self.registration_id = connection.register_object(
            DBUS_DAEMON_PATH,
            self.node_info.interfaces[0],
            self._on_method_call,
            None,
            None,
        )
        logger.debug(f"Registered {DBUS_DAEMON_PATH}")

    def _on_name_acquired(self, connection, name: str):
        logger.info(f"D-Bus service running as {name}")

    def _on_name_lost(self, connection, name: str):
        logger.error(f"Could not own D-Bus name {name}")
        if self.on_name_lost:
            self.on_name_lost()

    def _on_method_call(self, connection, sender, object_path, interface_name, method_name,
                        parameters, invocation):
        if method_name != "Activate":
            invocation.return_dbus_error(
                "org.freedesktop.DBus.Error.UnknownMethod", f"Unknown method {method_name}")
            return

        try:
            self.channel.send_threadsafe(Trigger(), timeout=ENQUEUE_TIMEOUT)
        except ChannelFull as e:
            invocation.return_dbus_error(DBUS_LIMITS_EXCEEDED, str(e))
            return
        except Exception as e:
            logger.error(f"Could not deliver activation request: {e}")
            invocation.return_dbus_error("org.freedesktop.DBus.Error.Failed", str(e))
            return

        logger.debug(f"Activation requested by {sender}")
        invocation.return_value(None)


def activate_daemon(timeout_ms: int = 5000):
    """Ask the running daemon to show or advance its overlay

    Args:
        timeout_ms: D-Bus call timeout in milliseconds

    Raises:
        GLib.Error: If the daemon cannot be reached or refuses the call
    """
    connection = Gio.bus_get_sync(Gio.BusType.SESSION, None)
    connection.call_sync(
        DBUS_DAEMON_ID,
        DBUS_DAEMON_PATH,
        DBUS_DAEMON_INTERFACE,
        "Activate",
        None,
        None,
        Gio.DBusCallFlags.NONE,
        timeout_ms,
        None,
    )

