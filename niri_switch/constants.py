"""Constants and default values"""

# D-Bus names shared by the daemon and the client
DBUS_DAEMON_ID = "org.kikibouba.NiriSwitchDaemon"
DBUS_DAEMON_PATH = "/org/kikibouba/NiriSwitchDaemon"
DBUS_DAEMON_INTERFACE = "org.kikibouba.NiriSwitchDaemon"
DBUS_LIMITS_EXCEEDED = "org.freedesktop.DBus.Error.LimitsExceeded"

GTK_APP_ID = "org.kikibouba.NiriSwitch"
WINDOW_TITLE = "niri-switch"

# niri IPC
NIRI_SOCKET_ENV = "NIRI_SOCKET"
NIRI_READ_CHUNK = 65536

# Files
LOCK_FILENAME = "niri_switch.lock"
APP_CONFIG_DIR = "niri-switch"
STYLESHEET_FILENAME = "style.css"

# Pending triggers the daemon will hold before refusing new ones
CLIENT_REQUEST_CAP = 20

# Default configuration
DEFAULT_CONFIG = {
    'workspace_only': False,
    'swap_first': True,
    'ipc_timeout': 2.0,
    'queue_size': CLIENT_REQUEST_CAP,
}

# Limits for command-line values
MAX_IPC_TIMEOUT = 30.0
MAX_QUEUE_SIZE = 1000

# Overlay appearance
ICON_SIZE = 64
LABEL_MAX_CHARS = 18
WINDOW_ITEM_MARGIN = 15
