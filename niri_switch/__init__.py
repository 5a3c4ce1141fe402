"""niri-switch - a most-recently-used window switcher for the niri compositor

The daemon stays resident, keeps windows in most-recently-used order and
shows an overlay whenever the niri-switch client wakes it over D-Bus.
"""

__version__ = "0.2.0"
