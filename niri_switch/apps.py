"""Desktop application lookup for window labels and icons"""

import logging
from typing import Dict, List, NamedTuple, Optional

from gi.repository import Gio

logger = logging.getLogger(__name__)


class AppInfo(NamedTuple):
    """Installed application matched to a window"""
    app_id: str
    display_name: str
    icon: Optional[Gio.Icon] = None


def best_search_match(results: List[List[str]]) -> Optional[str]:
    """Pick one desktop ID out of Gio.DesktopAppInfo.search results

    Results come grouped by match quality, best group first. Within the
    best group the shortest ID wins.

    Args:
        results: Groups of desktop IDs

    Returns:
        Desktop ID or None
    """
    if not results or not results[0]:
        return None
    return min(results[0], key=len)


class AppDatabase:
    """Installed applications indexed by desktop ID"""

    def __init__(self, apps: Optional[List[Gio.AppInfo]] = None):
        """Initialize database

        Args:
            apps: Application list (default: every installed app)
        """
        if apps is None:
            apps = Gio.AppInfo.get_all()

        self.apps: Dict[str, AppInfo] = {}
        for app in apps:
            desktop_id = app.get_id()
            if not desktop_id:
                continue
            self.apps[desktop_id] = AppInfo(desktop_id, app.get_display_name() or desktop_id, app.get_icon())

        self._lookups: Dict[str, Optional[AppInfo]] = {}
        logger.info(f"Loaded {len(self.apps)} desktop application(s)")

    def get_app_info(self, app_id: str) -> Optional[AppInfo]:
        """Find the application a window belongs to

        Args:
            app_id: Wayland app ID reported by niri

        Returns:
            AppInfo or None
        """
        if not app_id:
            return None

        if app_id not in self._lookups:
            self._lookups[app_id] = self._lookup(app_id)
        return self._lookups[app_id]

    def _lookup(self, app_id: str) -> Optional[AppInfo]:
        # Direct match is often better than Gio's search ranking
        direct = self.apps.get(f"{app_id}.desktop")
        if direct:
            return direct

        try:
            desktop_id = best_search_match(Gio.DesktopAppInfo.search(app_id))
        except Exception as e:
            logger.debug(f"Desktop app search failed for {app_id}: {e}")
            return None

        if desktop_id is None:
            logger.debug(f"No desktop app for {app_id}")
            return None
        return self.apps.get(desktop_id)

    def display_name(self, window) -> str:
        """Label shown for a window

        Args:
            window: niri Window

        Returns:
            Application display name, or the window's own label
        """
        app_info = self.get_app_info(window.app_id)
        if app_info:
            return app_info.display_name
        return window.label
