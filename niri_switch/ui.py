"""UI components: overlay window, presenter bridge, styles"""

import logging
import os
from typing import Callable, Dict, List, Optional
import gi

gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gtk, Gdk, GLib

from .apps import AppDatabase
from .config import find_user_stylesheet
from .constants import ICON_SIZE, LABEL_MAX_CHARS, WINDOW_ITEM_MARGIN, WINDOW_TITLE
from .controller import Presenter
from .niri import Window

logger = logging.getLogger(__name__)

# Layer shell lets the overlay sit above everything niri draws
try:
    gi.require_version("GtkLayerShell", "0.1")
    from gi.repository import GtkLayerShell
    LAYER_SHELL_AVAILABLE = True
except (ValueError, ImportError):
    LAYER_SHELL_AVAILABLE = False
    GtkLayerShell = None


def get_css_styles() -> str:
    """Get built-in CSS styles for the overlay

    Returns:
        CSS string
    """
    return """
    window {
        background-color: alpha(@theme_bg_color, 0.9);
        border: 1px solid @borders;
        border-radius: 12px;
    }

    .window-list {
        padding: 10px;
    }

    .window-item {
        border-radius: 8px;
        padding: 4px;
    }

    .window-item:selected {
        background-color: @theme_selected_bg_color;
        color: @theme_selected_fg_color;
    }
    """


def load_css():
    """Apply the user stylesheet, or the built-in one"""
    try:
        css_provider = Gtk.CssProvider()
        path = find_user_stylesheet(os.environ)
        if path:
            css_provider.load_from_path(path)
        else:
            css_provider.load_from_data(get_css_styles().encode())

        Gtk.StyleContext.add_provider_for_screen(
            Gdk.Screen.get_default(),
            css_provider,
            Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION
        )
    except Exception as e:
        logger.error(f"Error applying styles: {e}")


class SwitcherWindow:
    """Overlay listing windows in a single row

    Must only be touched from the GTK main thread.
    """

    def __init__(self, app_database: Optional[AppDatabase], on_selected: Callable[[int], None],
                 on_cancelled: Callable[[], None]):
        """Initialize switcher window

        Args:
            app_database: Lookup for window labels and icons
            on_selected: Called with the window ID the user picked
            on_cancelled: Called when the user dismisses the overlay
        """
        self.app_database = app_database
        self.on_selected = on_selected
        self.on_cancelled = on_cancelled

        self.window = None
        self.flowbox = None
        self.items: List[Gtk.FlowBoxChild] = []
        self.item_ids: Dict[Gtk.FlowBoxChild, int] = {}

        self._create_window()

    def _create_window(self):
        """Create the overlay window"""
        self.window = Gtk.Window()
        self.window.set_title(WINDOW_TITLE)
        self.window.set_decorated(False)
        self.window.set_keep_above(True)
        self.window.set_skip_taskbar_hint(True)
        self.window.set_skip_pager_hint(True)
        self.window.set_accept_focus(True)

        if LAYER_SHELL_AVAILABLE:
            GtkLayerShell.init_for_window(self.window)
            GtkLayerShell.set_layer(self.window, GtkLayerShell.Layer.OVERLAY)
            GtkLayerShell.set_keyboard_mode(self.window, GtkLayerShell.KeyboardMode.EXCLUSIVE)
            GtkLayerShell.set_namespace(self.window, WINDOW_TITLE)
        else:
            logger.warning("gtk-layer-shell not available, overlay will be a regular window")

        self.flowbox = Gtk.FlowBox()
        self.flowbox.set_orientation(Gtk.Orientation.HORIZONTAL)
        self.flowbox.set_selection_mode(Gtk.SelectionMode.SINGLE)
        self.flowbox.set_activate_on_single_click(True)
        self.flowbox.set_homogeneous(True)
        self.flowbox.get_style_context().add_class("window-list")
        self.flowbox.connect("child-activated", self._on_child_activated)

        self.window.add(self.flowbox)

        self.window.connect("key-press-event", self._on_key_press)
        self.window.connect("delete-event", self._on_delete)

    def _create_item(self, window: Window) -> Gtk.FlowBoxChild:
        """Create list entry for a window

        Args:
            window: niri Window

        Returns:
            FlowBox child widget
        """
        icon = None
        label_text = window.label
        if self.app_database:
            app_info = self.app_database.get_app_info(window.app_id)
            if app_info:
                label_text = app_info.display_name
                icon = app_info.icon

        if icon:
            image = Gtk.Image.new_from_gicon(icon, Gtk.IconSize.DIALOG)
        else:
            image = Gtk.Image.new_from_icon_name("application-x-executable", Gtk.IconSize.DIALOG)
        image.set_pixel_size(ICON_SIZE)

        label = Gtk.Label()
        label.set_text(label_text)
        label.set_max_width_chars(LABEL_MAX_CHARS)
        label.set_ellipsize(3)  # ELLIPSIZE_END

        vbox = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=5)
        vbox.set_margin_top(WINDOW_ITEM_MARGIN)
        vbox.set_margin_bottom(WINDOW_ITEM_MARGIN)
        vbox.set_margin_start(WINDOW_ITEM_MARGIN)
        vbox.set_margin_end(WINDOW_ITEM_MARGIN)
        vbox.pack_start(image, False, False, 0)
        vbox.pack_start(label, False, False, 0)

        child = Gtk.FlowBoxChild()
        child.get_style_context().add_class("window-item")
        child.set_tooltip_text(window.title or label_text)
        child.add(vbox)
        return child

    def populate(self, windows: List[Window]):
        """Replace listed windows

        Args:
            windows: Windows in display order
        """
        for child in self.items:
            child.destroy()
        self.items.clear()
        self.item_ids.clear()

        for window in windows:
            child = self._create_item(window)
            self.flowbox.add(child)
            self.items.append(child)
            self.item_ids[child] = window.id

        self.flowbox.set_max_children_per_line(max(1, len(self.items)))
        self.flowbox.show_all()

    def show(self, windows: List[Window]):
        """Show the overlay with windows, first one selected"""
        self.populate(windows)
        self.window.show_all()
        self.window.present()
        self._select(0)

    def hide(self):
        """Hide the overlay"""
        self.window.hide()

    def advance_selection(self):
        """Select the next window, wrapping back to the first"""
        if not self.items:
            return
        selected = self.flowbox.get_selected_children()
        index = self.items.index(selected[0]) if selected else -1
        self._select((index + 1) % len(self.items))

    def _select(self, index: int):
        if not self.items:
            return
        child = self.items[index]
        self.flowbox.select_child(child)
        child.grab_focus()

    def _on_child_activated(self, flowbox, child):
        window_id = self.item_ids.get(child)
        if window_id is None:
            return
        logger.debug(f"Window {window_id} chosen")
        try:
            self.on_selected(window_id)
        except Exception as e:
            logger.error(f"Error reporting selection: {e}")

    def _on_key_press(self, widget, event) -> bool:
        """Handle key press events

        Returns:
            True if handled
        """
        if event.keyval == Gdk.KEY_Escape:
            logger.debug("Escape pressed, cancelling")
            self._cancel()
            return True
        return False

    def _on_delete(self, widget, event) -> bool:
        self._cancel()
        return True  # Keep the window around for the next trigger

    def _cancel(self):
        try:
            self.on_cancelled()
        except Exception as e:
            logger.error(f"Error reporting cancellation: {e}")


class GtkPresenter(Presenter):
    """Forwards controller directives to the GTK main thread"""

    def __init__(self, switcher_window: SwitcherWindow):
        self.switcher_window = switcher_window

    @staticmethod
    def _idle(func, *args):
        def run():
            try:
                func(*args)
            except Exception as e:
                logger.error(f"Error in overlay update: {e}")
            return False  # Don't repeat
        GLib.idle_add(run)

    def show(self, windows: List[Window]):
        self._idle(self.switcher_window.show, list(windows))

    def advance_selection(self):
        self._idle(self.switcher_window.advance_selection)

    def dismiss(self):
        self._idle(self.switcher_window.hide)

    def operation_failed(self, error: Exception):
        logger.warning(f"Switching failed: {error}")
        self._idle(self.switcher_window.hide)
