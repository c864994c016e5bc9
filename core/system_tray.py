"""System tray integration for VarSwitch."""

import logging
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pystray
from PIL import Image

from utils.constants import APP_NAME

logger = logging.getLogger(__name__)


class SystemTrayManager:
    """Manages system tray icon and menu using pystray."""

    def __init__(
        self,
        tk_root,
        restore_callback: Callable,
        icon_path: Path,
        get_profiles_callback: Optional[Callable[[], List[Tuple[str, str, bool]]]] = None,
        switch_profile_callback: Optional[Callable[[str], None]] = None
    ):
        """
        Initialize system tray manager.

        Args:
            tk_root: Tkinter root window
            restore_callback: Function to restore main window
            icon_path: Path to icon file
            get_profiles_callback: Returns (profile_id, name, is_active) tuples
            switch_profile_callback: Starts a switch to the given profile id
        """
        self.tk_root = tk_root
        self.restore_callback = restore_callback
        self.icon_path = icon_path
        self.get_profiles_callback = get_profiles_callback
        self.switch_profile_callback = switch_profile_callback
        self.icon = None
        self.tray_thread = None

        logger.info("SystemTrayManager initialized")

    def _load_image(self) -> Image.Image:
        if self.icon_path and Path(self.icon_path).exists():
            logger.info(f"Loaded icon from: {self.icon_path}")
            return Image.open(self.icon_path)
        logger.warning(f"Tray icon not found at {self.icon_path}, using plain image")
        return Image.new("RGBA", (64, 64), (13, 110, 253, 255))

    def build_menu(self) -> pystray.Menu:
        menu_items = [pystray.MenuItem("Open", self._on_open, default=True)]

        if self.get_profiles_callback and self.switch_profile_callback:
            menu_items.append(pystray.Menu.SEPARATOR)
            menu_items.append(
                pystray.MenuItem("Switch Profile", pystray.Menu(self._profile_items))
            )

        menu_items.extend([
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Exit", self._on_exit)
        ])
        return pystray.Menu(*menu_items)

    def create_tray_icon(self):
        """
        Create and start system tray icon with menu.
        Runs in a separate thread to avoid blocking Tkinter event loop.
        """
        try:
            self.icon = pystray.Icon(
                "varswitch",
                self._load_image(),
                APP_NAME,
                self.build_menu()
            )

            self.tray_thread = threading.Thread(
                target=self._run_tray_icon,
                daemon=True
            )
            self.tray_thread.start()

            logger.info("System tray icon created and started")

        except Exception as e:
            logger.error(f"Failed to create system tray icon: {e}")
            raise

    def refresh_menu(self):
        """Rebuild the profile submenu after profiles change."""
        if self.icon:
            self.icon.update_menu()

    def _run_tray_icon(self):
        """Run the system tray icon (blocking call, runs in thread)."""
        try:
            self.icon.run()
        except Exception as e:
            logger.error(f"System tray error: {e}")

    def _on_open(self, icon, item):
        """Handle 'Open' menu item - must be thread-safe."""
        logger.info("Open clicked from tray")
        self.tk_root.after(0, self.restore_callback)

    def _on_exit(self, icon, item):
        """Handle 'Exit' menu item - must be thread-safe."""
        logger.info("Exit clicked from tray")
        self.tk_root.after(0, self.exit_app)

    def _profile_items(self):
        """
        Yield one radio item per profile.
        Called by pystray each time the submenu is shown.
        """
        try:
            profiles = self.get_profiles_callback()
        except Exception as e:
            logger.error(f"Error loading profiles for tray menu: {e}")
            yield pystray.MenuItem("(Error loading profiles)", None, enabled=False)
            return

        if not profiles:
            yield pystray.MenuItem("(No profiles)", None, enabled=False)
            return

        for profile_id, profile_name, is_active in profiles:
            def make_handler(pid):
                return lambda icon, item: self._on_profile_selected(pid)

            def make_checked(active):
                return lambda item: active

            yield pystray.MenuItem(
                profile_name,
                make_handler(profile_id),
                checked=make_checked(is_active),
                radio=True
            )

    def _on_profile_selected(self, profile_id: str):
        """Handle profile selection from tray menu."""
        logger.info(f"Profile '{profile_id}' selected from tray")
        if self.switch_profile_callback:
            self.tk_root.after(0, lambda: self.switch_profile_callback(profile_id))

    def minimize_to_tray(self):
        """Hide the main window (minimize to tray)."""
        logger.info("Minimizing to tray")
        self.tk_root.withdraw()

    def restore_window(self):
        """Show and bring main window to front."""
        logger.info("Restoring window from tray")
        self.tk_root.deiconify()
        self.tk_root.lift()
        self.tk_root.focus_force()

    def exit_app(self):
        """Clean exit: stop tray icon and close application."""
        logger.info("Exiting application")
        try:
            if self.icon:
                self.icon.stop()
            self.tk_root.quit()
        except Exception as e:
            logger.error(f"Error during exit: {e}")
            sys.exit(0)
