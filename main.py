"""VarSwitch - Main entry point."""

import logging
import sys
from pathlib import Path

from core.config_manager import ConfigManager
from core.system_tray import SystemTrayManager
from ui.main_window import MainWindow
from utils.constants import APP_NAME, APP_VERSION
from utils.logger import setup_logging


def main():
    """Main entry point for VarSwitch."""
    setup_logging()
    logger = logging.getLogger(__name__)

    logger.info(f"{APP_NAME} {APP_VERSION} starting...")

    try:
        logger.info("Initializing configuration manager...")
        config_manager = ConfigManager()

        logger.info("Creating main window...")
        app = MainWindow(config_manager)

        logger.info("Creating system tray manager...")
        icon_path = Path(__file__).parent / "assets" / "icon.ico"

        tray_manager = SystemTrayManager(
            tk_root=app,
            restore_callback=app.restore_window,
            icon_path=icon_path,
            get_profiles_callback=app.get_tray_profiles,
            switch_profile_callback=app.start_switch
        )
        app.set_tray_manager(tray_manager)

        logger.info("Starting system tray icon...")
        try:
            tray_manager.create_tray_icon()
        except Exception as e:
            logger.warning(f"System tray not started ({e}); continuing without tray icon")
            app.set_tray_manager(None)

        logger.info("Starting UI event loop...")
        app.mainloop()

        logger.info("Cleaning up...")
        if tray_manager.icon:
            tray_manager.icon.stop()

        logger.info("Application closed normally")

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        sys.exit(0)

    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
