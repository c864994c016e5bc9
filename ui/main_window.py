"""Main application window for VarSwitch."""

import asyncio
import logging
import threading
from pathlib import Path
from tkinter import filedialog, messagebox
from typing import List, Optional, Tuple

import ttkbootstrap as ttk
from ttkbootstrap.constants import *
from ttkbootstrap.dialogs import Querybox

from core.config_manager import ConfigManager
from core.errors import PreconditionViolation, ProfileNotFound, SnapshotFailed, VarSwitchError
from core.profile_manager import ProfileManager
from core.status import read_status
from core.switch_orchestrator import SwitchOrchestrator
from core.targets import build_default_targets
from models.profile import Profile
from models.switch import AttemptState, RestoreReport, SwitchReport
from ui.components.profile_list import ProfileList
from ui.components.status_panel import StatusPanel
from ui.dialogs.profile_dialog import ProfileDialog
from ui.dialogs.switch_dialog import SwitchDialog
from utils.constants import (
    APP_NAME,
    DEFAULT_IMPORT_NAME,
    THEMES,
    WINDOW_DEFAULT_HEIGHT,
    WINDOW_DEFAULT_WIDTH,
    WINDOW_MIN_HEIGHT,
    WINDOW_MIN_WIDTH,
)

logger = logging.getLogger(__name__)


def switch_message(report: SwitchReport, restore_report: Optional[RestoreReport] = None) -> str:
    """User-facing outcome of a switch, including the restore after a cancel."""
    if report.cancelled and restore_report is not None:
        return restore_report.summary()
    return report.summary()


class MainWindow(ttk.Window):
    """Main application window: current status and profile list."""

    def __init__(self, config_manager: ConfigManager):
        """
        Initialize main window.

        Args:
            config_manager: Configuration manager instance
        """
        self.config_manager = config_manager
        preferences, _ = config_manager.load()

        initial_theme = THEMES.get(preferences.theme, "cosmo")

        super().__init__(
            title=APP_NAME,
            themename=initial_theme,
            size=(WINDOW_DEFAULT_WIDTH, WINDOW_DEFAULT_HEIGHT),
            minsize=(WINDOW_MIN_WIDTH, WINDOW_MIN_HEIGHT)
        )

        logger.info(f"MainWindow initialized with theme: {initial_theme}")

        self.preferences = preferences
        self.current_theme = preferences.theme
        self.tray_manager = None  # Will be set by main.py

        self.profile_manager = ProfileManager(config_manager)
        self.targets = build_default_targets(preferences)
        self.orchestrator = SwitchOrchestrator(self.profile_manager, self.targets)

        self.switch_dialog: Optional[SwitchDialog] = None
        self._switch_thread: Optional[threading.Thread] = None

        self.columnconfigure(0, weight=1)
        self.rowconfigure(3, weight=1)

        self._build_ui()
        self._restore_geometry()
        self.refresh()

        self.protocol("WM_DELETE_WINDOW", self._on_closing)
        self.bind("<F5>", lambda e: self.refresh())

        logger.info("MainWindow ready")

    def _build_ui(self):
        """Build the user interface."""

        # ===== Header with title and actions =====
        header_frame = ttk.Frame(self, padding=10)
        header_frame.grid(row=0, column=0, sticky="ew", padx=10, pady=(10, 5))
        header_frame.columnconfigure(1, weight=1)

        ttk.Label(
            header_frame,
            text=APP_NAME,
            font=("Segoe UI", 16, "bold")
        ).grid(row=0, column=0, sticky="w")

        ttk.Button(
            header_frame,
            text="Export",
            command=self._on_export_profiles,
            bootstyle="secondary-outline",
            width=8
        ).grid(row=0, column=2, sticky="e", padx=2)

        ttk.Button(
            header_frame,
            text="Import",
            command=self._on_import_profiles,
            bootstyle="secondary-outline",
            width=8
        ).grid(row=0, column=3, sticky="e", padx=2)

        self.theme_button = ttk.Button(
            header_frame,
            text="☀" if self.current_theme == "dark" else "🌙",
            width=3,
            command=self._toggle_theme,
            bootstyle="secondary"
        )
        self.theme_button.grid(row=0, column=4, sticky="e", padx=(8, 0))

        # ===== Active profile bar =====
        self.active_bar = ttk.Frame(self, padding=(10, 0))
        self.active_bar.grid(row=1, column=0, sticky="ew", padx=10)
        self.active_bar.columnconfigure(0, weight=1)

        self.active_label = ttk.Label(self.active_bar, text="", bootstyle="success")
        self.active_label.grid(row=0, column=0, sticky="w")

        ttk.Button(
            self.active_bar,
            text="Sync Now",
            command=self._on_sync_now,
            bootstyle="success-outline",
            width=10
        ).grid(row=0, column=1, sticky="e")

        # ===== Status Section =====
        self.status_panel = StatusPanel(self, on_refresh=self.refresh)
        self.status_panel.grid(row=2, column=0, sticky="ew", padx=10, pady=5)

        # ===== Profile Section =====
        profile_frame = ttk.LabelFrame(self, text="Profiles", padding=10)
        profile_frame.grid(row=3, column=0, sticky="nsew", padx=10, pady=(5, 10))
        profile_frame.columnconfigure(0, weight=1)
        profile_frame.rowconfigure(0, weight=1)

        self.profile_list = ProfileList(
            profile_frame,
            on_switch=self.start_switch,
            on_add=self._on_profile_new,
            on_edit=self._on_profile_edit,
            on_delete=self._on_profile_delete,
            on_import_current=self._on_import_current
        )
        self.profile_list.grid(row=0, column=0, sticky="nsew")

    def _restore_geometry(self):
        geometry = self.preferences.window_geometry or {}
        width = geometry.get("width") or WINDOW_DEFAULT_WIDTH
        height = geometry.get("height") or WINDOW_DEFAULT_HEIGHT
        x, y = geometry.get("x"), geometry.get("y")
        if x is not None and y is not None:
            self.geometry(f"{width}x{height}+{x}+{y}")
        else:
            self.geometry(f"{width}x{height}")

    # ===== State refresh =====

    def refresh(self):
        """Re-read target status and the profile list."""
        self._refresh_status()
        self._refresh_profiles()

    def _refresh_status(self):
        try:
            report = read_status(self.targets)
            self.status_panel.update_status(report)
        except Exception as e:
            logger.error(f"Error reading status: {e}")

    def _refresh_profiles(self):
        self.profile_list.load_profiles(self.profile_manager.list_profiles())
        self._update_active_bar(self.profile_manager.get_active_profile())
        if self.tray_manager:
            self.tray_manager.refresh_menu()

    def _update_active_bar(self, profile: Optional[Profile]):
        """Show the active profile with a Sync Now button, or hide the bar."""
        if profile is None:
            self.active_bar.grid_remove()
            return
        self.active_label.configure(text=f"Active: {profile.name}")
        self.active_bar.grid()

    def _on_sync_now(self):
        """Re-apply the active profile to every target."""
        profile = self.profile_manager.get_active_profile()
        if profile is None:
            logger.info("Sync Now clicked with no active profile")
            return
        logger.info(f"Syncing active profile '{profile.name}'")
        self.start_switch(profile.id)

    def _persist_preferences(self):
        """Save preferences without touching stored profiles."""
        try:
            self.preferences.theme = self.current_theme
            self.preferences.window_geometry = {
                "width": self.winfo_width(),
                "height": self.winfo_height(),
                "x": self.winfo_x(),
                "y": self.winfo_y()
            }
            _, profiles = self.config_manager.load()
            self.config_manager.save(self.preferences, profiles)
        except Exception as exc:
            logger.error("Failed to persist preferences: %s", exc)

    def _toggle_theme(self):
        """Toggle between light and dark themes."""
        try:
            if self.current_theme == "dark":
                new_theme = "light"
                self.theme_button.configure(text="🌙")
            else:
                new_theme = "dark"
                self.theme_button.configure(text="☀")

            self.style.theme_use(THEMES[new_theme])
            self.current_theme = new_theme
            self._persist_preferences()

            logger.info(f"Theme changed to: {new_theme}")

        except Exception as e:
            logger.error(f"Error toggling theme: {e}")

    # ===== Switching =====

    @property
    def switch_in_progress(self) -> bool:
        thread = self._switch_thread
        return self.orchestrator.in_flight or (thread is not None and thread.is_alive())

    def start_switch(self, profile_id: str):
        """Snapshot, open the progress dialog and run the switch on a worker thread."""
        if self.switch_in_progress:
            messagebox.showinfo(APP_NAME, "A profile switch is already in progress.", parent=self)
            return

        try:
            profile = self.profile_manager.get_profile(profile_id)
        except ProfileNotFound as e:
            messagebox.showerror("Profile Error", str(e), parent=self)
            return

        try:
            snapshot = self.orchestrator.begin_switch(profile_id)
        except (SnapshotFailed, PreconditionViolation) as e:
            logger.error(f"Switch to '{profile.name}' not started: {e}")
            messagebox.showerror("Switch Error", str(e), parent=self)
            return

        self.restore_window()
        cancel_on_start = threading.Event()
        dialog = SwitchDialog(
            self,
            profile.name,
            on_cancel=lambda: self._request_cancel(cancel_on_start),
            targets=[target.name for target in self.targets]
        )
        self.switch_dialog = dialog
        self.orchestrator.listen(lambda event: self.after(0, dialog.on_progress, event))
        self.orchestrator.listen(
            lambda event: self.orchestrator.request_cancel()
            if event.step == 1 and cancel_on_start.is_set() else None
        )
        self.profile_list.set_switching_enabled(False)

        def worker():
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            report = None
            restore_report = None
            error_message = None
            try:
                report = loop.run_until_complete(self.orchestrator.run_switch(profile_id))
                if report.cancelled:
                    restore_report = self.orchestrator.restore(snapshot)
            except VarSwitchError as exc:
                logger.error("Switch to '%s' failed: %s", profile.name, exc)
                error_message = str(exc)
            except Exception as exc:
                logger.exception("Unexpected error switching to '%s'", profile.name)
                error_message = str(exc)
            finally:
                loop.close()

            def finish():
                self.profile_list.set_switching_enabled(True)
                if error_message:
                    dialog.destroy()
                    messagebox.showerror("Switch Error", error_message, parent=self)
                else:
                    dialog.finish(report, switch_message(report, restore_report))
                self.switch_dialog = None
                self.refresh()

            self.after(0, finish)

        self._switch_thread = threading.Thread(target=worker, daemon=True)
        self._switch_thread.start()

    def _request_cancel(self, cancel_on_start: threading.Event) -> bool:
        """Cancel from the switch dialog; a run not started yet stops at prepare."""
        attempt = self.orchestrator.attempt
        if attempt is not None and attempt.state is AttemptState.PENDING:
            cancel_on_start.set()
            self.orchestrator.request_cancel()
            return True
        return self.orchestrator.request_cancel()

    # ===== Profile Management Callbacks =====

    def _existing_names(self) -> List[str]:
        return [p.name for p in self.profile_manager.list_profiles()]

    def _on_profile_new(self):
        """Handle Add Profile button click."""
        logger.info("Add Profile button clicked")
        dialog = ProfileDialog(
            self,
            mode="new",
            existing_names=self._existing_names(),
            on_save=self._save_profile
        )
        self.wait_window(dialog)

    def _on_profile_edit(self, profile_id: str):
        try:
            profile = self.profile_manager.get_profile(profile_id)
        except ProfileNotFound as e:
            messagebox.showerror("Profile Error", str(e), parent=self)
            return

        dialog = ProfileDialog(
            self,
            mode="edit",
            profile_id=profile.id,
            profile_name=profile.name,
            token=profile.token,
            base_url=profile.base_url,
            existing_names=self._existing_names(),
            on_save=self._save_profile
        )
        self.wait_window(dialog)

    def _save_profile(self, profile_id: Optional[str], name: str, token: str, base_url: str):
        if profile_id is None:
            success, error, _ = self.profile_manager.create_profile(name, token, base_url)
        else:
            success, error, _ = self.profile_manager.update_profile(profile_id, name, token, base_url)

        if not success:
            messagebox.showerror("Profile Error", error or "Failed to save profile", parent=self)
            logger.error(f"Failed to save profile: {error}")
            return

        self._refresh_profiles()

    def _on_profile_delete(self, profile_id: str):
        """Handle Delete button click."""
        try:
            profile = self.profile_manager.get_profile(profile_id)
        except ProfileNotFound:
            return

        confirmed = messagebox.askyesno(
            "Confirm Delete",
            f"Are you sure you want to delete profile '{profile.name}'?\n\nThis action cannot be undone.",
            parent=self
        )
        if not confirmed:
            logger.info(f"Delete cancelled for profile: {profile_id}")
            return

        success, error = self.profile_manager.delete_profile(profile_id)
        if not success:
            messagebox.showerror("Profile Error", error or "Failed to delete profile", parent=self)
            return

        self._refresh_profiles()

    def _on_import_current(self):
        """Create a profile from the values configured right now."""
        name = Querybox.get_string(
            prompt="Name for the imported profile:",
            title="Import Current Configuration",
            initialvalue=DEFAULT_IMPORT_NAME,
            parent=self
        )
        if name is None:
            return

        status = read_status(self.targets)
        success, error, profile = self.profile_manager.import_current(name, status)
        if not success:
            messagebox.showwarning("Import", error or "Import failed", parent=self)
            return

        messagebox.showinfo("Import", f"Imported current configuration as '{profile.name}'.", parent=self)
        self.refresh()

    def _on_export_profiles(self):
        dest = filedialog.asksaveasfilename(
            parent=self,
            title="Export Profiles",
            defaultextension=".json",
            initialfile="varswitch-profiles.json",
            filetypes=[("JSON files", "*.json")]
        )
        if not dest:
            return
        success, error = self.profile_manager.export_profiles(Path(dest))
        if not success:
            messagebox.showerror("Export", error, parent=self)

    def _on_import_profiles(self):
        src = filedialog.askopenfilename(
            parent=self,
            title="Import Profiles",
            filetypes=[("JSON files", "*.json")]
        )
        if not src:
            return
        success, error, added = self.profile_manager.import_profiles(Path(src))
        if not success:
            messagebox.showerror("Import", error, parent=self)
            return
        messagebox.showinfo("Import", f"Imported {added} new profile(s).", parent=self)
        self._refresh_profiles()

    # ===== Window / tray =====

    def get_tray_profiles(self) -> List[Tuple[str, str, bool]]:
        """Profiles for the tray submenu as (profile_id, name, is_active)."""
        return [(p.id, p.name, p.is_active) for p in self.profile_manager.list_profiles()]

    def set_tray_manager(self, tray_manager):
        """
        Set the system tray manager reference.

        Args:
            tray_manager: SystemTrayManager instance
        """
        self.tray_manager = tray_manager
        logger.info("Tray manager connected to main window")

    def restore_window(self):
        self.deiconify()
        self.lift()

    def _on_closing(self):
        """Handle window close event."""
        self._persist_preferences()

        if self.tray_manager and self.preferences.minimize_to_tray:
            self.tray_manager.minimize_to_tray()
            return

        if self.switch_in_progress:
            self.orchestrator.request_cancel()

        logger.info("Closing application")
        if self.tray_manager and self.tray_manager.icon:
            self.tray_manager.icon.stop()
        self.quit()
