"""
Profile Dialog - Create/edit profile dialog window.

Collects the profile name, API token and base URL.
Validates fields and that profile names are unique.
"""

import logging
import tkinter as tk
from typing import Callable, List, Optional, Tuple

import ttkbootstrap as ttk
from ttkbootstrap.constants import *

from utils.validators import (
    normalize_base_url,
    validate_profile_name,
    validate_token,
    validate_url,
)

logger = logging.getLogger(__name__)


def validate_profile_input(
    name: str,
    token: str,
    base_url: str,
    existing_names: List[str],
    original_name: Optional[str] = None
) -> Tuple[bool, str]:
    """
    Validate dialog fields.

    Args:
        existing_names: Names of all stored profiles
        original_name: Current name when editing, so it does not clash with itself
    """
    for is_valid, error in (
        validate_profile_name(name),
        validate_token(token),
        validate_url(base_url),
    ):
        if not is_valid:
            return False, error

    name = name.strip()
    if original_name is None or name.lower() != original_name.lower():
        if any(existing.lower() == name.lower() for existing in existing_names):
            return False, f"Profile '{name}' already exists"

    return True, ""


class ProfileDialog(ttk.Toplevel):
    """Dialog for creating or editing a profile."""

    def __init__(
        self,
        parent,
        mode: str = "new",  # "new" or "edit"
        profile_id: Optional[str] = None,
        profile_name: Optional[str] = None,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        existing_names: Optional[List[str]] = None,
        on_save: Optional[Callable[[Optional[str], str, str, str], None]] = None
    ):
        """Initialize profile dialog."""
        super().__init__(parent)

        self.mode = mode
        self.profile_id = profile_id
        self.original_name = profile_name if mode == "edit" else None
        self.existing_names = existing_names or []
        self.on_save = on_save
        self.result = None  # (profile_id, name, token, base_url) if saved

        title = "New Profile" if mode == "new" else "Edit Profile"
        self.title(title)
        self.minsize(520, 260)
        self.resizable(True, False)

        self.transient(parent)
        self.grab_set()

        self._build_ui(profile_name, token, base_url)
        self._center_on_parent(parent)

        self.name_entry.focus_set()

        logger.info(f"ProfileDialog opened in {mode} mode")

    def _center_on_parent(self, parent):
        """Center dialog on parent window."""
        self.update_idletasks()
        x = parent.winfo_x() + (parent.winfo_width() - self.winfo_width()) // 2
        y = parent.winfo_y() + (parent.winfo_height() - self.winfo_height()) // 2
        self.geometry(f"+{x}+{y}")

    def _build_ui(self, initial_name: Optional[str], initial_token: Optional[str], initial_url: Optional[str]):
        """Build the dialog UI."""
        main_frame = ttk.Frame(self, padding=20)
        main_frame.pack(fill=BOTH, expand=True)
        main_frame.columnconfigure(1, weight=1)

        ttk.Label(main_frame, text="Profile Name:", font=("Segoe UI", 10)).grid(
            row=0, column=0, sticky="w", pady=(0, 10)
        )
        self.name_var = tk.StringVar(value=initial_name or "")
        self.name_entry = ttk.Entry(main_frame, textvariable=self.name_var, width=40)
        self.name_entry.grid(row=0, column=1, columnspan=2, sticky="ew", pady=(0, 10))

        ttk.Label(main_frame, text="API Token:", font=("Segoe UI", 10)).grid(
            row=1, column=0, sticky="w", pady=(0, 10)
        )
        self.token_var = tk.StringVar(value=initial_token or "")
        self.token_entry = ttk.Entry(main_frame, textvariable=self.token_var, width=40, show="•")
        self.token_entry.grid(row=1, column=1, sticky="ew", pady=(0, 10))

        self.show_token_var = tk.BooleanVar(value=False)
        ttk.Checkbutton(
            main_frame,
            text="Show",
            variable=self.show_token_var,
            command=self._toggle_token_visibility,
            bootstyle="round-toggle"
        ).grid(row=1, column=2, sticky="w", padx=(8, 0), pady=(0, 10))

        ttk.Label(main_frame, text="Base URL:", font=("Segoe UI", 10)).grid(
            row=2, column=0, sticky="w", pady=(0, 10)
        )
        self.url_var = tk.StringVar(value=initial_url or "")
        self.url_entry = ttk.Entry(main_frame, textvariable=self.url_var, width=40)
        self.url_entry.grid(row=2, column=1, columnspan=2, sticky="ew", pady=(0, 10))

        self.error_label = ttk.Label(
            main_frame,
            text="",
            font=("Segoe UI", 9),
            foreground="red"
        )
        self.error_label.grid(row=3, column=1, columnspan=2, sticky="w", pady=(0, 10))

        button_frame = ttk.Frame(main_frame)
        button_frame.grid(row=4, column=0, columnspan=3, pady=(10, 0))

        self.save_button = ttk.Button(
            button_frame,
            text="Save" if self.mode == "edit" else "Create",
            command=self._on_save,
            bootstyle="success",
            width=12
        )
        self.save_button.pack(side=LEFT, padx=5)

        ttk.Button(
            button_frame,
            text="Cancel",
            command=self._on_cancel,
            bootstyle="secondary",
            width=12
        ).pack(side=LEFT, padx=5)

        self.bind("<Return>", lambda e: self._on_save())
        self.bind("<Escape>", lambda e: self._on_cancel())

    def _toggle_token_visibility(self):
        self.token_entry.configure(show="" if self.show_token_var.get() else "•")

    def _on_save(self):
        """Handle Save button click."""
        name = self.name_var.get().strip()
        token = self.token_var.get().strip()
        base_url = normalize_base_url(self.url_var.get())

        is_valid, error_message = validate_profile_input(
            name, token, base_url, self.existing_names, self.original_name
        )
        if not is_valid:
            self.error_label.configure(text=error_message)
            logger.warning(f"Profile validation failed: {error_message}")
            return

        self.error_label.configure(text="")
        self.result = (self.profile_id, name, token, base_url)
        logger.info(f"Profile dialog saved (mode={self.mode})")

        if self.on_save:
            self.on_save(self.profile_id, name, token, base_url)

        self.destroy()

    def _on_cancel(self):
        """Handle Cancel button click."""
        logger.info("Profile dialog cancelled")
        self.result = None
        self.destroy()
