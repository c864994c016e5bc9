"""
Profile List UI Component

Displays credential profiles in a Treeview with columns for name, masked
token and base URL. The active profile is marked in the first column.
Supports a context menu for switch/edit/delete operations.
"""

import tkinter as tk
from tkinter import ttk
from typing import Callable, List, Optional

import ttkbootstrap as ttb

from models.profile import Profile
from ui.components.status_panel import truncate_url
from utils.validators import mask_token


class ProfileList(ttk.Frame):
    """Profile list component with Treeview"""

    def __init__(self, parent, on_switch: Optional[Callable] = None,
                 on_add: Optional[Callable] = None,
                 on_edit: Optional[Callable] = None,
                 on_delete: Optional[Callable] = None,
                 on_import_current: Optional[Callable] = None):
        """
        Initialize profile list component

        Args:
            parent: Parent widget
            on_switch: Callback when Switch clicked (profile_id)
            on_add: Callback when Add Profile clicked
            on_edit: Callback when Edit clicked (profile_id)
            on_delete: Callback when Delete clicked (profile_id)
            on_import_current: Callback when Import Current clicked
        """
        super().__init__(parent)

        self.on_switch = on_switch
        self.on_add = on_add
        self.on_edit = on_edit
        self.on_delete = on_delete
        self.on_import_current = on_import_current

        self.profiles: List[Profile] = []
        self._switching_enabled = True

        self._create_widgets()
        self._create_context_menu()

    def _create_widgets(self):
        """Create UI widgets"""
        toolbar = ttk.Frame(self)
        toolbar.grid(row=0, column=0, sticky="ew", padx=5, pady=5)

        self.add_btn = ttb.Button(
            toolbar,
            text="Add Profile",
            bootstyle="success",
            command=self._handle_add
        )
        self.add_btn.pack(side=tk.LEFT, padx=(0, 5))

        self.import_btn = ttb.Button(
            toolbar,
            text="Import Current",
            bootstyle="info-outline",
            command=self._handle_import_current
        )
        self.import_btn.pack(side=tk.LEFT, padx=(0, 5))

        self.delete_btn = ttb.Button(
            toolbar,
            text="Delete",
            bootstyle="danger",
            command=self._handle_delete,
            state=tk.DISABLED
        )
        self.delete_btn.pack(side=tk.LEFT, padx=(15, 5))

        self.switch_btn = ttb.Button(
            toolbar,
            text="Switch",
            bootstyle="primary",
            command=self._handle_switch,
            state=tk.DISABLED
        )
        self.switch_btn.pack(side=tk.RIGHT)

        tree_frame = ttk.Frame(self)
        tree_frame.grid(row=1, column=0, sticky="nsew", padx=5, pady=5)
        tree_frame.grid_rowconfigure(0, weight=1)
        tree_frame.grid_columnconfigure(0, weight=1)

        scrollbar = ttb.Scrollbar(tree_frame, bootstyle="round")
        scrollbar.grid(row=0, column=1, sticky="ns")

        columns = ("name", "token", "base_url")
        self.tree = ttb.Treeview(tree_frame, columns=columns, show="tree headings",
                                 yscrollcommand=scrollbar.set, height=10)
        self.tree.grid(row=0, column=0, sticky="nsew")
        scrollbar.config(command=self.tree.yview)

        self.tree.column("#0", width=50, minwidth=40, stretch=False, anchor=tk.CENTER)
        self.tree.column("name", width=180, minwidth=120, anchor="w")
        self.tree.column("token", width=140, minwidth=100, stretch=False, anchor="w")
        self.tree.column("base_url", width=300, minwidth=180, anchor="w")

        self.tree.heading("#0", text="Active", anchor=tk.CENTER)
        self.tree.heading("name", text="Name", anchor="w")
        self.tree.heading("token", text="Token", anchor="w")
        self.tree.heading("base_url", text="Base URL", anchor="w")

        self.tree.bind("<Double-Button-1>", lambda _event: self._handle_switch())
        self.tree.bind("<Button-3>", self._handle_right_click)
        self.tree.bind("<<TreeviewSelect>>", lambda _event: self._update_button_state())

        self.grid_rowconfigure(1, weight=1)
        self.grid_columnconfigure(0, weight=1)

    def _create_context_menu(self):
        """Create right-click context menu"""
        self.context_menu = tk.Menu(self, tearoff=0)
        self.context_menu.add_command(label="Switch", command=self._handle_switch)
        self.context_menu.add_command(label="Edit", command=self._handle_edit)
        self.context_menu.add_separator()
        self.context_menu.add_command(label="Delete", command=self._handle_delete)

    def load_profiles(self, profiles: List[Profile]):
        """Replace the displayed profiles, keeping the selection when possible."""
        selected = self.get_selected_profile_id()
        self.profiles = list(profiles)

        self.tree.delete(*self.tree.get_children())
        for profile in self.profiles:
            self.tree.insert(
                "",
                tk.END,
                iid=profile.id,
                text="●" if profile.is_active else "",
                values=(profile.name, mask_token(profile.token), truncate_url(profile.base_url, 60))
            )

        if selected and self.tree.exists(selected):
            self.tree.selection_set(selected)
        self._update_button_state()

    def get_selected_profile_id(self) -> Optional[str]:
        selection = self.tree.selection()
        return selection[0] if selection else None

    def set_switching_enabled(self, enabled: bool):
        """Disable switching while a switch is in flight."""
        self._switching_enabled = enabled
        self._update_button_state()

    def _update_button_state(self):
        has_selection = self.get_selected_profile_id() is not None
        self.delete_btn.configure(
            state=tk.NORMAL if has_selection and self._switching_enabled else tk.DISABLED
        )
        self.switch_btn.configure(
            state=tk.NORMAL if has_selection and self._switching_enabled else tk.DISABLED
        )
        self.import_btn.configure(state=tk.NORMAL if self._switching_enabled else tk.DISABLED)

    def _handle_right_click(self, event):
        row = self.tree.identify_row(event.y)
        if not row:
            return
        self.tree.selection_set(row)
        state = tk.NORMAL if self._switching_enabled else tk.DISABLED
        self.context_menu.entryconfigure("Switch", state=state)
        self.context_menu.entryconfigure("Delete", state=state)
        try:
            self.context_menu.tk_popup(event.x_root, event.y_root)
        finally:
            self.context_menu.grab_release()

    def _handle_add(self):
        if self.on_add:
            self.on_add()

    def _handle_import_current(self):
        if self.on_import_current and self._switching_enabled:
            self.on_import_current()

    def _handle_switch(self):
        profile_id = self.get_selected_profile_id()
        if profile_id and self.on_switch and self._switching_enabled:
            self.on_switch(profile_id)

    def _handle_edit(self):
        profile_id = self.get_selected_profile_id()
        if profile_id and self.on_edit:
            self.on_edit(profile_id)

    def _handle_delete(self):
        profile_id = self.get_selected_profile_id()
        if profile_id and self.on_delete and self._switching_enabled:
            self.on_delete(profile_id)
