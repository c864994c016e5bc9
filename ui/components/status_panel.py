"""
Status Panel UI Component

Shows the token and base URL currently configured in each target, plus a
badge telling whether all targets agree.
"""

import logging
import tkinter as tk
from typing import Callable, Dict, Optional, Tuple

import ttkbootstrap as ttk
from ttkbootstrap.constants import *

from models.switch import LocationStatus, StatusReport, TargetName
from utils.validators import mask_token

logger = logging.getLogger(__name__)

URL_DISPLAY_LENGTH = 40


def truncate_url(url: str, limit: int = URL_DISPLAY_LENGTH) -> str:
    if not url:
        return "--"
    if len(url) <= limit:
        return url
    return url[:limit - 3] + "..."


def format_location(location: Optional[LocationStatus]) -> Tuple[str, str]:
    """(token_text, url_text) for one target card."""
    if location is None:
        return "Unreadable", "Unreadable"
    return mask_token(location.token), truncate_url(location.base_url)


class StatusPanel(ttk.LabelFrame):
    """Three target cards and a sync badge."""

    def __init__(self, parent, on_refresh: Optional[Callable[[], None]] = None):
        super().__init__(parent, text="Current Configuration", padding=10)
        self.on_refresh = on_refresh
        self.cards: Dict[TargetName, Tuple[tk.StringVar, tk.StringVar]] = {}
        self._build_ui()

    def _build_ui(self):
        header = ttk.Frame(self)
        header.grid(row=0, column=0, columnspan=len(TargetName), sticky="ew", pady=(0, 8))
        header.columnconfigure(0, weight=1)

        self.badge = ttk.Label(header, text="Not Synced", bootstyle="inverse-warning", padding=(8, 2))
        self.badge.grid(row=0, column=0, sticky="w")

        self.refresh_button = ttk.Button(
            header,
            text="Refresh",
            command=self._on_refresh_clicked,
            bootstyle="secondary-outline",
            width=10
        )
        self.refresh_button.grid(row=0, column=1, sticky="e")

        for column, target in enumerate(TargetName):
            self.columnconfigure(column, weight=1, uniform="cards")

            card = ttk.LabelFrame(self, text=target.display_name, padding=8)
            card.grid(row=1, column=column, sticky="nsew", padx=4)

            token_var = tk.StringVar(value="--")
            url_var = tk.StringVar(value="--")

            ttk.Label(card, text="Token", font=("Segoe UI", 8), foreground="gray").pack(anchor=W)
            ttk.Label(card, textvariable=token_var, font=("Consolas", 9)).pack(anchor=W, pady=(0, 4))
            ttk.Label(card, text="Base URL", font=("Segoe UI", 8), foreground="gray").pack(anchor=W)
            ttk.Label(card, textvariable=url_var, font=("Consolas", 9)).pack(anchor=W)

            self.cards[target] = (token_var, url_var)

    def _on_refresh_clicked(self):
        if self.on_refresh:
            self.on_refresh()

    def update_status(self, report: StatusReport):
        """Render a StatusReport."""
        for target, (token_var, url_var) in self.cards.items():
            token_text, url_text = format_location(report.get(target))
            token_var.set(token_text)
            url_var.set(url_text)

        if report.synced:
            self.badge.configure(text="Synced", bootstyle="inverse-success")
        else:
            self.badge.configure(text="Not Synced", bootstyle="inverse-warning")

        logger.debug(f"Status panel updated (synced={report.synced})")
