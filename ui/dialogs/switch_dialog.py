"""
Switch Dialog - progress window shown while a profile switch runs.

Driven from the Tk thread: the main window forwards each ProgressEvent to
``on_progress`` and calls ``finish`` with the final report.
"""

import logging
import tkinter as tk
from typing import Callable, Dict, List, Optional

import ttkbootstrap as ttk
from ttkbootstrap.constants import *

from models.switch import ProgressEvent, SwitchReport, TargetName
from utils.constants import STEP_LABELS

logger = logging.getLogger(__name__)

STEP_TEXT = {
    "prepare": "Preparing...",
    "system": "Updating system environment...",
    "vscode": "Updating VS Code settings...",
    "claude": "Updating Claude settings...",
    "finalize": "Saving active profile...",
    "done": "Done",
}

# First progress step that writes a target; targets follow in switch order
FIRST_TARGET_STEP = 2

INDICATOR_STYLES = {
    "pending": ("○", "secondary"),
    "active": ("◐", "info"),
    "done": ("●", "success"),
    "failed": ("✕", "danger"),
    "skipped": ("–", "secondary"),
}


def indicator_states(step: int, targets: List[TargetName]) -> Dict[TargetName, str]:
    """State of each target indicator once ``step`` has been entered."""
    states = {}
    for index, target in enumerate(targets):
        target_step = FIRST_TARGET_STEP + index
        if step < target_step:
            states[target] = "pending"
        elif step == target_step:
            states[target] = "active"
        else:
            states[target] = "done"
    return states


def report_states(report: SwitchReport, targets: List[TargetName]) -> Dict[TargetName, str]:
    """Final state of each target indicator."""
    states = {}
    for target in targets:
        result = report.results.get(target.value)
        if result is None:
            states[target] = "skipped"
        else:
            states[target] = "done" if result else "failed"
    return states


class SwitchDialog(ttk.Toplevel):
    """Modal progress dialog with a Cancel button."""

    def __init__(
        self,
        parent,
        profile_name: str,
        on_cancel: Optional[Callable[[], bool]] = None,
        targets: Optional[List[TargetName]] = None
    ):
        super().__init__(parent)

        self.profile_name = profile_name
        self.on_cancel = on_cancel
        self.targets = list(targets) if targets is not None else list(TargetName)
        self.finished = False
        self.cancel_requested = False
        self.current_label = STEP_LABELS[0]
        self.cancel_requested = False
        self.indicators: Dict[TargetName, ttk.Label] = {}

        self.title(f"Switching to {profile_name}")
        self.resizable(False, False)
        self.transient(parent)
        self.grab_set()

        self._build_ui()
        self._center_on_parent(parent)

        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.bind("<Escape>", lambda e: self._on_close())

        logger.info(f"SwitchDialog opened for '{profile_name}'")

    def _center_on_parent(self, parent):
        """Center dialog on parent window."""
        self.update_idletasks()
        x = parent.winfo_x() + (parent.winfo_width() - self.winfo_width()) // 2
        y = parent.winfo_y() + (parent.winfo_height() - self.winfo_height()) // 2
        self.geometry(f"+{x}+{y}")

    def _build_ui(self):
        main_frame = ttk.Frame(self, padding=20)
        main_frame.pack(fill=BOTH, expand=True)
        main_frame.columnconfigure(0, weight=1)

        self.step_var = tk.StringVar(value=STEP_TEXT["prepare"])
        ttk.Label(main_frame, textvariable=self.step_var, font=("Segoe UI", 10)).grid(
            row=0, column=0, sticky="w"
        )

        self.percent_var = tk.StringVar(value="0%")
        ttk.Label(main_frame, textvariable=self.percent_var, font=("Segoe UI", 10, "bold")).grid(
            row=0, column=1, sticky="e"
        )

        self.progress = ttk.Progressbar(
            main_frame,
            maximum=100,
            length=360,
            mode="determinate",
            bootstyle="info-striped"
        )
        self.progress.grid(row=1, column=0, columnspan=2, sticky="ew", pady=(8, 12))

        steps_frame = ttk.Frame(main_frame)
        steps_frame.grid(row=2, column=0, columnspan=2, sticky="ew")
        for column, target in enumerate(self.targets):
            steps_frame.columnconfigure(column, weight=1)
            symbol, style = INDICATOR_STYLES["pending"]
            label = ttk.Label(
                steps_frame,
                text=f"{symbol} {target.display_name}",
                bootstyle=style
            )
            label.grid(row=0, column=column)
            self.indicators[target] = label

        self.message_label = ttk.Label(main_frame, text="", wraplength=360, justify=LEFT)
        self.message_label.grid(row=3, column=0, columnspan=2, sticky="w", pady=(12, 0))

        self.cancel_button = ttk.Button(
            main_frame,
            text="Cancel",
            command=self._on_cancel_clicked,
            bootstyle="danger-outline",
            width=12
        )
        self.cancel_button.grid(row=4, column=0, columnspan=2, pady=(12, 0))

    def _set_indicators(self, states: Dict[TargetName, str]):
        for target, state in states.items():
            label = self.indicators.get(target)
            if label is None:
                continue
            symbol, style = INDICATOR_STYLES[state]
            label.configure(text=f"{symbol} {target.display_name}", bootstyle=style)

    def on_progress(self, event: ProgressEvent):
        """Render one progress event (Tk thread only)."""
        if self.finished:
            return
        self.progress.configure(value=event.percent)
        self.percent_var.set(f"{event.percent}%")
        self.current_label = event.label
        if not self.cancel_requested:
            self.step_var.set(STEP_TEXT.get(event.label, event.label))
        self._set_indicators(indicator_states(event.step, self.targets))

        if event.label == STEP_LABELS[-1]:
            self.cancel_button.configure(state=tk.DISABLED)

    def _on_cancel_clicked(self):
        if self.finished:
            self.destroy()
            return
        if self.cancel_requested:
            return
        self.cancel_requested = True
        self.step_var.set("Cancelling...")
        self.cancel_button.configure(state=tk.DISABLED)
        logger.info("Cancel clicked in switch dialog")
        accepted = self.on_cancel() if self.on_cancel else True
        if accepted is False:
            # Last target already being written; the switch runs to the end
            self.cancel_requested = False
            self.step_var.set(STEP_TEXT.get(self.current_label, self.current_label))
            self.message_label.configure(
                text="Too late to cancel: the switch is already finishing.",
                bootstyle="warning"
            )
            logger.info("Cancel refused, switch past the last target step")

    def _on_close(self):
        if self.finished:
            self.destroy()
        else:
            self._on_cancel_clicked()

    def finish(self, report: SwitchReport, message: str):
        """Show the outcome and turn Cancel into Close."""
        self.finished = True
        self._set_indicators(report_states(report, self.targets))

        if report.success:
            self.step_var.set(STEP_TEXT["done"])
            style = "success"
        elif report.cancelled:
            self.step_var.set("Cancelled")
            style = "secondary"
        else:
            self.step_var.set("Partially applied")
            style = "warning"

        self.message_label.configure(text=message, bootstyle=style)
        self.cancel_button.configure(text="Close", state=tk.NORMAL, bootstyle="secondary")
