"""Data models for the profile switch protocol."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from models.profile import Profile
from utils.constants import SWITCH_TOTAL_STEPS, TARGET_DISPLAY_NAMES

if TYPE_CHECKING:
    from core.progress import ProgressChannel


class TargetName(str, Enum):
    """Configuration locations a profile is written to."""

    ENV = "env"
    EDITOR = "editor"
    ASSISTANT = "assistant"

    @property
    def display_name(self) -> str:
        return TARGET_DISPLAY_NAMES.get(self.value, self.value)


class AttemptState(Enum):
    """States of a switch attempt, in the order they are entered."""

    PENDING = "pending"
    PREPARE = "prepare"
    APPLY_ENV = "apply_env"
    APPLY_EDITOR = "apply_editor"
    APPLY_ASSISTANT = "apply_assistant"
    FINALIZE = "finalize"
    DONE = "done"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (AttemptState.DONE, AttemptState.CANCELLED)


APPLY_STATES = {
    TargetName.ENV: AttemptState.APPLY_ENV,
    TargetName.EDITOR: AttemptState.APPLY_EDITOR,
    TargetName.ASSISTANT: AttemptState.APPLY_ASSISTANT,
}


@dataclass(frozen=True)
class TargetValues:
    """Token and base URL currently stored in one target."""

    token: Optional[str] = None
    base_url: Optional[str] = None


@dataclass
class TargetSnapshot:
    """Values of one target captured before a switch.

    ``error`` is set when the target could not be read; token and base URL
    are then absent. ``raw`` is private to the adapter that produced the
    snapshot and lets it put the location back exactly as it was.
    """

    target: TargetName
    token: Optional[str] = None
    base_url: Optional[str] = None
    error: Optional[str] = None
    raw: Any = None

    @property
    def captured(self) -> bool:
        return self.error is None

    @classmethod
    def unreadable(cls, target: TargetName, reason: str) -> "TargetSnapshot":
        return cls(target=target, error=reason)


@dataclass
class SnapshotSet:
    """Undo log for one switch attempt: one snapshot per target."""

    snapshots: List[TargetSnapshot]
    captured_at: datetime = field(default_factory=datetime.now)

    def __iter__(self) -> Iterator[TargetSnapshot]:
        return iter(self.snapshots)

    def __len__(self) -> int:
        return len(self.snapshots)

    def get(self, target: TargetName) -> Optional[TargetSnapshot]:
        for snapshot in self.snapshots:
            if snapshot.target == target:
                return snapshot
        return None

    @property
    def unreadable_targets(self) -> List[TargetName]:
        return [s.target for s in self.snapshots if not s.captured]


@dataclass(frozen=True)
class ProgressEvent:
    """Payload broadcast on the progress channel."""

    step: int
    total: int
    label: str

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return int(round(self.step * 100 / self.total))

    def to_dict(self) -> dict:
        return {"step": self.step, "total": self.total, "label": self.label}


@dataclass(frozen=True)
class TargetOutcome:
    """Result of writing a profile to one target."""

    succeeded: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls) -> "TargetOutcome":
        return cls(succeeded=True)

    @classmethod
    def failed(cls, reason: str) -> "TargetOutcome":
        return cls(succeeded=False, reason=reason)


@dataclass
class SwitchAttempt:
    """Mutable state of one in-flight switch, owned by the orchestrator."""

    profile_id: str
    snapshot: SnapshotSet
    total_steps: int = SWITCH_TOTAL_STEPS
    current_step: int = 0
    state: AttemptState = AttemptState.PENDING
    target_profile: Optional[Profile] = None
    per_target_result: Dict[TargetName, TargetOutcome] = field(default_factory=dict)
    channel: Optional["ProgressChannel"] = None
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def request_cancel(self) -> None:
        self._cancel_event.set()

    @property
    def running(self) -> bool:
        return self.state is not AttemptState.PENDING and not self.state.is_terminal

    def record(self, target: TargetName, outcome: TargetOutcome) -> None:
        self.per_target_result[target] = outcome

    @property
    def all_succeeded(self) -> bool:
        return bool(self.per_target_result) and all(
            outcome.succeeded for outcome in self.per_target_result.values()
        )


@dataclass
class SwitchReport:
    """Final report of a switch attempt."""

    success: bool
    cancelled: bool
    profile_name: str
    results: Dict[str, bool] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        """Neither fully successful nor cancelled."""
        return not self.success and not self.cancelled

    @classmethod
    def from_attempt(cls, attempt: SwitchAttempt, expected_targets: int) -> "SwitchReport":
        cancelled = attempt.state is AttemptState.CANCELLED
        results = {}
        errors = []
        failures = {}
        for target, outcome in attempt.per_target_result.items():
            results[target.value] = outcome.succeeded
            if not outcome.succeeded:
                reason = outcome.reason or "unknown error"
                errors.append(reason)
                failures[target.value] = reason

        success = (
            not cancelled
            and len(results) == expected_targets
            and all(results.values())
        )
        profile_name = attempt.target_profile.name if attempt.target_profile else attempt.profile_id
        return cls(
            success=success,
            cancelled=cancelled,
            profile_name=profile_name,
            results=results,
            errors=errors,
            failures=failures
        )

    def summary(self) -> str:
        """User-facing one-line description of the outcome."""
        if self.success:
            return f"Switched to {self.profile_name}"
        if self.cancelled:
            return "Switch cancelled. Restore the previous configuration."
        ok = [TargetName(name).display_name for name, done in self.results.items() if done]
        return "Partially applied. Updated: {ok}. Errors: {errors}".format(
            ok=", ".join(ok) or "--",
            errors="; ".join(
                f"{TargetName(name).display_name}: {reason}" for name, reason in self.failures.items()
            ) or "--"
        )

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "cancelled": self.cancelled,
            "profile_name": self.profile_name,
            "results": dict(self.results),
            "errors": list(self.errors)
        }


@dataclass
class RestoreReport:
    """Aggregate result of writing a snapshot back to every target."""

    results: Dict[str, bool] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(self.results.values())

    @property
    def restored(self) -> List[str]:
        return [name for name, done in self.results.items() if done]

    @property
    def errors(self) -> List[str]:
        return [
            f"{TargetName(name).display_name}: {reason}" for name, reason in self.failures.items()
        ]

    @property
    def skipped_names(self) -> List[str]:
        return [TARGET_DISPLAY_NAMES.get(name, name) for name in self.skipped]

    def summary(self) -> str:
        skipped = ", ".join(self.skipped_names)
        if self.success and not skipped:
            return "Switch cancelled. Previous configuration restored."
        if self.success:
            return f"Switch cancelled. Previous configuration restored except {skipped} (no saved state)."
        message = "Restore after cancellation failed: " + "; ".join(self.errors)
        if skipped:
            message += f". Not restored (no saved state): {skipped}"
        return message


@dataclass(frozen=True)
class LocationStatus:
    """Token and base URL currently configured in one target."""

    token: str = ""
    base_url: str = ""


@dataclass
class StatusReport:
    """Current values of every target.

    A location is ``None`` when it could not be read.
    """

    locations: Dict[TargetName, Optional[LocationStatus]]
    synced: bool = False

    def get(self, target: TargetName) -> Optional[LocationStatus]:
        return self.locations.get(target)
