"""Exception hierarchy for VarSwitch."""

from typing import List, Optional


class VarSwitchError(Exception):
    """Base class for all VarSwitch errors."""


class ConfigLockedError(VarSwitchError):
    """The configuration file lock could not be acquired in time."""


class ProfileNotFound(VarSwitchError):
    """No profile exists with the requested id."""

    def __init__(self, profile_id: str):
        super().__init__(f"Profile '{profile_id}' not found")
        self.profile_id = profile_id


class TargetError(VarSwitchError):
    """A configuration target could not be accessed."""

    def __init__(self, target: str, reason: str):
        super().__init__(reason)
        self.target = target
        self.reason = reason


class TargetReadError(TargetError):
    """Reading the current values of a target failed."""


class TargetWriteError(TargetError):
    """Writing values to a target failed."""


class RestoreFailed(TargetError):
    """Writing a snapshot back to a target failed."""


class SnapshotFailed(VarSwitchError):
    """Every target read failed; no baseline exists and the switch must not start."""

    def __init__(self, details: Optional[List[str]] = None):
        self.details = details or []
        message = "Could not read any configuration target"
        if self.details:
            message = f"{message}: {'; '.join(self.details)}"
        super().__init__(message)


class PreconditionViolation(VarSwitchError):
    """A switch was requested in a state that does not allow it.

    Raised before any state is mutated: no snapshot taken, unknown profile,
    or another attempt already in flight.
    """
