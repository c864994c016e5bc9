"""
Switch Orchestrator - applies one profile to every configuration target.

Protocol:
    snapshot = orchestrator.begin_switch(profile_id)
    orchestrator.listen(callback)          # or: async for e in orchestrator.subscribe()
    report = await orchestrator.run_switch(profile_id)
    if report.cancelled:
        orchestrator.restore(snapshot)

Steps reported on the progress channel:
    1 prepare, 2 system, 3 vscode, 4 claude, 5 finalize, 6 done

Target writes run sequentially in a worker thread so progress events are
never held back by slow I/O. Cancellation is observed only between target
steps; a write that has started always runs to completion.
"""

import asyncio
import logging
import threading
from typing import Callable, Optional, Sequence, Tuple

from core.errors import PreconditionViolation, ProfileNotFound, TargetError
from core.progress import ProgressCallback, ProgressChannel, ProgressSubscription
from core.snapshot_store import SnapshotStore
from core.targets import TargetAdapter
from models.profile import Profile
from models.switch import (
    APPLY_STATES,
    AttemptState,
    RestoreReport,
    SnapshotSet,
    SwitchAttempt,
    SwitchReport,
    TargetOutcome,
)
from utils.constants import ERROR_MESSAGES
from utils.validators import mask_token

logger = logging.getLogger(__name__)


class SwitchOrchestrator:
    """Drives snapshot -> apply-to-each-target -> finalize for one profile."""

    def __init__(
        self,
        profile_store,
        targets: Sequence[TargetAdapter],
        snapshot_store: Optional[SnapshotStore] = None
    ):
        """
        Initialize orchestrator.

        Args:
            profile_store: Provides get_profile(id) and set_active(id | None)
            targets: Target adapters in the order they are written
            snapshot_store: Snapshot store over the same targets
        """
        self.profile_store = profile_store
        self.targets = list(targets)
        self.snapshot_store = snapshot_store or SnapshotStore(self.targets)
        self.total_steps = len(self.targets) + 3  # prepare, finalize, done
        self._lock = threading.Lock()
        self._attempt: Optional[SwitchAttempt] = None

    @property
    def attempt(self) -> Optional[SwitchAttempt]:
        """The pending or running attempt, if any."""
        return self._attempt

    @property
    def in_flight(self) -> bool:
        attempt = self._attempt
        return attempt is not None and attempt.running

    # ===== Caller-facing protocol =====

    def begin_switch(self, profile_id: str) -> SnapshotSet:
        """
        Snapshot every target ahead of a switch to ``profile_id``.

        Replaces any pending attempt that was never run.

        Returns:
            The captured SnapshotSet; keep it to pass to restore()

        Raises:
            PreconditionViolation: if a switch is already running
            SnapshotFailed: if no target could be read
        """
        with self._lock:
            if self.in_flight:
                raise PreconditionViolation(ERROR_MESSAGES["SWITCH_IN_PROGRESS"])
            self._discard_pending()

        snapshot = self.snapshot_store.capture()

        with self._lock:
            if self.in_flight:
                raise PreconditionViolation(ERROR_MESSAGES["SWITCH_IN_PROGRESS"])
            self._discard_pending()
            self._attempt = SwitchAttempt(
                profile_id=profile_id,
                snapshot=snapshot,
                total_steps=self.total_steps,
                channel=ProgressChannel(self.total_steps)
            )

        logger.info(f"Switch to profile '{profile_id}' prepared")
        return snapshot

    def subscribe(self) -> ProgressSubscription:
        """Async subscription to the pending attempt's progress channel."""
        return self._pending_channel().subscribe()

    def listen(self, callback: ProgressCallback) -> Callable[[], None]:
        """Callback subscription to the pending attempt's progress channel."""
        return self._pending_channel().listen(callback)

    async def run_switch(self, profile_id: str) -> SwitchReport:
        """
        Apply the profile to every target.

        Args:
            profile_id: Profile passed to the preceding begin_switch()

        Returns:
            SwitchReport with per-target results

        Raises:
            PreconditionViolation: no snapshot for this profile, unknown
                profile, or an attempt already running
        """
        attempt, profile = self._start(profile_id)
        try:
            return await self._drive(attempt, profile)
        finally:
            attempt.channel.close()
            with self._lock:
                if self._attempt is attempt:
                    self._attempt = None
            logger.info(f"Switch attempt for '{profile.name}' ended in state {attempt.state.value}")

    def request_cancel(self) -> bool:
        """
        Ask the running attempt to stop at the next step boundary.

        Idempotent; a no-op when nothing is running or when the last
        target is already being written.

        Returns:
            True if the attempt will stop before its next target
        """
        with self._lock:
            attempt = self._attempt
            if attempt is None or not attempt.running:
                logger.debug("Cancel requested with no switch running (ignored)")
                return False
            if attempt.current_step > len(self.targets):
                logger.info("Cancel requested after the last target step (ignored)")
                return False
            if not attempt.cancel_requested:
                logger.info(f"Cancel requested at step {attempt.current_step}/{attempt.total_steps}")
            attempt.request_cancel()
            return True

    def restore(self, snapshot: SnapshotSet) -> RestoreReport:
        """
        Write a snapshot back to every target.

        Raises:
            PreconditionViolation: if a switch is currently running
        """
        if self.in_flight:
            raise PreconditionViolation(ERROR_MESSAGES["SWITCH_IN_PROGRESS"])
        report = self.snapshot_store.restore(snapshot)
        if report.success:
            logger.info(f"Snapshot restored: {', '.join(report.restored) or 'nothing to restore'}")
        else:
            logger.warning(f"Snapshot restore incomplete: {report.errors}")
        return report

    async def switch_profile(
        self,
        profile_id: str,
        on_progress: Optional[ProgressCallback] = None,
        restore_on_cancel: bool = True
    ) -> Tuple[SwitchReport, Optional[RestoreReport]]:
        """
        Run the whole protocol: snapshot, switch, and restore if cancelled.

        Returns:
            Tuple of (switch_report, restore_report or None)
        """
        snapshot = self.begin_switch(profile_id)
        if on_progress:
            self.listen(on_progress)

        report = await self.run_switch(profile_id)

        restore_report = None
        if report.cancelled and restore_on_cancel:
            restore_report = await asyncio.to_thread(self.restore, snapshot)
        return report, restore_report

    # ===== State machine =====

    def _pending_channel(self) -> ProgressChannel:
        with self._lock:
            attempt = self._attempt
            if attempt is None or attempt.state is not AttemptState.PENDING:
                raise PreconditionViolation("No pending switch to subscribe to; call begin_switch first")
            return attempt.channel

    def _discard_pending(self) -> None:
        if self._attempt is not None and self._attempt.state is AttemptState.PENDING:
            self._attempt.channel.close()
            self._attempt = None

    def _start(self, profile_id: str) -> Tuple[SwitchAttempt, Profile]:
        """Check preconditions and claim the pending attempt."""
        with self._lock:
            attempt = self._attempt
            if attempt is not None and attempt.running:
                raise PreconditionViolation(ERROR_MESSAGES["SWITCH_IN_PROGRESS"])
            if attempt is None or attempt.profile_id != profile_id:
                raise PreconditionViolation(ERROR_MESSAGES["NO_SNAPSHOT"])

        try:
            profile = self.profile_store.get_profile(profile_id)
        except ProfileNotFound as e:
            raise PreconditionViolation(str(e)) from e

        with self._lock:
            if self._attempt is not attempt or attempt.state is not AttemptState.PENDING:
                raise PreconditionViolation(ERROR_MESSAGES["SWITCH_IN_PROGRESS"])
            attempt.target_profile = profile
            attempt.state = AttemptState.PREPARE

        return attempt, profile

    def _enter(self, attempt: SwitchAttempt, state: AttemptState, label: str) -> None:
        attempt.state = state
        attempt.current_step += 1
        attempt.channel.publish(attempt.current_step, label)

    async def _drive(self, attempt: SwitchAttempt, profile: Profile) -> SwitchReport:
        logger.info(
            f"Switching to '{profile.name}' (token {mask_token(profile.token)}, url {profile.base_url})"
        )
        self._enter(attempt, AttemptState.PREPARE, "prepare")

        for target in self.targets:
            if attempt.cancel_requested:
                attempt.state = AttemptState.CANCELLED
                logger.info(
                    f"Switch cancelled before {target.display_name}; "
                    f"{len(attempt.per_target_result)} target(s) already written"
                )
                return SwitchReport.from_attempt(attempt, len(self.targets))

            self._enter(attempt, APPLY_STATES[target.name], target.progress_label)
            outcome = await self._apply(target, profile)
            attempt.record(target.name, outcome)

        self._enter(attempt, AttemptState.FINALIZE, "finalize")
        await self._finalize(attempt, profile)

        self._enter(attempt, AttemptState.DONE, "done")
        report = SwitchReport.from_attempt(attempt, len(self.targets))
        if report.success:
            logger.info(f"Switched to '{profile.name}'")
        else:
            logger.warning(f"Switch to '{profile.name}' partially applied: {report.failures}")
        return report

    async def _apply(self, target: TargetAdapter, profile: Profile) -> TargetOutcome:
        try:
            await asyncio.to_thread(target.write, profile.token, profile.base_url)
        except TargetError as e:
            logger.error(f"Failed to update {target.display_name}: {e.reason}")
            return TargetOutcome.failed(e.reason)
        except Exception as e:
            logger.exception(f"Unexpected error updating {target.display_name}")
            return TargetOutcome.failed(str(e))

        logger.info(f"Updated {target.display_name}")
        return TargetOutcome.success()

    async def _finalize(self, attempt: SwitchAttempt, profile: Profile) -> None:
        """Mark the profile active only if every target now holds its values."""
        all_applied = attempt.all_succeeded and len(attempt.per_target_result) == len(self.targets)
        active_id = profile.id if all_applied else None

        success, error = await asyncio.to_thread(self.profile_store.set_active, active_id)
        if not success:
            logger.error(f"Failed to record active profile: {error}")
