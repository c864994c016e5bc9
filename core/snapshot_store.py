"""
Snapshot Store - captures target values before a switch and puts them back.

The snapshot is an undo log, not a transaction: targets are independent
stores, so restore attempts every target and reports each outcome.
"""

import logging
from typing import Dict, Sequence

from core.errors import RestoreFailed, SnapshotFailed, TargetError
from core.targets import TargetAdapter
from models.switch import RestoreReport, SnapshotSet, TargetName, TargetSnapshot
from utils.constants import ERROR_MESSAGES

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Captures and restores the state of every configuration target."""

    def __init__(self, targets: Sequence[TargetAdapter]):
        self.targets: Dict[TargetName, TargetAdapter] = {t.name: t for t in targets}

    def capture(self) -> SnapshotSet:
        """
        Read every target independently.

        A target that cannot be read is recorded as absent.

        Returns:
            SnapshotSet with one entry per target

        Raises:
            SnapshotFailed: if no target could be read at all
        """
        snapshots = []
        for target in self.targets.values():
            try:
                snapshot = target.snapshot()
            except TargetError as e:
                snapshot = TargetSnapshot.unreadable(target.name, e.reason)
            except Exception as e:
                logger.exception(f"Unexpected error reading {target.display_name}")
                snapshot = TargetSnapshot.unreadable(target.name, str(e))
            if not snapshot.captured:
                logger.warning(f"{target.display_name} unreadable, recorded as absent: {snapshot.error}")
            snapshots.append(snapshot)

        snapshot_set = SnapshotSet(snapshots=snapshots)

        if snapshots and all(not s.captured for s in snapshots):
            details = [f"{s.target.display_name}: {s.error}" for s in snapshots]
            logger.error(f"{ERROR_MESSAGES['SNAPSHOT_FAILED']} {details}")
            raise SnapshotFailed(details)

        logger.info(
            "Snapshot captured: %d/%d targets readable",
            len(snapshots) - len(snapshot_set.unreadable_targets),
            len(snapshots)
        )
        return snapshot_set

    def restore(self, snapshot: SnapshotSet) -> RestoreReport:
        """
        Write every captured target value back.

        Failures are collected; every target is attempted even if an
        earlier one fails. Targets without a captured baseline are skipped.

        Args:
            snapshot: SnapshotSet returned by capture()

        Returns:
            RestoreReport listing restored, failed and skipped targets
        """
        report = RestoreReport()

        for target_snapshot in snapshot:
            name = target_snapshot.target.value
            adapter = self.targets.get(target_snapshot.target)

            if adapter is None:
                report.skipped[name] = "Unknown target"
                continue

            if not target_snapshot.captured:
                report.skipped[name] = f"{ERROR_MESSAGES['NO_BASELINE']}: {target_snapshot.error}"
                logger.info(f"Skipping restore of {adapter.display_name}: no baseline")
                continue

            try:
                adapter.restore(target_snapshot)
                report.results[name] = True
                logger.info(f"Restored {adapter.display_name}")
            except TargetError as e:
                failure = RestoreFailed(name, e.reason)
                report.results[name] = False
                report.failures[name] = failure.reason
                logger.error(f"Failed to restore {adapter.display_name}: {failure.reason}")

        return report
