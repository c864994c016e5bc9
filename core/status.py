"""Current configuration status across all targets."""

import logging
from typing import Dict, Optional, Sequence

from core.errors import TargetReadError
from core.targets import TargetAdapter
from models.switch import LocationStatus, StatusReport, TargetName

logger = logging.getLogger(__name__)


def is_synced(locations: Dict[TargetName, Optional[LocationStatus]]) -> bool:
    """
    True when at least one token is configured and every configured token
    and base URL agree.

    Does not say which profile the values belong to; two profiles may share
    a token and base URL.
    """
    readable = [loc for loc in locations.values() if loc is not None]
    tokens = [loc.token for loc in readable if loc.token]
    urls = [loc.base_url for loc in readable if loc.base_url]

    if not tokens:
        return False
    return len(set(tokens)) == 1 and len(set(urls)) <= 1


def read_status(targets: Sequence[TargetAdapter]) -> StatusReport:
    """Read every target; an unreadable target is reported as None."""
    locations: Dict[TargetName, Optional[LocationStatus]] = {}

    for target in targets:
        try:
            values = target.read()
        except TargetReadError as e:
            logger.warning(f"Could not read {target.display_name}: {e.reason}")
            locations[target.name] = None
            continue
        locations[target.name] = LocationStatus(
            token=values.token or "",
            base_url=values.base_url or ""
        )

    return StatusReport(locations=locations, synced=is_synced(locations))
