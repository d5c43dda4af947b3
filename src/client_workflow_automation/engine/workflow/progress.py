"""Client progress aggregation."""

from __future__ import annotations

import logging
from collections.abc import Callable

from client_workflow_automation.engine.errors import ClientNotFound, PersistenceFailure
from client_workflow_automation.engine.models import compute_progress, utc_iso_now
from client_workflow_automation.engine.persistence.gateway import PersistenceGateway
from client_workflow_automation.engine.timeouts import Deadline

__all__ = ["ProgressAggregator", "compute_progress", "recompute_after_write"]

logger = logging.getLogger(__name__)


class ProgressAggregator:
    """Recomputes a client's completion percentage from its full task set.

    Always a full recomputation, never an increment. The gateway reads the
    tasks and writes the percentage as one atomic step, so concurrent
    recomputations for the same client converge on the value for the latest
    task set.
    """

    def __init__(
        self, *, gateway: PersistenceGateway, clock: Callable[[], str] = utc_iso_now
    ) -> None:
        self._gateway = gateway
        self._clock = clock

    def recompute(self, client_id: str, *, deadline: Deadline | None = None) -> int:
        """Recompute, store and return the client's progress percent.

        Raises:
            ClientNotFound: the client does not exist.
            PersistenceFailure: the store could not be read or written.
        """

        if deadline is not None:
            deadline.check("recomputing progress")
        updated = self._gateway.recompute_client_progress(
            client_id, self._clock(), deadline=deadline
        )

        logger.info(
            "Client progress updated",
            extra={"client_id": client_id, "percent": updated.progress_percent},
        )
        return updated.progress_percent


def recompute_after_write(
    aggregator: ProgressAggregator, client_id: str, *, deadline: Deadline | None = None
) -> int | None:
    """Recompute progress once the authoritative write has already happened.

    The preceding write stands either way, so a failure here is logged and
    reported as ``None`` instead of being raised. The next recompute for the
    client repairs the value.
    """

    try:
        return aggregator.recompute(client_id, deadline=deadline)
    except (ClientNotFound, PersistenceFailure):
        logger.warning(
            "Progress recompute failed; value is stale until the next recompute",
            exc_info=True,
            extra={"client_id": client_id},
        )
        return None
