"""Approval -> acquisition reconciliation.

Approval is an authorization decision; acquisition is a best-effort side
effect. acquire() therefore never raises: every failure is logged and the
caller records the approval without a Lidarr id. sweep() is the manual
second chance for those requests, run only when an admin asks for it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from loguru import logger

from .errors import RecordStoreError
from .models import MediaRequest, SweepResult

if TYPE_CHECKING:
    from .api.lidarr import LidarrClient
    from .store import RecordStoreDB

log = logger.bind(component="reconciler")


class AcquisitionReconciler:
    def __init__(self, lidarr: LidarrClient) -> None:
        self.lidarr = lidarr

    def acquire(self, request: MediaRequest) -> int | None:
        """Add the request's artist to Lidarr; return its Lidarr id or None on failure."""
        try:
            added = self.lidarr.add_artist(request.music_brainz_id, request.type)
        except Exception as e:
            log.error(
                f"Lidarr add failed for request {request.id} "
                f"(mbid={request.music_brainz_id}): {type(e).__name__}: {e}"
            )
            return None
        if added.id is None:
            log.warning(f"Lidarr returned no id for request {request.id}")
        return added.id

    def sweep(self, store: RecordStoreDB) -> SweepResult:
        """Retry acquisition for APPROVED requests that have no Lidarr id.

        An artist Lidarr already holds (added out-of-band, or by an earlier
        attempt whose response was lost) is linked instead of re-added.
        """
        result = SweepResult()
        pending = store.list_unlinked_approved()
        log.info(f"Reconciliation sweep: {len(pending)} approved requests without Lidarr id")

        for request in pending:
            result.checked += 1
            try:
                existing = self.lidarr.find_artist(request.music_brainz_id)
            except (RecordStoreError, httpx.HTTPError, ValueError) as e:
                log.warning(f"Could not list Lidarr artists for {request.id}: {e}")
                existing = None

            if existing is not None and existing.id is not None:
                store.set_lidarr_id(request.id, existing.id)
                result.linked += 1
                log.info(f"Linked request {request.id} to existing Lidarr id={existing.id}")
                continue

            lidarr_id = self.acquire(request)
            if lidarr_id is None:
                result.failed += 1
            else:
                store.set_lidarr_id(request.id, lidarr_id)
                result.added += 1

        log.info(
            f"Sweep done: checked={result.checked} linked={result.linked} "
            f"added={result.added} failed={result.failed}"
        )
        return result
