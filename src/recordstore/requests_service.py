"""User requests: creation, listing, admin status changes and deletion.

A transition into APPROVED makes exactly one acquisition attempt. Its
outcome only decides whether a Lidarr id is attached; the status change is
written either way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from .auth import Session, require_admin, require_session
from .errors import DuplicateRequestError, ValidationError
from .models import MediaRequest, RequestStatus, RequestType, SweepResult

if TYPE_CHECKING:
    from .reconciler import AcquisitionReconciler
    from .store import RecordStoreDB

log = logger.bind(component="requests")

# Statuses an admin may set (PENDING is only ever the initial state)
ADMIN_STATUSES = frozenset(
    {
        RequestStatus.APPROVED,
        RequestStatus.REJECTED,
        RequestStatus.PROCESSING,
        RequestStatus.AVAILABLE,
    }
)


class RequestService:
    def __init__(self, store: RecordStoreDB, reconciler: AcquisitionReconciler) -> None:
        self.store = store
        self.reconciler = reconciler

    def create(
        self,
        session: Session | None,
        music_brainz_id: str,
        type: RequestType | str,
        title: str,
        artist_name: str | None = None,
        cover_url: str | None = None,
    ) -> MediaRequest:
        session = require_session(session)
        if not music_brainz_id:
            raise ValidationError("musicBrainzId is required")
        if not title:
            raise ValidationError("title is required")
        try:
            kind = RequestType(str(type).upper())
        except ValueError:
            raise ValidationError(f"Invalid request type: {type}") from None

        if self.store.find_request(music_brainz_id, session.user_id) is not None:
            raise DuplicateRequestError("You have already requested this item")

        return self.store.create_request(
            music_brainz_id=music_brainz_id,
            type=kind,
            title=title,
            user_id=session.user_id,
            artist_name=artist_name,
            cover_url=cover_url,
        )

    def list_mine(
        self, session: Session | None, status: RequestStatus | None = None
    ) -> list[MediaRequest]:
        session = require_session(session)
        return self.store.list_requests(user_id=session.user_id, status=status)

    def list_all(
        self, session: Session | None, status: RequestStatus | None = None
    ) -> list[MediaRequest]:
        require_admin(session)
        return self.store.list_requests(status=status)

    def update_status(
        self,
        session: Session | None,
        request_id: str,
        status: RequestStatus | str,
        admin_note: str | None = None,
    ) -> MediaRequest:
        """Admin status change; approval triggers one acquisition attempt."""
        require_admin(session)
        try:
            new_status = RequestStatus(str(status).upper())
        except ValueError:
            raise ValidationError(f"Invalid status: {status}") from None
        if new_status not in ADMIN_STATUSES:
            raise ValidationError(f"Status cannot be set to {new_status}")

        existing = self.store.get_request(request_id)

        lidarr_id = None
        if new_status == RequestStatus.APPROVED and existing.lidarr_id is not None:
            log.debug(f"Request {request_id} already linked to Lidarr id={existing.lidarr_id}")
        elif new_status == RequestStatus.APPROVED:
            lidarr_id = self.reconciler.acquire(existing)
            if lidarr_id is None:
                log.warning(
                    f"Request {request_id} approved without Lidarr id; "
                    "run a reconciliation sweep to retry"
                )

        return self.store.update_request(
            request_id, new_status, admin_note=admin_note, lidarr_id=lidarr_id
        )

    def delete(self, session: Session | None, request_id: str) -> None:
        require_admin(session)
        self.store.delete_request(request_id)

    def reconcile(self, session: Session | None) -> SweepResult:
        require_admin(session)
        return self.reconciler.sweep(self.store)
