"""Records key lifecycle signals as activity revisions."""

import logging

from blinker import NamedSignal
from sqlalchemy.ext.asyncio import AsyncSession

from glossa.activity.models import ActivityRevision, ActivityType
from glossa.activity.signals import (
    key_complex_edited,
    key_created,
    key_edited,
    keys_deleted,
    keys_imported,
)
from glossa.security.context import CallerContext

logger = logging.getLogger(__name__)


class ActivityRecorder:
    """Adds an ``ActivityRevision`` to the emitting session for each key signal."""

    def __init__(self) -> None:
        self._subscriptions: list[tuple[NamedSignal, object]] = []

    def register_listeners(self) -> None:
        """Register Blinker signal listeners."""
        if self._subscriptions:
            return
        for sig, activity_type in (
            (key_created, ActivityType.CREATE_KEY),
            (key_edited, ActivityType.KEY_NAME_EDIT),
            (key_complex_edited, ActivityType.COMPLEX_EDIT),
            (keys_deleted, ActivityType.KEY_DELETE),
            (keys_imported, ActivityType.IMPORT),
        ):
            receiver = self._make_receiver(activity_type)
            sig.connect(receiver, weak=False)
            self._subscriptions.append((sig, receiver))

    def unregister_listeners(self) -> None:
        for sig, receiver in self._subscriptions:
            sig.disconnect(receiver)
        self._subscriptions.clear()

    def _make_receiver(self, activity_type: ActivityType):  # noqa: ANN202
        def receiver(
            sender: object,
            *,
            session: AsyncSession,
            ctx: CallerContext,
            key_ids: list[int],
        ) -> None:
            self.record(session, ctx, activity_type, key_ids)

        return receiver

    def record(
        self,
        session: AsyncSession,
        ctx: CallerContext,
        activity_type: ActivityType,
        key_ids: list[int],
    ) -> ActivityRevision:
        revision = ActivityRevision(
            project_id=ctx.project_id,
            user_id=ctx.user_id,
            api_key_id=ctx.api_key_id,
            type=activity_type,
            key_ids=list(key_ids),
        )
        session.add(revision)
        logger.debug("Recorded %s activity for keys %s", activity_type, key_ids)
        return revision
