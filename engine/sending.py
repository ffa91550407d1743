"""Optimistic send lifecycle.

A send shows the message immediately as a pending post whose id is a fresh
correlation id. The post then settles through one of these transitions::

    pending -> confirmed            (post_confirmed, or a matching echo)
    pending -> failed               (post_failed, or the confirmation timeout)
    failed  -> pending              (retry, same correlation id and params)
    failed  -> discarded            (discard; the id is retired)
"""

import logging
from datetime import timedelta
from typing import Optional

from engine.clock import LogicalClock
from engine.correlation import (
    CorrelationId,
    PendingRequest,
    PendingRequestTable,
    new_correlation_id,
)
from engine.entities import Post, SendParams, User
from engine.outbound import OutboundSink, SendPostRequest
from engine.timeline import ChannelStore

logger = logging.getLogger(__name__)

SEND_TIMED_OUT = "Send timed out"


class OptimisticSendManager:
    """Creates optimistic posts and reconciles them with host outcomes.

    Args:
        store: Channel store holding the timeline and thread.
        clock: Clock used for timestamps and the confirmation timeout.
        sink: Where outbound send requests go.
        send_timeout: How long a send may stay pending before it fails.
    """

    def __init__(
        self,
        store: ChannelStore,
        clock: LogicalClock,
        sink: OutboundSink,
        send_timeout: timedelta = timedelta(seconds=30),
    ):
        self.store = store
        self.clock = clock
        self.sink = sink
        self.send_timeout = send_timeout
        self.pending = PendingRequestTable()

    def send(
        self,
        message: str,
        file_ids: Optional[list[str]] = None,
        root_id: Optional[str] = None,
        author: Optional[User] = None,
    ) -> Optional[Post]:
        """Send a message to the selected channel optimistically.

        Args:
            message: Message text; surrounding whitespace is trimmed.
            file_ids: Ids of files already uploaded by the host.
            root_id: Thread root to reply to. Defaults to the composer's reply
                target.
            author: Current user, recorded as the optimistic post's author.

        Returns:
            The pending post, or None when there is nothing to send or no
            channel is selected.
        """
        file_ids = list(file_ids or [])
        text = message.strip()
        channel_id = self.store.selected_channel_id
        if not channel_id:
            logger.debug("Send skipped: no channel selected")
            return None
        if not text and not file_ids:
            logger.debug("Send skipped: empty message")
            return None
        if not text:
            text = " "
        if root_id is None:
            root_id = self.store.reply_root_id

        now = self.clock.now()
        correlation_id = new_correlation_id()
        params = SendParams(
            channel_id=channel_id, message=text, root_id=root_id, file_ids=file_ids
        )
        entry = self.pending.register(correlation_id, params, now)
        if author is not None:
            entry.author_id = author.id
            entry.author_name = author.username

        post = _optimistic_post(entry)
        self.store.prepend_new_post(post)
        if self.store.is_open_thread_reply(post):
            self.store.append_thread_post(post)
        self.store.clear_reply_to()

        self._issue(entry)
        return post

    def confirm(self, correlation_id: str, post: Post) -> bool:
        """Replace the optimistic post with the canonical one.

        Returns:
            False if the correlation id is unknown or already settled.
        """
        entry = self.pending.get(correlation_id)
        if entry is None:
            logger.warning(f"Confirmation for unknown correlation id {correlation_id}")
            return False
        self.store.replace_post(correlation_id, post.settled())
        self.pending.release(correlation_id)
        logger.debug(f"Send {correlation_id} confirmed as {post.id}")
        return True

    def fail(self, correlation_id: str, error: str) -> bool:
        """Move a pending send to the failed state, keeping its post visible.

        Returns:
            False if the correlation id is unknown or not pending.
        """
        entry = self.pending.get(correlation_id)
        if entry is None or entry.failed_error is not None:
            logger.warning(f"Failure for unknown or settled correlation id {correlation_id}")
            return False
        entry.failed_error = error
        entry.disarm()
        self._update_optimistic_post(
            correlation_id, {"pending": False, "failed_error": error}
        )
        logger.info(f"Send {correlation_id} failed: {error}")
        return True

    def retry(self, correlation_id: str) -> Optional[Post]:
        """Re-issue a failed send with its original parameters.

        Returns:
            The post, pending again, or None if it is no longer loaded.

        Raises:
            ValueError: If the correlation id is unknown or not failed.
        """
        entry = self._require_failed(correlation_id)
        entry.failed_error = None
        entry.attempts += 1
        post = self._update_optimistic_post(
            correlation_id, {"pending": True, "failed_error": None}
        )
        self._issue(entry)
        return post

    def discard(self, correlation_id: str) -> None:
        """Drop a failed send and retire its correlation id.

        Raises:
            ValueError: If the correlation id is unknown or not failed.
        """
        self._require_failed(correlation_id)
        self.store.remove_post(correlation_id)
        self.pending.release(correlation_id)
        logger.debug(f"Send {correlation_id} discarded")

    def match_echo(self, post: Post, own_user_id: Optional[str] = None) -> Optional[str]:
        """Treat a real-time post as the confirmation of a matching pending send.

        Pending posts still loaded are matched by author, channel, message and
        thread root. Sends whose post is no longer loaded (the channel was
        switched) are matched on their original params when the post is
        authored by ``own_user_id``.

        Returns:
            The correlation id that was confirmed, or None if nothing matched.
        """
        correlation_id = None
        candidate = self.store.find_pending_match(post)
        if candidate is not None and candidate.id in self.pending:
            correlation_id = candidate.id
        elif own_user_id and post.user_id == own_user_id:
            for entry in self.pending.requests.values():
                params = entry.params
                if (
                    entry.failed_error is None
                    and params.channel_id == post.channel_id
                    and params.message == post.message
                    and params.root_id == post.root_id
                ):
                    correlation_id = entry.correlation_id
                    break
        if correlation_id is None:
            return None
        self.confirm(correlation_id, post)
        return correlation_id

    def restore_unsettled(self, channel_id: str) -> int:
        """Put a channel's outstanding sends back at the front of its timeline.

        Called when a fresh first page replaces the timeline, so that sends
        still pending, or failed while the channel was not selected, stay
        visible and retryable. Posts are rebuilt from the table entries.

        Returns:
            Number of posts restored.
        """
        entries = sorted(
            (e for e in self.pending.requests.values() if e.params.channel_id == channel_id),
            key=lambda e: e.created_at,
        )
        restored = 0
        for entry in entries:
            if self.store.prepend_new_post(_optimistic_post(entry)):
                restored += 1
        if restored:
            logger.debug(f"Restored {restored} unsettled send(s) in {channel_id}")
        return restored

    def status_of(self, correlation_id: str) -> Optional[str]:
        entry = self.pending.get(correlation_id)
        if entry is None:
            return None
        return "failed" if entry.failed_error is not None else "pending"

    def reset(self) -> None:
        """Forget every outstanding send and cancel its timeout."""
        self.pending.clear()

    def _issue(self, entry: PendingRequest) -> None:
        params = entry.params
        entry.timeout = self.clock.call_later(
            self.send_timeout,
            lambda: self._on_timeout(CorrelationId(entry.correlation_id)),
            name=f"send-timeout:{entry.correlation_id}",
        )
        self.sink(
            SendPostRequest(
                pending_id=entry.correlation_id,
                channel_id=params.channel_id,
                message=params.message,
                root_id=params.root_id,
                file_ids=list(params.file_ids),
            )
        )

    def _on_timeout(self, correlation_id: CorrelationId) -> None:
        entry = self.pending.get(correlation_id)
        if entry is None or entry.failed_error is not None:
            return
        entry.timeout = None
        self.fail(correlation_id, SEND_TIMED_OUT)

    def _require_failed(self, correlation_id: str) -> PendingRequest:
        entry = self.pending.get(correlation_id)
        if entry is None:
            raise ValueError(f"No outstanding send with id {correlation_id}")
        if entry.failed_error is None:
            raise ValueError(f"Send {correlation_id} has not failed")
        return entry

    def _update_optimistic_post(self, correlation_id: str, changes: dict) -> Optional[Post]:
        post = self.store.find_post(correlation_id)
        if post is None:
            return None
        updated = post.model_copy(update=changes)
        self.store.update_post(updated)
        return updated


def _optimistic_post(entry: PendingRequest) -> Post:
    params = entry.params
    return Post(
        id=entry.correlation_id,
        channel_id=params.channel_id,
        user_id=entry.author_id,
        username=entry.author_name,
        message=params.message,
        create_at=entry.created_at,
        update_at=entry.created_at,
        root_id=params.root_id,
        pending=entry.failed_error is None,
        failed_error=entry.failed_error,
        send_params=params,
    )
