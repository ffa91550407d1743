"""User action sub-client for the chansync bridge.

This module provides ActionsClient and AsyncActionsClient for the user
action endpoints (/actions/*).

This is an internal module. Import from `client` instead.
"""

from typing import Any

from client._base import AsyncBaseClient, BaseClient
from client.models import ActionResponse, SendActionResponse, ToggleReactionResponse


def _send_body(message: str, file_ids: list[str] | None, root_id: str | None) -> dict[str, Any]:
    body: dict[str, Any] = {"message": message, "file_ids": file_ids or []}
    if root_id is not None:
        body["root_id"] = root_id
    return body


class ActionsClient(BaseClient):
    """Synchronous client for user action endpoints (/actions/*).

    Example:
        with ChanSyncClient() as client:
            client.actions.select_channel("C1")
            result = client.actions.send("hello")
            print(result.post.id)  # correlation id while pending
    """

    _BASE_PATH = "/actions"

    def _action(self, path: str, json: Any = None) -> ActionResponse:
        return ActionResponse(**self._post(path, json=json))

    def select_team(self, team_id: str) -> ActionResponse:
        return self._action("/select-team", {"team_id": team_id})

    def select_channel(self, channel_id: str) -> ActionResponse:
        return self._action("/select-channel", {"channel_id": channel_id})

    def clear_selection(self) -> ActionResponse:
        return self._action("/clear-selection")

    def load_older(self) -> ActionResponse:
        """Request older history; ``performed`` is False when there is none."""
        return self._action("/load-older")

    def open_thread(self, root_id: str) -> ActionResponse:
        return self._action("/open-thread", {"root_id": root_id})

    def close_thread(self) -> ActionResponse:
        return self._action("/close-thread")

    def send(
        self,
        message: str,
        file_ids: list[str] | None = None,
        root_id: str | None = None,
    ) -> SendActionResponse:
        """Send a message optimistically.

        Args:
            message: Message text.
            file_ids: Ids of already uploaded files.
            root_id: Thread root; defaults to the engine's reply target.

        Returns:
            The action result with the pending post, or ``performed`` False
            when the send was skipped.
        """
        data = self._post("/send", json=_send_body(message, file_ids, root_id))
        return SendActionResponse(**data)

    def retry(self, pending_id: str) -> SendActionResponse:
        """Retry a failed send.

        Raises:
            BadRequestError: If the send is unknown or has not failed.
        """
        return SendActionResponse(**self._post("/retry", json={"pending_id": pending_id}))

    def discard(self, pending_id: str) -> ActionResponse:
        """Discard a failed send.

        Raises:
            BadRequestError: If the send is unknown or has not failed.
        """
        return self._action("/discard", {"pending_id": pending_id})

    def toggle_reaction(self, post_id: str, emoji_name: str) -> ToggleReactionResponse:
        """Add or remove the current user's reaction.

        Raises:
            ServerError: With status 503 before the current user is known.
        """
        data = self._post(
            "/toggle-reaction", json={"post_id": post_id, "emoji_name": emoji_name}
        )
        return ToggleReactionResponse(**data)

    def mark_read(self, channel_id: str | None = None) -> ActionResponse:
        return self._action("/mark-read", {"channel_id": channel_id})

    def typing(self, root_id: str = "") -> ActionResponse:
        return self._action("/typing", {"root_id": root_id})

    def reply_to(self, post_id: str) -> ActionResponse:
        return self._action("/reply-to", {"post_id": post_id})

    def clear_reply_to(self) -> ActionResponse:
        return self._action("/clear-reply-to")

    def search(self, terms: str) -> ActionResponse:
        return self._action("/search", {"terms": terms})

    def dismiss_error(self) -> ActionResponse:
        return self._action("/dismiss-error")


class AsyncActionsClient(AsyncBaseClient):
    """Asynchronous client for user action endpoints (/actions/*)."""

    _BASE_PATH = "/actions"

    async def _action(self, path: str, json: Any = None) -> ActionResponse:
        return ActionResponse(**await self._post(path, json=json))

    async def select_team(self, team_id: str) -> ActionResponse:
        return await self._action("/select-team", {"team_id": team_id})

    async def select_channel(self, channel_id: str) -> ActionResponse:
        return await self._action("/select-channel", {"channel_id": channel_id})

    async def clear_selection(self) -> ActionResponse:
        return await self._action("/clear-selection")

    async def load_older(self) -> ActionResponse:
        return await self._action("/load-older")

    async def open_thread(self, root_id: str) -> ActionResponse:
        return await self._action("/open-thread", {"root_id": root_id})

    async def close_thread(self) -> ActionResponse:
        return await self._action("/close-thread")

    async def send(
        self,
        message: str,
        file_ids: list[str] | None = None,
        root_id: str | None = None,
    ) -> SendActionResponse:
        data = await self._post("/send", json=_send_body(message, file_ids, root_id))
        return SendActionResponse(**data)

    async def retry(self, pending_id: str) -> SendActionResponse:
        data = await self._post("/retry", json={"pending_id": pending_id})
        return SendActionResponse(**data)

    async def discard(self, pending_id: str) -> ActionResponse:
        return await self._action("/discard", {"pending_id": pending_id})

    async def toggle_reaction(self, post_id: str, emoji_name: str) -> ToggleReactionResponse:
        data = await self._post(
            "/toggle-reaction", json={"post_id": post_id, "emoji_name": emoji_name}
        )
        return ToggleReactionResponse(**data)

    async def mark_read(self, channel_id: str | None = None) -> ActionResponse:
        return await self._action("/mark-read", {"channel_id": channel_id})

    async def typing(self, root_id: str = "") -> ActionResponse:
        return await self._action("/typing", {"root_id": root_id})

    async def reply_to(self, post_id: str) -> ActionResponse:
        return await self._action("/reply-to", {"post_id": post_id})

    async def clear_reply_to(self) -> ActionResponse:
        return await self._action("/clear-reply-to")

    async def search(self, terms: str) -> ActionResponse:
        return await self._action("/search", {"terms": terms})

    async def dismiss_error(self) -> ActionResponse:
        return await self._action("/dismiss-error")
