"""Channel and post store.

Owns team and channel selection, the channel lists, the main timeline of the
selected channel, the open thread and the composer's reply target.

The main timeline is newest-first: real-time posts are inserted at index 0
and older history pages are appended at the tail. Nothing is reordered after
insertion. The open thread is oldest-first. Both collections hold at most one
post per id.
"""

import logging
from typing import Any, Optional

from pydantic import Field

from engine.base_state import ComponentState
from engine.entities import Channel, ErrorScope, Post, Team

logger = logging.getLogger(__name__)


class ChannelStore(ComponentState):
    """Teams, channels, the selected channel's timeline and the open thread.

    Args:
        component: Always "timeline".
        teams: Known teams, replaced on refresh.
        selected_team_id: Currently selected team.
        channels: Team channels in server order.
        dm_channels: Direct and group-direct channels in server order.
        favorite_channel_ids: Ids of favorite channels.
        selected_channel_id: Currently selected channel.
        posts: Timeline of the selected channel, newest first.
        has_more_posts: Whether older history can still be fetched.
        posts_page: Index of the last history page loaded (0 = newest).
        thread_root_id: Root id of the open thread.
        thread_posts: Root plus replies of the open thread, oldest first.
        reply_to_post_id: Post the composer is replying to.
        channels_loading: A channel list fetch is outstanding.
        posts_loading: A history fetch is outstanding.
        thread_loading: A thread fetch is outstanding.
        search_terms: Terms of the last search.
        search_loading: A search is outstanding.
        search_results: Posts returned by the last search.
    """

    component: str = Field(default="timeline", frozen=True)

    teams: list[Team] = Field(default_factory=list)
    selected_team_id: Optional[str] = None
    channels: list[Channel] = Field(default_factory=list)
    dm_channels: list[Channel] = Field(default_factory=list)
    favorite_channel_ids: list[str] = Field(default_factory=list)
    selected_channel_id: Optional[str] = None

    posts: list[Post] = Field(default_factory=list)
    has_more_posts: bool = False
    posts_page: int = 0

    thread_root_id: Optional[str] = None
    thread_posts: list[Post] = Field(default_factory=list)
    reply_to_post_id: Optional[str] = None

    channels_loading: bool = False
    posts_loading: bool = False
    thread_loading: bool = False

    search_terms: Optional[str] = None
    search_loading: bool = False
    search_results: list[Post] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # Teams and channels
    # ------------------------------------------------------------------

    def set_teams(self, teams: list[Team]) -> None:
        self.teams = list(teams)
        self.touch()

    def select_team(self, team_id: str) -> None:
        """Switch team, resetting channels, selection and timeline state."""
        logger.info(f"Selecting team {team_id}")
        self.selected_team_id = team_id
        self.channels = []
        self.dm_channels = []
        self.selected_channel_id = None
        self._reset_timeline()
        self.search_terms = None
        self.search_results = []
        self.search_loading = False
        self.touch()

    def select_channel(self, channel_id: str) -> None:
        """Switch channel, discarding every piece of timeline-dependent state."""
        logger.info(f"Selecting channel {channel_id}")
        self.selected_channel_id = channel_id
        self._reset_timeline()
        self.touch()

    def clear_channel_selection(self) -> None:
        self.selected_channel_id = None
        self._reset_timeline()
        self.touch()

    def set_channels(self, channels: list[Channel]) -> None:
        """Replace the team channel list and end channel loading."""
        self.channels = _dedup_by_id(channels)
        self.channels_loading = False
        self.touch()

    def append_channels(self, channels: list[Channel]) -> int:
        """Append channels not already listed.

        Returns:
            Number of channels added.
        """
        added = _append_absent(self.channels, channels)
        self.touch()
        return added

    def set_dm_channels(self, channels: list[Channel]) -> None:
        self.dm_channels = _dedup_by_id(channels)
        self.touch()

    def append_dm_channels(self, channels: list[Channel]) -> int:
        added = _append_absent(self.dm_channels, channels)
        self.touch()
        return added

    def add_dm_channel(self, channel: Channel) -> bool:
        """Append a DM channel unless it is already listed."""
        added = _append_absent(self.dm_channels, [channel]) == 1
        if added:
            self.touch()
        return added

    def merge_channel(self, partial: dict[str, Any]) -> bool:
        """Merge partial channel metadata into both channel lists.

        Args:
            partial: Changed fields; must contain ``id``.

        Returns:
            True if a listed channel was updated.

        Raises:
            ValueError: If ``partial`` has no ``id``.
        """
        channel_id = partial.get("id")
        if not channel_id:
            raise ValueError("Channel update is missing 'id'")
        updated = False
        for channels in (self.channels, self.dm_channels):
            for index, channel in enumerate(channels):
                if channel.id == channel_id:
                    channels[index] = Channel.model_validate(
                        {**channel.model_dump(), **partial}
                    )
                    updated = True
        if updated:
            self.touch()
        return updated

    def find_channel(self, channel_id: str) -> Optional[Channel]:
        for channel in (*self.channels, *self.dm_channels):
            if channel.id == channel_id:
                return channel
        return None

    def set_favorites(self, channel_ids: list[str]) -> None:
        self.favorite_channel_ids = list(dict.fromkeys(channel_ids))
        self.touch()

    def set_favorite(self, channel_id: str, favorite: bool) -> None:
        if favorite and channel_id not in self.favorite_channel_ids:
            self.favorite_channel_ids.append(channel_id)
        elif not favorite and channel_id in self.favorite_channel_ids:
            self.favorite_channel_ids.remove(channel_id)
        self.touch()

    def is_favorite(self, channel_id: str) -> bool:
        return channel_id in self.favorite_channel_ids

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def set_posts(self, posts: list[Post], has_more: bool = False) -> None:
        """Replace the timeline with a fresh first page (newest first)."""
        self.posts = _dedup_by_id(posts)
        self.has_more_posts = has_more
        self.posts_page = 0
        self.posts_loading = False
        self.touch()

    def append_older_posts(self, posts: list[Post], has_more: bool = False) -> int:
        """Append an older history page at the tail.

        Returns:
            Number of posts added; ids already present are skipped.
        """
        added = _append_absent(self.posts, posts)
        self.has_more_posts = has_more
        self.posts_page += 1
        self.posts_loading = False
        self.touch()
        return added

    def prepend_new_post(self, post: Post) -> bool:
        """Insert a post at the front of the timeline.

        Returns:
            False, without changing anything, if the id is already present.
        """
        if _index_of(self.posts, post.id) is not None:
            return False
        self.posts.insert(0, post)
        self.touch()
        return True

    def update_post(self, post: Post) -> bool:
        """Replace the post with the same id in the timeline and the thread.

        Returns:
            True if at least one copy was replaced.
        """
        return self.replace_post(post.id, post)

    def replace_post(self, old_id: str, post: Post) -> bool:
        """Swap the post ``old_id`` for ``post`` at the same index.

        Applied to the timeline and the thread independently. Where a copy of
        ``post.id`` is already present in a collection, the ``old_id`` copy is
        removed instead so that exactly one copy remains.

        Returns:
            True if either collection changed.
        """
        changed = False
        for posts in (self.posts, self.thread_posts):
            index = _index_of(posts, old_id)
            if index is None:
                continue
            if post.id != old_id and _index_of(posts, post.id) is not None:
                del posts[index]
            else:
                posts[index] = post
            changed = True
        if changed:
            self.touch()
        return changed

    def remove_post(self, post_id: str) -> bool:
        """Remove a post from the timeline and the thread."""
        removed = False
        for posts in (self.posts, self.thread_posts):
            index = _index_of(posts, post_id)
            if index is not None:
                del posts[index]
                removed = True
        if self.reply_to_post_id == post_id:
            self.reply_to_post_id = None
        if removed:
            self.touch()
        return removed

    def set_post_pinned(self, post_id: str, is_pinned: bool) -> bool:
        changed = False
        for posts in (self.posts, self.thread_posts):
            index = _index_of(posts, post_id)
            if index is not None:
                posts[index] = posts[index].model_copy(update={"is_pinned": is_pinned})
                changed = True
        if changed:
            self.touch()
        return changed

    def find_post(self, post_id: str) -> Optional[Post]:
        """Look a post up in the timeline, then in the thread."""
        for posts in (self.posts, self.thread_posts):
            index = _index_of(posts, post_id)
            if index is not None:
                return posts[index]
        return None

    def find_pending_match(self, post: Post) -> Optional[Post]:
        """Find the pending post that ``post`` is the server echo of.

        A match has the same author, channel, message text and thread root.
        """
        for candidate in (*self.posts, *self.thread_posts):
            if (
                candidate.pending
                and candidate.user_id == post.user_id
                and candidate.channel_id == post.channel_id
                and candidate.message == post.message
                and candidate.root_id == post.root_id
            ):
                return candidate
        return None

    # ------------------------------------------------------------------
    # Thread and composer
    # ------------------------------------------------------------------

    def open_thread(self, root_id: str) -> None:
        """Open a thread, discarding the previously open one."""
        self.thread_root_id = root_id
        self.thread_posts = []
        self.thread_loading = True
        self.touch()

    def close_thread(self) -> None:
        self.thread_root_id = None
        self.thread_posts = []
        self.thread_loading = False
        self.touch()

    def set_thread_posts(self, posts: list[Post]) -> None:
        """Replace the open thread's posts (root plus replies, oldest first)."""
        self.thread_posts = _dedup_by_id(posts)
        self.thread_loading = False
        self.touch()

    def append_thread_post(self, post: Post) -> bool:
        """Append a post to the open thread unless its id is already there."""
        if _index_of(self.thread_posts, post.id) is not None:
            return False
        self.thread_posts.append(post)
        self.touch()
        return True

    def is_open_thread_reply(self, post: Post) -> bool:
        return self.thread_root_id is not None and post.root_id == self.thread_root_id

    def set_reply_to(self, post_id: str) -> None:
        self.reply_to_post_id = post_id
        self.touch()

    def clear_reply_to(self) -> None:
        if self.reply_to_post_id is not None:
            self.reply_to_post_id = None
            self.touch()

    @property
    def reply_root_id(self) -> str:
        """Thread root that a send from the composer should reply to.

        Replying to a reply targets that reply's root. Returns "" when there
        is no reply target.
        """
        if self.reply_to_post_id is None:
            return ""
        target = self.find_post(self.reply_to_post_id)
        if target is not None and target.root_id:
            return target.root_id
        return self.reply_to_post_id

    # ------------------------------------------------------------------
    # Search and loading flags
    # ------------------------------------------------------------------

    def start_search(self, terms: Optional[str]) -> None:
        if terms is not None:
            self.search_terms = terms
        self.search_loading = True
        self.search_results = []
        self.touch()

    def set_search_results(self, posts: list[Post], terms: Optional[str] = None) -> None:
        if terms is not None:
            self.search_terms = terms
        self.search_results = _dedup_by_id(posts)
        self.search_loading = False
        self.touch()

    def clear_search(self) -> None:
        self.search_terms = None
        self.search_results = []
        self.search_loading = False
        self.touch()

    def clear_loading(self, scope: ErrorScope = "general") -> None:
        """Turn off the loading flag(s) affected by a failure in ``scope``.

        The "general" scope clears every flag.
        """
        if scope in ("channels", "general"):
            self.channels_loading = False
        if scope in ("posts", "general"):
            self.posts_loading = False
        if scope in ("thread", "general"):
            self.thread_loading = False
        if scope in ("search", "general"):
            self.search_loading = False
        self.touch()

    def _reset_timeline(self) -> None:
        self.posts = []
        self.has_more_posts = False
        self.posts_page = 0
        self.posts_loading = False
        self.thread_root_id = None
        self.thread_posts = []
        self.thread_loading = False
        self.reply_to_post_id = None

    # ------------------------------------------------------------------
    # ComponentState
    # ------------------------------------------------------------------

    def get_snapshot(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def validate_state(self) -> list[str]:
        issues = []
        for name, posts in (("timeline", self.posts), ("thread", self.thread_posts)):
            ids = [p.id for p in posts]
            if len(ids) != len(set(ids)):
                issues.append(f"Duplicate post ids in {name}")
        if self.selected_channel_id is not None:
            for post in self.posts:
                if post.channel_id and post.channel_id != self.selected_channel_id:
                    issues.append(
                        f"Post {post.id} from {post.channel_id} in timeline of "
                        f"{self.selected_channel_id}"
                    )
        for post in self.thread_posts:
            if post.id != self.thread_root_id and post.root_id != self.thread_root_id:
                issues.append(f"Post {post.id} does not belong to thread {self.thread_root_id}")
        return issues

    def clear(self) -> None:
        self.teams = []
        self.selected_team_id = None
        self.channels = []
        self.dm_channels = []
        self.favorite_channel_ids = []
        self.selected_channel_id = None
        self._reset_timeline()
        self.channels_loading = False
        self.search_terms = None
        self.search_loading = False
        self.search_results = []
        self.update_count = 0

    @property
    def summary(self) -> str:
        where = self.selected_channel_id or "no channel"
        return f"{len(self.posts)} posts in {where}, {len(self.thread_posts)} in thread"


def _index_of(items: list, item_id: str) -> Optional[int]:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None


def _dedup_by_id(items: list) -> list:
    seen: set[str] = set()
    result = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            result.append(item)
    return result


def _append_absent(target: list, items: list) -> int:
    present = {item.id for item in target}
    added = 0
    for item in items:
        if item.id not in present:
            target.append(item)
            present.add(item.id)
            added += 1
    return added
