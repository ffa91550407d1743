"""Reaction aggregation.

Reactions are kept per post, and at most one reaction exists per
(post_id, user_id, emoji_name) triple. Toggling is not decided here; the
engine asks has_reaction() and then calls add or remove.
"""

from typing import Any

from pydantic import Field

from engine.base_state import ComponentState
from engine.entities import Reaction


class ReactionState(ComponentState):
    """Reactions for the posts currently loaded.

    Args:
        component: Always "reactions".
        reactions: Map of post id to its reactions in arrival order.
    """

    component: str = Field(default="reactions", frozen=True)
    reactions: dict[str, list[Reaction]] = Field(default_factory=dict)

    def set_reactions_for_post(self, post_id: str, reactions: list[Reaction]) -> None:
        """Replace every reaction for one post.

        Duplicate triples in the input collapse to the first occurrence.
        Reactions addressed to a different post are ignored.
        """
        kept: list[Reaction] = []
        seen: set[tuple[str, str, str]] = set()
        for reaction in reactions:
            if reaction.post_id != post_id or reaction.key in seen:
                continue
            seen.add(reaction.key)
            kept.append(reaction)
        if kept:
            self.reactions[post_id] = kept
        else:
            self.reactions.pop(post_id, None)
        self.touch()

    def set_bulk_reactions(self, reactions: list[Reaction]) -> int:
        """Merge reactions for many posts without duplicating a triple.

        Returns:
            Number of reactions actually added.
        """
        added = 0
        for reaction in reactions:
            if self._insert(reaction):
                added += 1
        if added:
            self.touch()
        return added

    def add_reaction(self, reaction: Reaction) -> bool:
        """Add one reaction. Adding an existing triple is a no-op.

        Returns:
            True if the reaction was new.
        """
        added = self._insert(reaction)
        if added:
            self.touch()
        return added

    def remove_reaction(self, post_id: str, user_id: str, emoji_name: str) -> bool:
        """Remove the reaction matching the exact triple.

        Returns:
            True if a reaction was removed.
        """
        existing = self.reactions.get(post_id, [])
        remaining = [
            r for r in existing if not (r.user_id == user_id and r.emoji_name == emoji_name)
        ]
        if len(remaining) == len(existing):
            return False
        if remaining:
            self.reactions[post_id] = remaining
        else:
            del self.reactions[post_id]
        self.touch()
        return True

    def remove_post(self, post_id: str) -> None:
        """Drop every reaction on a post (e.g. when the post is deleted)."""
        if self.reactions.pop(post_id, None) is not None:
            self.touch()

    def has_reaction(self, post_id: str, user_id: str, emoji_name: str) -> bool:
        return any(
            r.user_id == user_id and r.emoji_name == emoji_name
            for r in self.reactions.get(post_id, [])
        )

    def get_reactions(self, post_id: str) -> list[Reaction]:
        """Reactions on one post, in arrival order (a copy)."""
        return list(self.reactions.get(post_id, []))

    def _insert(self, reaction: Reaction) -> bool:
        bucket = self.reactions.setdefault(reaction.post_id, [])
        if any(r.key == reaction.key for r in bucket):
            return False
        bucket.append(reaction)
        return True

    def get_snapshot(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "reactions": {
                post_id: [r.model_dump() for r in bucket]
                for post_id, bucket in self.reactions.items()
            },
        }

    def validate_state(self) -> list[str]:
        issues = []
        for post_id, bucket in self.reactions.items():
            keys = [r.key for r in bucket]
            if len(keys) != len(set(keys)):
                issues.append(f"Duplicate reaction triple on post {post_id}")
            for reaction in bucket:
                if reaction.post_id != post_id:
                    issues.append(
                        f"Reaction for post {reaction.post_id} filed under {post_id}"
                    )
        return issues

    def clear(self) -> None:
        self.reactions.clear()
        self.update_count = 0

    @property
    def summary(self) -> str:
        total = sum(len(bucket) for bucket in self.reactions.values())
        return f"{total} reactions on {len(self.reactions)} posts"
