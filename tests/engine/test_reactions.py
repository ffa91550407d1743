"""Unit tests for ReactionState."""

from engine.reactions import ReactionState
from tests.fixtures.entities import create_reaction


class TestReactionState:
    """Test reaction aggregation per post."""

    def test_defaults(self):
        state = ReactionState()

        assert state.component == "reactions"
        assert state.reactions == {}
        assert state.validate_state() == []

    def test_add_reaction_is_idempotent(self):
        state = ReactionState()
        reaction = create_reaction("P1", "U2", "smile")

        assert state.add_reaction(reaction) is True
        assert state.add_reaction(reaction) is False
        assert len(state.get_reactions("P1")) == 1

    def test_same_emoji_from_different_users(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1", "U2", "smile"))
        state.add_reaction(create_reaction("P1", "U3", "smile"))

        assert [r.user_id for r in state.get_reactions("P1")] == ["U2", "U3"]

    def test_remove_reaction_exact_triple(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1", "U2", "smile"))
        state.add_reaction(create_reaction("P1", "U2", "tada"))

        assert state.remove_reaction("P1", "U2", "smile") is True
        assert state.remove_reaction("P1", "U2", "smile") is False
        assert [r.emoji_name for r in state.get_reactions("P1")] == ["tada"]

    def test_removing_last_reaction_drops_post_entry(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1", "U2", "smile"))

        state.remove_reaction("P1", "U2", "smile")

        assert "P1" not in state.reactions

    def test_add_then_remove_restores_previous_set(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1", "U2", "smile"))
        before = state.get_snapshot()

        state.add_reaction(create_reaction("P1", "U1", "tada"))
        state.remove_reaction("P1", "U1", "tada")

        assert state.get_snapshot() == before

    def test_set_reactions_for_post_replaces_and_dedups(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1", "U9", "old"))

        state.set_reactions_for_post(
            "P1",
            [
                create_reaction("P1", "U2", "smile"),
                create_reaction("P1", "U2", "smile"),
                create_reaction("P2", "U2", "smile"),
            ],
        )

        assert [r.key for r in state.get_reactions("P1")] == [("P1", "U2", "smile")]
        assert state.get_reactions("P2") == []

    def test_set_reactions_for_post_with_empty_list(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1"))

        state.set_reactions_for_post("P1", [])

        assert "P1" not in state.reactions

    def test_bulk_reactions_merge_without_duplicates(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1", "U2", "smile"))

        added = state.set_bulk_reactions(
            [
                create_reaction("P1", "U2", "smile"),
                create_reaction("P1", "U3", "smile"),
                create_reaction("P2", "U2", "tada"),
            ]
        )

        assert added == 2
        assert len(state.get_reactions("P1")) == 2
        assert len(state.get_reactions("P2")) == 1

    def test_remove_post(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1"))

        state.remove_post("P1")

        assert state.get_reactions("P1") == []

    def test_get_reactions_returns_copy(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1"))

        state.get_reactions("P1").clear()

        assert len(state.get_reactions("P1")) == 1

    def test_clear(self):
        state = ReactionState()
        state.add_reaction(create_reaction("P1"))

        state.clear()

        assert state.reactions == {}
        assert state.update_count == 0
