"""Unit tests for RelationStore: identity, idempotent writes, cascades, renames."""

import pytest

from lettergate.exceptions import (
    ErrorCode,
    NameConflictError,
    SubjectNotFoundError,
    TokenConflictError,
    TokenNotFoundError,
    ValidationError,
)
from lettergate.models import Grant, Subject, Token


class TestCreate:

    def test_create_subject_assigns_id(self, store):
        subject_id = store.create_subject("alice")
        assert store.resolve_subject("alice") == subject_id

    def test_create_subject_is_idempotent(self, store, db):
        first = store.create_subject("alice")
        second = store.create_subject("alice")
        assert first == second
        assert db.query(Subject).count() == 1

    def test_create_subject_strips_whitespace(self, store):
        store.create_subject("  alice  ")
        assert store.list_subjects() == ["alice"]

    def test_blank_subject_name_rejected(self, store):
        with pytest.raises(ValidationError):
            store.create_subject("   ")

    def test_subject_name_length_limit(self, store):
        store.create_subject("x" * 256)
        with pytest.raises(ValidationError):
            store.create_subject("y" * 257)

    @pytest.mark.parametrize("name", ["al\nice", "al\rice", "al\tice", "al\x00ice", "al\u2028ice"])
    def test_subject_name_with_control_character_rejected(self, store, name):
        with pytest.raises(ValidationError) as exc:
            store.create_subject(name)
        assert exc.value.details == {"field": "name"}
        with pytest.raises(ValidationError):
            store.create_subject_with_tokens(name, ["a"])
        assert store.list_subjects() == []
        assert store.list_tokens() == []

    def test_rename_to_name_with_line_break_rejected(self, store):
        alice = store.create_subject("alice")
        with pytest.raises(ValidationError):
            store.rename_subject(alice, "al\nice")
        assert store.list_subjects() == ["alice"]

    def test_ensure_token_is_idempotent(self, store, db):
        assert store.ensure_token("a") == store.ensure_token("a")
        assert db.query(Token).count() == 1

    def test_tokens_are_case_sensitive(self, store):
        assert store.ensure_token("a") != store.ensure_token("A")
        assert store.list_tokens() == ["a", "A"]

    def test_non_latin_letter_is_a_token(self, store):
        store.ensure_token("ж")
        assert store.list_tokens() == ["ж"]

    @pytest.mark.parametrize("value", ["", "ab", "1", "-", " "])
    def test_invalid_token_rejected(self, store, value):
        with pytest.raises(ValidationError):
            store.ensure_token(value)

    def test_ids_are_not_reused(self, store):
        first = store.create_subject("alice")
        store.delete_subject(first)
        second = store.create_subject("bob")
        assert second > first

    def test_create_subject_with_tokens(self, store):
        subject_id = store.create_subject_with_tokens("alice", ["a", "b"])
        assert store.list_granted_tokens(subject_id) == {"a", "b"}
        assert store.list_tokens() == ["a", "b"]

    def test_create_subject_with_invalid_token_writes_nothing(self, store):
        with pytest.raises(ValidationError):
            store.create_subject_with_tokens("alice", ["a", "1"])
        assert store.list_subjects() == []
        assert store.list_tokens() == []


class TestResolve:

    def test_unknown_subject(self, store):
        with pytest.raises(SubjectNotFoundError) as exc:
            store.resolve_subject("ghost")
        assert exc.value.error_code == ErrorCode.SUBJECT_NOT_FOUND
        assert exc.value.to_dict()["details"] == {"subject": "ghost"}

    def test_unknown_token(self, store):
        with pytest.raises(TokenNotFoundError):
            store.resolve_token("z")

    def test_list_in_insertion_order(self, store):
        for name in ["carol", "alice", "bob"]:
            store.create_subject(name)
        assert store.list_subjects() == ["carol", "alice", "bob"]


class TestGrants:

    def test_grant_is_idempotent(self, store, db):
        subject_id = store.create_subject("alice")
        token_id = store.ensure_token("a")
        assert store.grant(subject_id, token_id) is True
        assert store.grant(subject_id, token_id) is False
        assert db.query(Grant).count() == 1

    def test_revoke_is_idempotent(self, store):
        subject_id = store.create_subject("alice")
        token_id = store.ensure_token("a")
        store.grant(subject_id, token_id)
        assert store.revoke(subject_id, token_id) is True
        assert store.revoke(subject_id, token_id) is False
        assert store.list_granted_tokens(subject_id) == set()

    def test_revoke_from_missing_subject(self, store):
        subject_id = store.create_subject_with_tokens("alice", ["a"])
        token_id = store.resolve_token("a")
        store.delete_subject(subject_id)
        with pytest.raises(SubjectNotFoundError):
            store.revoke(subject_id, token_id)

    def test_revoke_of_missing_token_is_noop(self, store):
        subject_id = store.create_subject("alice")
        token_id = store.ensure_token("a")
        store.delete_token(token_id)
        assert store.revoke(subject_id, token_id) is False

    def test_grant_to_missing_subject(self, store, db):
        subject_id = store.create_subject("alice")
        token_id = store.ensure_token("a")
        store.delete_subject(subject_id)
        with pytest.raises(SubjectNotFoundError):
            store.grant(subject_id, token_id)
        assert db.query(Grant).count() == 0

    def test_grant_of_missing_token(self, store, db):
        subject_id = store.create_subject("alice")
        token_id = store.ensure_token("a")
        store.delete_token(token_id)
        with pytest.raises(TokenNotFoundError):
            store.grant(subject_id, token_id)
        assert db.query(Grant).count() == 0

    def test_list_granted_tokens_for_missing_subject(self, store):
        subject_id = store.create_subject("alice")
        store.delete_subject(subject_id)
        with pytest.raises(SubjectNotFoundError):
            store.list_granted_tokens(subject_id)

    def test_grant_all_and_revoke_all(self, store):
        subject_id = store.create_subject_with_tokens("alice", ["a"])
        store.ensure_token("b")
        store.ensure_token("c")
        assert store.grant_all(subject_id) == 2
        assert store.list_granted_tokens(subject_id) == {"a", "b", "c"}
        assert store.grant_all(subject_id) == 0
        assert store.revoke_all(subject_id) == 3
        assert store.list_granted_tokens(subject_id) == set()

    def test_grant_all_with_no_tokens(self, store):
        subject_id = store.create_subject("alice")
        assert store.grant_all(subject_id) == 0

    def test_grant_all_for_missing_subject(self, store):
        with pytest.raises(SubjectNotFoundError):
            store.grant_all(9999)


class TestDelete:

    def test_delete_subject_cascades_grants(self, store, db):
        subject_id = store.create_subject_with_tokens("alice", ["a", "b"])
        store.create_subject_with_tokens("bob", ["a"])
        store.delete_subject(subject_id)

        assert store.list_subjects() == ["bob"]
        assert store.list_tokens() == ["a", "b"]
        assert db.query(Grant).filter(Grant.subject_id == subject_id).count() == 0
        assert db.query(Grant).count() == 1

    def test_delete_token_cascades_grants(self, store, db):
        alice = store.create_subject_with_tokens("alice", ["a", "b"])
        bob = store.create_subject_with_tokens("bob", ["a"])
        store.delete_token(store.resolve_token("a"))

        assert store.list_tokens() == ["b"]
        assert store.list_granted_tokens(alice) == {"b"}
        assert store.list_granted_tokens(bob) == set()
        assert db.query(Grant).count() == 1

    def test_delete_missing_subject(self, store):
        with pytest.raises(SubjectNotFoundError):
            store.delete_subject(9999)

    def test_delete_missing_token(self, store):
        with pytest.raises(TokenNotFoundError):
            store.delete_token(9999)


class TestRename:

    def test_rename_subject(self, store):
        subject_id = store.create_subject_with_tokens("alice", ["a"])
        store.rename_subject(subject_id, "alicia")
        assert store.resolve_subject("alicia") == subject_id
        assert store.list_granted_tokens(subject_id) == {"a"}
        with pytest.raises(SubjectNotFoundError):
            store.resolve_subject("alice")

    def test_rename_subject_to_taken_name(self, store):
        alice = store.create_subject("alice")
        store.create_subject("bob")
        with pytest.raises(NameConflictError) as exc:
            store.rename_subject(alice, "bob")
        assert exc.value.error_code == ErrorCode.NAME_CONFLICT
        assert store.list_subjects() == ["alice", "bob"]

    def test_rename_subject_to_own_name_is_noop(self, store):
        alice = store.create_subject("alice")
        store.rename_subject(alice, "alice")
        assert store.list_subjects() == ["alice"]

    def test_rename_missing_subject(self, store):
        with pytest.raises(SubjectNotFoundError):
            store.rename_subject(9999, "nobody")

    def test_rename_token_moves_grants(self, store):
        alice = store.create_subject_with_tokens("alice", ["a"])
        store.rename_token(store.resolve_token("a"), "q")
        assert store.list_tokens() == ["q"]
        assert store.list_granted_tokens(alice) == {"q"}

    def test_rename_token_to_taken_value(self, store):
        a = store.ensure_token("a")
        store.ensure_token("b")
        with pytest.raises(TokenConflictError) as exc:
            store.rename_token(a, "b")
        assert exc.value.error_code == ErrorCode.TOKEN_CONFLICT

    def test_rename_token_to_own_value_is_noop(self, store):
        a = store.ensure_token("a")
        store.rename_token(a, "a")
        assert store.list_tokens() == ["a"]

    def test_rename_token_validates_value(self, store):
        a = store.ensure_token("a")
        with pytest.raises(ValidationError):
            store.rename_token(a, "ab")
