"""Tests for DirectoryService: single subject and token administration."""

import pytest

from lettergate.exceptions import (
    NameConflictError,
    SubjectNotFoundError,
    TokenConflictError,
    TokenNotFoundError,
    ValidationError,
)
from lettergate.services.directory_service import DirectoryService


class TestSubjects:

    def test_add_subject_with_tokens(self, db):
        svc = DirectoryService(db)
        assert svc.add_subject("alice", "a, b;c") == ["a", "b", "c"]
        assert svc.allowed_tokens("alice") == frozenset("abc")
        assert svc.list_tokens() == ["a", "b", "c"]

    def test_add_subject_without_tokens(self, db):
        svc = DirectoryService(db)
        svc.add_subject("alice")
        assert svc.list_subjects() == ["alice"]
        assert svc.allowed_tokens("alice") == frozenset()

    def test_add_subject_bad_tokens(self, db):
        svc = DirectoryService(db)
        with pytest.raises(ValidationError):
            svc.add_subject("alice", "a2")
        assert svc.list_subjects() == []

    def test_add_subject_with_line_break_rejected(self, db):
        svc = DirectoryService(db)
        with pytest.raises(ValidationError):
            svc.add_subject("al\nice", "a")
        assert svc.list_subjects() == []

    def test_rename_subject(self, db):
        svc = DirectoryService(db)
        svc.add_subject("alice", "a")
        svc.rename_subject("alice", "alicia")
        assert svc.list_subjects() == ["alicia"]
        assert svc.allowed_tokens("alicia") == frozenset("a")

    def test_rename_subject_conflict(self, db):
        svc = DirectoryService(db)
        svc.add_subject("alice")
        svc.add_subject("bob")
        with pytest.raises(NameConflictError):
            svc.rename_subject("alice", "bob")

    def test_rename_unknown_subject(self, db):
        with pytest.raises(SubjectNotFoundError):
            DirectoryService(db).rename_subject("ghost", "spirit")

    def test_delete_subject(self, db):
        svc = DirectoryService(db)
        svc.add_subject("alice", "a")
        svc.delete_subject("alice")
        assert svc.list_subjects() == []
        with pytest.raises(SubjectNotFoundError):
            svc.allowed_tokens("alice")

    def test_grant_all_and_revoke_all(self, db):
        svc = DirectoryService(db)
        svc.add_token("x")
        svc.add_token("y")
        svc.add_subject("alice")
        assert svc.grant_all("alice") == 2
        assert svc.allowed_tokens("alice") == frozenset("xy")
        assert svc.revoke_all("alice") == 2
        assert svc.allowed_tokens("alice") == frozenset()


class TestTokens:

    def test_add_token_twice(self, db):
        svc = DirectoryService(db)
        svc.add_token("a")
        svc.add_token("a")
        assert svc.list_tokens() == ["a"]

    def test_rename_token(self, db):
        svc = DirectoryService(db)
        svc.add_subject("alice", "a")
        svc.rename_token("a", "b")
        assert svc.list_tokens() == ["b"]
        assert svc.allowed_tokens("alice") == frozenset("b")

    def test_rename_token_conflict_leaves_grants(self, db):
        svc = DirectoryService(db)
        svc.add_subject("alice", "a")
        svc.add_subject("bob", "b")
        with pytest.raises(TokenConflictError):
            svc.rename_token("a", "b")
        assert svc.allowed_tokens("alice") == frozenset("a")
        assert svc.allowed_tokens("bob") == frozenset("b")

    def test_delete_token(self, db):
        svc = DirectoryService(db)
        svc.add_subject("alice", "ab")
        svc.delete_token("a")
        assert svc.list_tokens() == ["b"]
        assert svc.allowed_tokens("alice") == frozenset("b")

    def test_delete_unknown_token(self, db):
        with pytest.raises(TokenNotFoundError):
            DirectoryService(db).delete_token("q")
