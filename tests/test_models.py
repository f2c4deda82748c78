"""Tests for Revision, RevisionMetadata and Equivalence models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from revsync.database.models import Equivalence, EquivalenceMatchResult
from revsync.repositories.models import Revision, RevisionMetadata


def _rev(rev_id: str, repo: str = "internal") -> Revision:
    return Revision(rev_id=rev_id, repository_name=repo)


class TestRevision:
    """Tests for Revision identity."""

    def test_structural_equality_and_hash(self):
        assert _rev("1") == _rev("1")
        assert len({_rev("1"), _rev("1")}) == 1

    def test_same_id_in_other_repository_is_different(self):
        assert _rev("1", "internal") != _rev("1", "public")
        assert len({_rev("1", "internal"), _rev("1", "public")}) == 2

    def test_persisted_aliases(self):
        rev = Revision.model_validate(
            {"revId": "1002", "repositoryName": "repo1"}
        )
        assert rev == _rev("1002", "repo1")
        assert rev.model_dump(by_alias=True) == {
            "revId": "1002",
            "repositoryName": "repo1",
        }

    def test_immutable(self):
        rev = _rev("1")
        with pytest.raises(ValidationError):
            rev.rev_id = "2"  # type: ignore[misc]


class TestConcatenate:
    """Tests for RevisionMetadata.concatenate()."""

    def _metadata(self, rev_id: str, date: datetime) -> RevisionMetadata:
        return RevisionMetadata(
            id=rev_id,
            author="author",
            date=date,
            description="description",
            parents=[_rev("parent")],
        )

    def test_two_records_joined(self):
        early = datetime(2024, 1, 1, tzinfo=timezone.utc)
        late = early + timedelta(hours=1)

        result = RevisionMetadata.concatenate(
            [self._metadata("1", late), self._metadata("2", early)]
        )

        assert result == RevisionMetadata(
            id="1, 2",
            author="author, author",
            date=late,
            description="description\n-------------\ndescription",
            parents=[_rev("parent"), _rev("parent")],
        )

    def test_single_record_unchanged(self):
        record = self._metadata("7", datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert RevisionMetadata.concatenate([record]) == record

    def test_empty_list_rejected(self):
        with pytest.raises(ValueError):
            RevisionMetadata.concatenate([])


class TestEquivalence:
    """Tests for the unordered Equivalence pair."""

    def test_order_does_not_matter(self):
        a, b = _rev("1002", "repo1"), _rev("2", "repo2")
        assert Equivalence(rev1=a, rev2=b) == Equivalence(rev1=b, rev2=a)
        assert len({Equivalence(rev1=a, rev2=b), Equivalence(rev1=b, rev2=a)}) == 1

    def test_same_repository_rejected(self):
        with pytest.raises(ValidationError):
            Equivalence(rev1=_rev("1"), rev2=_rev("2"))

    def test_other_than(self):
        a, b = _rev("1002", "repo1"), _rev("2", "repo2")
        eq = Equivalence(rev1=a, rev2=b)
        assert eq.other_than(a) == b
        assert eq.other_than(b) == a
        assert eq.has_revision(a)
        with pytest.raises(ValueError):
            eq.other_than(_rev("3", "repo2"))

    def test_match_result_defaults(self):
        result = EquivalenceMatchResult()
        assert result.equivalences == []
        assert result.revisions_since_equivalence == []
        assert result.has_equivalence is False
