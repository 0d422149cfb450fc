"""
Unit Tests for the Issue Lifecycle
Tests for: issue ids, status transitions, resolution stamping
"""
import pytest
from datetime import date, datetime, timedelta

from app.core.exceptions import InvalidTransitionError, StateConflictError
from app.domain.issue_lifecycle import (
    ISSUE_ID_PATTERN,
    IssueSnapshot,
    IssueStatus,
    can_transition,
    change_status,
    ensure_owner_editable,
    format_issue_id,
    resolution_time_hours,
    resolve,
)

NOW = datetime(2024, 5, 10, 12, 0, 0)


class TestIssueId:
    """Test issue id formatting"""

    def test_format(self):
        assert format_issue_id(date(2024, 5, 10), 7) == 'ISS240510007'

    def test_matches_pattern(self):
        assert ISSUE_ID_PATTERN.match(format_issue_id(date(2024, 1, 1), 1))

    def test_sequence_past_three_digits_still_matches(self):
        issue_id = format_issue_id(date(2024, 1, 1), 1234)

        assert issue_id == 'ISS2401011234'
        assert ISSUE_ID_PATTERN.match(issue_id)

    def test_distinct_sequences_give_distinct_ids(self):
        day = date(2024, 5, 10)
        ids = {format_issue_id(day, n) for n in range(1, 51)}

        assert len(ids) == 50

    def test_sequence_starts_at_one(self):
        with pytest.raises(ValueError):
            format_issue_id(date(2024, 1, 1), 0)


class TestCanTransition:
    """Test the issue status graph"""

    def test_forward_along_main_line(self):
        assert can_transition(IssueStatus.NEW, IssueStatus.ACKNOWLEDGED)
        assert can_transition(IssueStatus.NEW, IssueStatus.RESOLVED)
        assert can_transition(IssueStatus.RESOLVED, IssueStatus.CLOSED)

    def test_backwards_is_rejected(self):
        assert not can_transition(IssueStatus.IN_PROGRESS, IssueStatus.NEW)
        assert not can_transition(IssueStatus.RESOLVED, IssueStatus.ACKNOWLEDGED)

    def test_reject_from_open_states_only(self):
        assert can_transition(IssueStatus.IN_PROGRESS, IssueStatus.REJECTED)
        assert not can_transition(IssueStatus.RESOLVED, IssueStatus.REJECTED)

    @pytest.mark.parametrize('final', [IssueStatus.CLOSED, IssueStatus.REJECTED])
    def test_final_states_go_nowhere(self, final):
        for target in IssueStatus:
            assert can_transition(final, target) is (target == final)


class TestResolve:
    """resolvedAt is set once and never changes"""

    def test_first_resolve_stamps_time_and_logs(self):
        snapshot, entry = resolve(IssueSnapshot(status=IssueStatus.NEW), 'admin-1', 're-collected', NOW)

        assert snapshot.status == IssueStatus.RESOLVED
        assert snapshot.resolved_at == NOW
        assert snapshot.resolved_by_id == 'admin-1'
        assert entry.status_from == IssueStatus.NEW
        assert entry.status_to == IssueStatus.RESOLVED

    def test_repeat_resolve_keeps_timestamp(self):
        first, _ = resolve(IssueSnapshot(status=IssueStatus.IN_PROGRESS), 'admin-1', 're-collected', NOW)

        second, entry = resolve(first, 'admin-1', 're-collected', NOW + timedelta(hours=3))

        assert second.resolved_at == NOW
        assert entry is None

    def test_changed_solution_is_logged_without_status_change(self):
        first, _ = resolve(IssueSnapshot(status=IssueStatus.NEW), 'admin-1', 'first', NOW)

        second, entry = resolve(first, 'admin-2', 'second', NOW + timedelta(days=1))

        assert second.resolved_at == NOW
        assert second.solution == 'second'
        assert entry.status_to is None

    def test_closed_issue_cannot_be_resolved(self):
        with pytest.raises(InvalidTransitionError):
            resolve(IssueSnapshot(status=IssueStatus.CLOSED, resolved_at=NOW), 'a', 'x', NOW)


class TestChangeStatus:
    def test_change_records_entry(self):
        snapshot, entry = change_status(IssueSnapshot(status=IssueStatus.NEW), IssueStatus.ACKNOWLEDGED, 'a', NOW)

        assert snapshot.status == IssueStatus.ACKNOWLEDGED
        assert entry.message == 'Status changed from new to acknowledged'

    def test_same_status_has_no_entry(self):
        snapshot = IssueSnapshot(status=IssueStatus.IN_PROGRESS)

        assert change_status(snapshot, IssueStatus.IN_PROGRESS, 'a', NOW) == (snapshot, None)

    def test_change_to_resolved_goes_through_resolve(self):
        snapshot, _ = change_status(IssueSnapshot(status=IssueStatus.ACKNOWLEDGED), IssueStatus.RESOLVED, 'a', NOW)

        assert snapshot.resolved_at == NOW

    def test_resolving_change_keeps_message_out_of_solution(self):
        snapshot, entry = change_status(IssueSnapshot(status=IssueStatus.IN_PROGRESS), IssueStatus.RESOLVED, 'a', NOW,
                                        message='crew notes', is_internal=True)

        assert snapshot.solution == 'Resolved'
        assert entry.message == 'crew notes'
        assert entry.is_internal is True
        assert entry.status_to == IssueStatus.RESOLVED

    def test_invalid_change_raises(self):
        with pytest.raises(InvalidTransitionError):
            change_status(IssueSnapshot(status=IssueStatus.REJECTED), IssueStatus.NEW, 'a', NOW)


class TestOwnerEditing:
    def test_new_is_editable(self):
        ensure_owner_editable(IssueStatus.NEW)

    @pytest.mark.parametrize('status', [s for s in IssueStatus if s != IssueStatus.NEW])
    def test_other_states_conflict(self, status):
        with pytest.raises(StateConflictError):
            ensure_owner_editable(status)


class TestResolutionTime:
    def test_hours_are_rounded(self):
        assert resolution_time_hours(NOW, NOW + timedelta(hours=5, minutes=40)) == 6

    def test_unresolved_is_none(self):
        assert resolution_time_hours(NOW, None) is None
