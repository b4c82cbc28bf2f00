"""Tests for backup result objects."""

from gitback.backup.results import (
    CANCELLED_REASON,
    BackupOutcome,
    BackupReport,
    ExportAction,
    ItemKind,
    OutcomeStatus,
    PhaseResult,
)


class TestBackupOutcome:
    """Tests for BackupOutcome."""

    def test_succeeded(self):
        outcome = BackupOutcome.succeeded("alice/tools", ItemKind.REPOSITORY, ExportAction.CLONED)

        assert outcome.success
        assert outcome.status is OutcomeStatus.SUCCESS
        assert outcome.reason is None
        assert outcome.to_dict() == {
            "name": "alice/tools",
            "kind": "repository",
            "status": "success",
            "action": "cloned",
        }

    def test_failed(self):
        outcome = BackupOutcome.failed("abc", ItemKind.GIST, "cannot write gist.json")

        assert not outcome.success
        assert outcome.to_dict()["reason"] == "cannot write gist.json"

    def test_cancelled(self):
        outcome = BackupOutcome.cancelled("alice/tools", ItemKind.REPOSITORY)

        assert not outcome.success
        assert outcome.reason == CANCELLED_REASON
        assert outcome.action is ExportAction.CANCELLED


class TestPhaseResult:
    """Tests for PhaseResult aggregation."""

    def _phase(self) -> PhaseResult:
        return PhaseResult(
            kind=ItemKind.REPOSITORY,
            outcomes=[
                BackupOutcome.succeeded("a", ItemKind.REPOSITORY, ExportAction.CLONED),
                BackupOutcome.succeeded("b", ItemKind.REPOSITORY, ExportAction.UPDATED),
                BackupOutcome.failed("c", ItemKind.REPOSITORY, "boom"),
                BackupOutcome.cancelled("d", ItemKind.REPOSITORY),
            ],
            duration_seconds=1.234,
        )

    def test_counts(self):
        phase = self._phase()

        assert phase.total == 4
        assert phase.succeeded == 2
        assert phase.failed == 2
        assert phase.cancelled == 1
        assert [o.name for o in phase.failed_items] == ["c", "d"]

    def test_count_action(self):
        phase = self._phase()

        assert phase.count_action(ExportAction.CLONED) == 1
        assert phase.count_action(ExportAction.UPDATED) == 1
        assert phase.count_action(ExportAction.CANCELLED) == 0

    def test_to_dict(self):
        data = self._phase().to_dict()

        assert data["kind"] == "repository"
        assert data["duration_seconds"] == 1.23
        assert data["failures"] == [
            {"name": "c", "reason": "boom"},
            {"name": "d", "reason": CANCELLED_REASON},
        ]


class TestBackupReport:
    """Tests for BackupReport."""

    def test_defaults(self):
        report = BackupReport(username="alice")

        assert report.repositories.total == 0
        assert report.gists.skipped
        assert report.total_succeeded == 0
        assert report.outcomes == []

    def test_totals_across_phases(self):
        report = BackupReport(
            username="alice",
            repositories=PhaseResult(
                kind=ItemKind.REPOSITORY,
                outcomes=[BackupOutcome.succeeded("a", ItemKind.REPOSITORY, ExportAction.CLONED)],
            ),
            gists=PhaseResult(
                kind=ItemKind.GIST,
                outcomes=[BackupOutcome.failed("g", ItemKind.GIST, "no id")],
            ),
        )

        assert report.total_succeeded == 1
        assert report.total_failed == 1
        assert [o.name for o in report.outcomes] == ["a", "g"]

        summary = report.to_dict()["summary"]
        assert summary["username"] == "alice"
        assert summary["total_failed"] == 1
        assert summary["cancelled"] is False
