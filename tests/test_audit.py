"""Tests for the structlog-backed AuditLogger."""

import pytest
from structlog.testing import capture_logs

from kakeibo.audit import AuditLogger, create_correlation_id


class TestAuditLogger:

    def test_logs_at_event_severity(self):
        with capture_logs() as logs:
            logger = AuditLogger()
            logger.log_mutation_failed(
                operation="update",
                error_message="収支の更新に失敗しました: 500",
                transaction_id=2,
                status_code=500,
            )

        assert len(logs) == 1
        assert logs[0]["event"] == "audit_event"
        assert logs[0]["log_level"] == "error"
        assert logs[0]["event_type"] == "mutation_failed"
        assert logs[0]["entity_id"] == 2

    def test_correlation_id_is_carried(self):
        correlation_id = create_correlation_id()
        with capture_logs() as logs:
            AuditLogger().log_transaction_deleted(5, correlation_id)

        assert logs[0]["correlation_id"] == str(correlation_id)
        assert logs[0]["is_user_action"] is True

    def test_refresh_failure_is_a_warning(self):
        with capture_logs() as logs:
            AuditLogger().log_refresh_failed("収支データの取得に失敗しました: 503")

        assert logs[0]["log_level"] == "warning"
        assert logs[0]["error_message"] == "収支データの取得に失敗しました: 503"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
