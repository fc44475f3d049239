"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability
2. Debugging capability for sync problems
3. A record of failures that are intentionally hidden from the user

Events are only logged locally. Nothing here is ever shown to the user.
"""

from typing import Optional

import structlog

from household_ledger.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Events are rendered as structured JSON log lines. The last events are
    kept in memory so callers (and tests) can inspect what happened.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("household_ledger")
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._history)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event locally."""
        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[0]

        log_dict = event.to_log_dict()
        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_transaction_added(
        self,
        transaction_id: str,
        kind: str,
        amount: str,
        month_key: str,
    ) -> None:
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            kind=kind,
            amount=amount,
            month_key=month_key,
        ))

    def log_transaction_removed(self, transaction_id: str) -> None:
        self.log(AuditEventBuilder.transaction_removed(transaction_id))

    def log_budgets_updated(
        self,
        scope: str,
        categories: list[str],
        month_key: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.budgets_updated(
            scope=scope,
            categories=categories,
            month_key=month_key,
        ))

    def log_base_budget_updated(self, amount: str) -> None:
        self.log(AuditEventBuilder.base_budget_updated(amount))

    def log_current_user_changed(self, name: str) -> None:
        self.log(AuditEventBuilder.current_user_changed(name))

    def log_state_replaced(self, source: str, fields: list[str]) -> None:
        self.log(AuditEventBuilder.state_replaced(source, fields))

    def log_local_value_discarded(self, key: str, reason: str) -> None:
        self.log(AuditEventBuilder.local_value_discarded(key, reason))

    def log_pull_completed(self, household_id: str, fields: list[str]) -> None:
        self.log(AuditEventBuilder.pull_completed(household_id, fields))

    def log_pull_not_found(self, household_id: str) -> None:
        self.log(AuditEventBuilder.pull_not_found(household_id))

    def log_remote_field_ignored(self, field: str, reason: str) -> None:
        self.log(AuditEventBuilder.remote_field_ignored(field, reason))

    def log_sync_failed(
        self,
        direction: str,
        household_id: str,
        error_message: str,
    ) -> None:
        """Log a swallowed remote failure (pull or push)."""
        self.log(AuditEventBuilder.sync_failed(
            direction=direction,
            household_id=household_id,
            error_message=error_message,
        ))

    def log_push_completed(
        self,
        household_id: str,
        sequence: int,
        transaction_count: int,
    ) -> None:
        self.log(AuditEventBuilder.push_completed(
            household_id=household_id,
            sequence=sequence,
            transaction_count=transaction_count,
        ))

    def log_import_completed(self, loaded: list[str], skipped: list[str]) -> None:
        self.log(AuditEventBuilder.import_completed(loaded, skipped))

    def log_import_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.import_failed(error_message))

    def log_export_completed(self, transaction_count: int) -> None:
        self.log(AuditEventBuilder.export_completed(transaction_count))
