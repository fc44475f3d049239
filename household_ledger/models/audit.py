"""
Audit Models for Household Ledger

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of ledger mutations
2. Debugging information when a sync goes wrong
3. Visibility into failures that are deliberately not shown to the user

DESIGN DECISION: Remote failures never reach the UI, so the audit trail is
the only place they are recorded.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Local ledger mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    MONTH_BUDGETS_UPDATED = "month_budgets_updated"
    DEFAULT_BUDGETS_UPDATED = "default_budgets_updated"
    BASE_BUDGET_UPDATED = "base_budget_updated"
    CURRENT_USER_CHANGED = "current_user_changed"
    STATE_REPLACED = "state_replaced"

    # Local persistence
    LOCAL_VALUE_DISCARDED = "local_value_discarded"

    # Reconciliation
    REMOTE_UNAVAILABLE = "remote_unavailable"
    PULL_COMPLETED = "pull_completed"
    PULL_NOT_FOUND = "pull_not_found"
    PULL_FAILED = "pull_failed"
    REMOTE_FIELD_IGNORED = "remote_field_ignored"
    PUSH_COMPLETED = "push_completed"
    PUSH_FAILED = "push_failed"

    # File transfer
    EXPORT_COMPLETED = "export_completed"
    IMPORT_COMPLETED = "import_completed"
    IMPORT_FAILED = "import_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'household')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn_id, "expense", "12.50", "2024-05")
        event = AuditEventBuilder.sync_failed("push", household_id, "timeout")
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        kind: str,
        amount: str,
        month_key: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Recorded {kind} of {amount} in {month_key}",
            details={"kind": kind, "amount": amount, "month": month_key},
            is_user_action=True,
        )

    @staticmethod
    def transaction_removed(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REMOVED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def budgets_updated(
        scope: str,
        categories: list[str],
        month_key: Optional[str] = None,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.MONTH_BUDGETS_UPDATED
            if scope == "month"
            else AuditEventType.DEFAULT_BUDGETS_UPDATED
        )
        target = month_key if month_key else "default"
        return AuditEvent(
            event_type=event_type,
            entity_type="budget",
            entity_id=target,
            description=f"Budgets updated for {target}",
            details={"categories": categories},
            is_user_action=True,
        )

    @staticmethod
    def base_budget_updated(amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BASE_BUDGET_UPDATED,
            entity_type="budget",
            entity_id="base",
            description=f"Base budget set to {amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def current_user_changed(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CURRENT_USER_CHANGED,
            entity_type="user",
            entity_id=name,
            description=f"Default payer switched to {name}",
            is_user_action=True,
        )

    @staticmethod
    def state_replaced(source: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_REPLACED,
            entity_type="ledger",
            description=f"Local state replaced from {source}",
            details={"source": source, "fields": fields},
        )

    @staticmethod
    def local_value_discarded(key: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOCAL_VALUE_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="local_key",
            entity_id=key,
            description=f"Stored value for '{key}' unusable, default applied",
            error_message=reason,
        )

    @staticmethod
    def pull_completed(household_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PULL_COMPLETED,
            entity_type="household",
            entity_id=household_id,
            description=f"Applied remote snapshot ({len(fields)} fields)",
            details={"fields": fields},
        )

    @staticmethod
    def pull_not_found(household_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PULL_NOT_FOUND,
            entity_type="household",
            entity_id=household_id,
            description="No remote snapshot for household",
        )

    @staticmethod
    def remote_field_ignored(field: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_FIELD_IGNORED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot_field",
            entity_id=field,
            description=f"Ignored malformed field '{field}'",
            error_message=reason,
        )

    @staticmethod
    def sync_failed(
        direction: str,
        household_id: str,
        error_message: str,
    ) -> AuditEvent:
        event_type = {
            "pull": AuditEventType.PULL_FAILED,
            "push": AuditEventType.PUSH_FAILED,
        }.get(direction, AuditEventType.REMOTE_UNAVAILABLE)
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.WARNING,
            entity_type="household",
            entity_id=household_id,
            description=f"Remote {direction} failed",
            error_message=error_message,
        )

    @staticmethod
    def push_completed(
        household_id: str,
        sequence: int,
        transaction_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PUSH_COMPLETED,
            entity_type="household",
            entity_id=household_id,
            description=f"Pushed snapshot #{sequence}",
            details={"sequence": sequence, "transactions": transaction_count},
        )

    @staticmethod
    def import_completed(loaded: list[str], skipped: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            severity=AuditSeverity.WARNING if skipped else AuditSeverity.INFO,
            entity_type="file",
            description="Import completed",
            details={"loaded": loaded, "skipped": skipped},
            is_user_action=True,
        )

    @staticmethod
    def import_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="file",
            description="Import rejected",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def export_completed(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_COMPLETED,
            entity_type="file",
            description=f"Exported {transaction_count} transactions",
            details={"transactions": transaction_count},
            is_user_action=True,
        )
