"""Shared fixtures: isolated stores, no disk or network unless a test asks."""

import pytest

from household_ledger.audit import AuditLogger
from household_ledger.ledger import LedgerStore
from household_ledger.services.storage import InMemorySnapshotStore, InMemoryStateBackend


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def backend():
    return InMemoryStateBackend()


@pytest.fixture
def store(backend, audit_logger):
    return LedgerStore(backend, audit_logger=audit_logger, default_user="Alessandro")


@pytest.fixture
def remote():
    return InMemorySnapshotStore()
