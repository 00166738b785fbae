"""Shared test fixtures for Custodia test suite."""

import os

import pytest

# Ensure test environment variables are set before any config import
os.environ.setdefault("CUSTODIA_ADMIN_ID", "admin")
os.environ.setdefault("CUSTODIA_API_KEY", "test-api-key")
os.environ.setdefault("CUSTODIA_DEMO_MODE", "true")

from custodia.ledger import CustodyLedger

ADMIN = "admin"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"
MALLORY = "mallory"


@pytest.fixture
def ledger():
    """An empty in-memory ledger administered by ADMIN."""
    return CustodyLedger(admin=ADMIN)


@pytest.fixture
def ledger_with_participants(ledger):
    """Ledger with alice, bob and carol authorized."""
    for pid in (ALICE, BOB, CAROL):
        ledger.register_participant(ADMIN, pid)
    return ledger


@pytest.fixture
def minted(ledger_with_participants):
    """(ledger, item_id) where alice registered one item at Factory A."""
    item_id = ledger_with_participants.register_item(ALICE, "Factory A", "batch 1")
    return ledger_with_participants, item_id
