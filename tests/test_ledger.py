"""Tests for CustodyLedger - the public operation surface.

Covers the custody invariants, error precedence, all-or-nothing behaviour,
the reference scenarios, notifications and serialized concurrent access.
"""

import logging
import threading

import pytest

from custodia.ledger import (
    CUSTODY_TRANSFERRED,
    ITEM_REGISTERED,
    MAX_LOG_ENTRIES,
    CustodyLedger,
    InvalidCustodian,
    ItemNotFound,
    LedgerState,
    LogFull,
    NotOwner,
    NotRegistered,
    Unauthorized,
    ValidationFailed,
)
from tests.conftest import ADMIN, ALICE, BOB, CAROL, MALLORY


def _snapshot(ledger, item_id):
    return (
        ledger.get_item_owner(item_id),
        ledger.get_provenance_log(item_id),
        ledger.get_last_item_id(),
    )


def _assert_owner_matches_log(ledger):
    for item_id in range(1, ledger.get_last_item_id() + 1):
        log = ledger.get_provenance_log(item_id)
        assert log, f"item {item_id} has no log"
        assert ledger.get_item_owner(item_id) == log[-1].custodian


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    def test_requires_admin(self):
        with pytest.raises(ValueError):
            CustodyLedger()

    def test_admin_captured(self, ledger):
        assert ledger.admin == ADMIN

    def test_restored_state_keeps_its_admin(self, caplog):
        state = LedgerState(admin="original-admin")
        with caplog.at_level(logging.WARNING, logger="custodia.ledger.manager"):
            ledger = CustodyLedger(admin="someone-else", state=state)
        assert ledger.admin == "original-admin"
        assert "Ignoring configured administrator" in caplog.text

    def test_empty_ledger_queries(self, ledger):
        assert ledger.get_last_item_id() == 0
        assert ledger.item_exists(1) is False
        assert ledger.get_item_owner(1) is None
        assert ledger.get_provenance_log(1) == []


# ============================================================================
# Reference scenarios
# ============================================================================


class TestScenarios:
    def test_register_transfer_and_reject_second_transfer(self, ledger):
        ledger.register_participant(ADMIN, ALICE)
        item_id = ledger.register_item(ALICE, "Factory A", "batch 1")
        assert item_id == 1

        log = ledger.get_provenance_log(1)
        assert len(log) == 1
        assert log[0].custodian == ALICE
        assert log[0].location == "Factory A"
        assert log[0].notes == "batch 1"

        ledger.register_participant(ADMIN, BOB)
        assert ledger.transfer_custody(ALICE, 1, BOB, "DC-B", "QC passed") is True
        assert ledger.get_item_owner(1) == BOB
        assert len(ledger.get_provenance_log(1)) == 2

        with pytest.raises(NotOwner):
            ledger.transfer_custody(ALICE, 1, BOB, "DC-B", "again")

    def test_unauthorized_caller_cannot_register_item(self, ledger):
        with pytest.raises(NotRegistered):
            ledger.register_item(MALLORY, "Factory A", "batch 1")
        assert ledger.get_last_item_id() == 0


# ============================================================================
# Invariants
# ============================================================================


class TestInvariants:
    def test_ids_are_sequential(self, ledger_with_participants):
        ledger = ledger_with_participants
        ids = [ledger.register_item(ALICE, f"Site {i}", "lot") for i in range(10)]
        assert ids == list(range(1, 11))
        assert ledger.get_last_item_id() == 10

    def test_failed_registration_consumes_no_id(self, ledger_with_participants):
        ledger = ledger_with_participants
        ledger.register_item(ALICE, "Factory A", "batch 1")
        with pytest.raises(ValidationFailed):
            ledger.register_item(ALICE, "", "batch 2")
        with pytest.raises(ValidationFailed):
            ledger.register_item(ALICE, "Factory A", "n" * 129)
        assert ledger.register_item(ALICE, "Factory A", "batch 3") == 2
        assert ledger.get_provenance_log(3) == []

    def test_owner_always_matches_last_custodian(self, ledger_with_participants):
        ledger = ledger_with_participants
        a = ledger.register_item(ALICE, "Factory A", "batch 1")
        b = ledger.register_item(BOB, "Factory B", "batch 2")
        ledger.transfer_custody(ALICE, a, BOB, "DC", "hop 1")
        ledger.transfer_custody(BOB, a, CAROL, "Store", "hop 2")
        ledger.transfer_custody(BOB, b, ALICE, "DC", "hop 1")
        _assert_owner_matches_log(ledger)

    def test_first_custodian_is_registrant(self, ledger_with_participants):
        ledger = ledger_with_participants
        item_id = ledger.register_item(BOB, "Factory B", "batch 2")
        ledger.transfer_custody(BOB, item_id, CAROL, "DC", "hop")
        ledger.transfer_custody(CAROL, item_id, ALICE, "Store", "hop")
        assert ledger.get_provenance_log(item_id)[0].custodian == BOB

    def test_timestamps_are_chronological(self, minted):
        ledger, item_id = minted
        ledger.transfer_custody(ALICE, item_id, BOB, "DC", "hop")
        ledger.register_participant(ADMIN, "dave")
        ledger.transfer_custody(BOB, item_id, "dave", "Store", "hop")
        stamps = [e.timestamp for e in ledger.get_provenance_log(item_id)]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)


# ============================================================================
# Rejected transfers leave no trace
# ============================================================================


class TestRejectedTransfers:
    def test_non_owner(self, minted):
        ledger, item_id = minted
        before = _snapshot(ledger, item_id)
        with pytest.raises(NotOwner):
            ledger.transfer_custody(BOB, item_id, CAROL, "DC", "steal")
        assert _snapshot(ledger, item_id) == before

    def test_unregistered_target(self, minted):
        ledger, item_id = minted
        before = _snapshot(ledger, item_id)
        with pytest.raises(NotRegistered):
            ledger.transfer_custody(ALICE, item_id, MALLORY, "DC", "hop")
        assert _snapshot(ledger, item_id) == before

    def test_self_transfer(self, minted):
        ledger, item_id = minted
        before = _snapshot(ledger, item_id)
        with pytest.raises(InvalidCustodian):
            ledger.transfer_custody(ALICE, item_id, ALICE, "DC", "hop")
        assert _snapshot(ledger, item_id) == before

    def test_invalid_metadata(self, minted):
        ledger, item_id = minted
        before = _snapshot(ledger, item_id)
        with pytest.raises(ValidationFailed):
            ledger.transfer_custody(ALICE, item_id, BOB, "L" * 65, "hop")
        with pytest.raises(ValidationFailed):
            ledger.transfer_custody(ALICE, item_id, BOB, "DC", "")
        assert _snapshot(ledger, item_id) == before

    def test_missing_item(self, ledger_with_participants):
        with pytest.raises(ItemNotFound):
            ledger_with_participants.transfer_custody(ALICE, 1, BOB, "DC", "hop")

    def test_rejection_does_not_advance_height(self, minted):
        ledger, item_id = minted
        height = ledger.summary()["height"]
        with pytest.raises(NotOwner):
            ledger.transfer_custody(BOB, item_id, CAROL, "DC", "hop")
        assert ledger.summary()["height"] == height


class TestItemIdType:
    @pytest.mark.parametrize("bad_id", [True, False, "1", 1.0, None])
    def test_queries_reject_non_int_ids(self, minted, bad_id):
        ledger, _ = minted
        with pytest.raises(TypeError):
            ledger.get_item_owner(bad_id)
        with pytest.raises(TypeError):
            ledger.get_provenance_log(bad_id)
        with pytest.raises(TypeError):
            ledger.item_exists(bad_id)

    def test_transfer_rejects_bool_id(self, minted):
        ledger, item_id = minted
        before = _snapshot(ledger, item_id)
        with pytest.raises(TypeError):
            ledger.transfer_custody(ALICE, True, BOB, "DC", "hop")
        assert _snapshot(ledger, item_id) == before


# ============================================================================
# Log capacity
# ============================================================================


class TestLogCapacity:
    def _fill(self, ledger, item_id):
        holders = [BOB, ALICE]
        for i in range(MAX_LOG_ENTRIES - 1):
            ledger.transfer_custody(ledger.get_item_owner(item_id), item_id, holders[i % 2], "loc", "hop")

    def test_fifty_first_entry_rejected(self, minted):
        ledger, item_id = minted
        self._fill(ledger, item_id)
        assert len(ledger.get_provenance_log(item_id)) == MAX_LOG_ENTRIES

        owner = ledger.get_item_owner(item_id)
        with pytest.raises(LogFull):
            ledger.transfer_custody(owner, item_id, CAROL, "loc", "overflow")
        assert ledger.get_item_owner(item_id) == owner
        assert len(ledger.get_provenance_log(item_id)) == MAX_LOG_ENTRIES

    def test_full_item_is_permanently_frozen(self, minted):
        ledger, item_id = minted
        self._fill(ledger, item_id)
        owner = ledger.get_item_owner(item_id)
        for target in (ALICE, BOB, CAROL):
            if target == owner:
                continue
            with pytest.raises(LogFull):
                ledger.transfer_custody(owner, item_id, target, "loc", "again")

    def test_other_items_unaffected(self, minted):
        ledger, item_id = minted
        self._fill(ledger, item_id)
        other = ledger.register_item(CAROL, "Factory C", "batch 9")
        assert ledger.transfer_custody(CAROL, other, ALICE, "DC", "hop") is True

    def test_earlier_checks_win_over_log_full(self, minted):
        ledger, item_id = minted
        self._fill(ledger, item_id)
        owner = ledger.get_item_owner(item_id)
        with pytest.raises(NotRegistered):
            ledger.transfer_custody(owner, item_id, MALLORY, "loc", "x")
        with pytest.raises(ValidationFailed):
            ledger.transfer_custody(owner, item_id, CAROL, "", "x")


# ============================================================================
# Participant administration
# ============================================================================


class TestParticipantAdministration:
    def test_only_admin_registers(self, ledger):
        with pytest.raises(Unauthorized):
            ledger.register_participant(ALICE, ALICE)
        assert ledger.is_participant_registered(ALICE) is False

    def test_deregistration_keeps_items_and_history(self, minted):
        ledger, item_id = minted
        ledger.transfer_custody(ALICE, item_id, BOB, "DC", "hop")
        log_before = ledger.get_provenance_log(item_id)

        ledger.deregister_participant(ADMIN, BOB)
        assert ledger.is_participant_registered(BOB) is False
        assert ledger.get_item_owner(item_id) == BOB
        assert ledger.get_provenance_log(item_id) == log_before

    def test_deregistered_owner_can_still_hand_over(self, minted):
        ledger, item_id = minted
        ledger.deregister_participant(ADMIN, ALICE)
        assert ledger.transfer_custody(ALICE, item_id, BOB, "DC", "hop") is True

    def test_deregistered_participant_cannot_receive_or_register(self, minted):
        ledger, item_id = minted
        ledger.deregister_participant(ADMIN, BOB)
        with pytest.raises(NotRegistered):
            ledger.transfer_custody(ALICE, item_id, BOB, "DC", "hop")
        with pytest.raises(NotRegistered):
            ledger.register_item(BOB, "Factory B", "batch")


# ============================================================================
# Notifications
# ============================================================================


class TestNotifications:
    def test_events_emitted_on_success(self, ledger_with_participants):
        ledger = ledger_with_participants
        seen = []
        ledger.events.subscribe(seen.append)

        item_id = ledger.register_item(ALICE, "Factory A", "batch 1")
        ledger.transfer_custody(ALICE, item_id, BOB, "DC", "hop")

        assert [e.name for e in seen] == [ITEM_REGISTERED, CUSTODY_TRANSFERRED]
        assert seen[0].participants == {"owner": ALICE}
        assert seen[1].participants == {"from": ALICE, "to": BOB}
        assert seen[1].item_id == item_id
        assert seen[0].sequence < seen[1].sequence
        assert seen[1].timestamp == ledger.get_provenance_log(item_id)[-1].timestamp

    def test_no_event_on_failure(self, ledger_with_participants):
        ledger = ledger_with_participants
        seen = []
        ledger.events.subscribe(seen.append)
        with pytest.raises(NotRegistered):
            ledger.register_item(MALLORY, "Factory", "batch")
        assert seen == []

    def test_failing_observer_does_not_affect_commit(self, ledger_with_participants):
        ledger = ledger_with_participants

        def broken(event):
            raise RuntimeError("indexer down")

        ledger.events.subscribe(broken)
        item_id = ledger.register_item(ALICE, "Factory A", "batch 1")
        assert ledger.get_item_owner(item_id) == ALICE
        assert len(ledger.events.recent()) == 1

    def test_observer_runs_after_lock_released(self, ledger_with_participants):
        ledger = ledger_with_participants
        reads = []
        finished = []

        def reader(event):
            worker = threading.Thread(target=lambda: reads.append(ledger.get_last_item_id()))
            worker.start()
            worker.join(timeout=2)
            finished.append(not worker.is_alive())

        ledger.events.subscribe(reader)
        ledger.register_item(ALICE, "Factory A", "batch 1")
        assert finished == [True]
        assert reads == [1]

    def test_history_follows_commit_order(self, ledger_with_participants):
        ledger = ledger_with_participants
        item_id = ledger.register_item(ALICE, "Factory A", "batch 1")
        ledger.transfer_custody(ALICE, item_id, BOB, "DC", "hop")
        ledger.transfer_custody(BOB, item_id, CAROL, "Store", "hop")

        history = ledger.events.recent()
        assert [e.name for e in history] == [ITEM_REGISTERED, CUSTODY_TRANSFERRED, CUSTODY_TRANSFERRED]
        assert [e.timestamp for e in history] == [e.timestamp for e in ledger.get_provenance_log(item_id)]


# ============================================================================
# Concurrency
# ============================================================================


class TestConcurrency:
    def test_parallel_registrations_get_unique_ids(self, ledger_with_participants):
        ledger = ledger_with_participants
        results: list[int] = []
        results_lock = threading.Lock()

        def worker(caller):
            for i in range(25):
                item_id = ledger.register_item(caller, "Line", f"unit {i}")
                with results_lock:
                    results.append(item_id)

        threads = [threading.Thread(target=worker, args=(c,)) for c in (ALICE, BOB, CAROL)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == list(range(1, 76))
        assert ledger.get_last_item_id() == 75
        _assert_owner_matches_log(ledger)

    def test_racing_transfers_only_one_wins(self, minted):
        ledger, item_id = minted
        outcomes: list[str] = []
        barrier = threading.Barrier(2)

        def attempt(target):
            barrier.wait()
            try:
                ledger.transfer_custody(ALICE, item_id, target, "DC", "race")
                outcomes.append("ok")
            except NotOwner:
                outcomes.append("NotOwner")

        threads = [threading.Thread(target=attempt, args=(t,)) for t in (BOB, CAROL)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["NotOwner", "ok"]
        assert len(ledger.get_provenance_log(item_id)) == 2
        _assert_owner_matches_log(ledger)


class TestSummary:
    def test_summary_counts(self, minted):
        ledger, item_id = minted
        ledger.transfer_custody(ALICE, item_id, BOB, "DC", "hop")
        summary = ledger.summary()
        assert summary["admin"] == ADMIN
        assert summary["participants"] == 3
        assert summary["items"] == 1
        assert summary["log_entries"] == 2
        assert summary["persistent"] is False
        # 3 participant registrations + 1 mint + 1 transfer
        assert summary["height"] == 5
