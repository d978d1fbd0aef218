from __future__ import annotations

import pytest

from inventory_import.catalog import INVENTORY_FORM
from inventory_import.models import ImportResults, ImportStep
from inventory_import.parsing.csv_parser import CsvStructureError
from inventory_import.services.existing_check import ExistingLookupError
from inventory_import.services.session import ImportSession, InvalidTransitionError

CSV = (
    "Pallet,Item Label,length_mm,width_mm,height_mm,weight_kg,Warehouse Site\n"
    "P-1,Chairs,1200,800,1000,250,Main Warehouse A\n"
    "P-2,Tables,1200,800,900,300,Main Warehouse A\n"
)


class RecordingExecutor:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.received: list[list[dict]] = []

    def execute(self, rows):
        self.received.append(rows)
        if self.error is not None:
            raise self.error
        return ImportResults(success=len(rows), failed=0)


@pytest.fixture()
def session() -> ImportSession:
    return ImportSession(INVENTORY_FORM)


def _to_preview(session: ImportSession, text: str = CSV) -> None:
    session.upload(text, source="upload.csv")
    session.confirm_mapping()


def test_happy_path(session, fake_lookup_cls):
    assert session.step is ImportStep.UPLOAD
    mapping = session.upload(CSV)
    assert session.step is ImportStep.MAPPING_REVIEW
    assert mapping.field_for("Pallet") == "pallet_no"
    session.confirm_mapping()
    assert session.step is ImportStep.PREVIEW
    # 既存値チェック前は import 不可
    assert not session.can_import
    assert session.check_existing(fake_lookup_cls())
    assert session.can_import

    executor = RecordingExecutor()
    results = session.start_import(executor)
    assert session.step is ImportStep.COMPLETE
    assert results == ImportResults(success=2, failed=0)
    assert executor.received[0][0]["pallet_no"] == "P-1"
    assert session.results is results


def test_structural_error_stays_in_upload(session):
    with pytest.raises(CsvStructureError):
        session.upload("Pallet,Item Label\n")
    assert session.step is ImportStep.UPLOAD
    assert session.preview is None


def test_confirm_requires_a_mapping(session):
    session.upload("foo,bar\n1,2\n")
    with pytest.raises(InvalidTransitionError):
        session.confirm_mapping()
    session.remap("foo", "pallet_no")
    session.confirm_mapping()
    assert session.step is ImportStep.PREVIEW


def test_illegal_transitions(session):
    with pytest.raises(InvalidTransitionError):
        session.confirm_mapping()
    with pytest.raises(InvalidTransitionError):
        session.edit_cell(0, "Pallet", "x")
    session.upload(CSV)
    with pytest.raises(InvalidTransitionError):
        session.upload(CSV)
    with pytest.raises(InvalidTransitionError):
        session.start_import(RecordingExecutor())


def test_back_returns_to_upload(session):
    _to_preview(session)
    session.back()
    assert session.step is ImportStep.UPLOAD
    assert session.preview is None
    with pytest.raises(InvalidTransitionError):
        session.back()


def test_invalid_batch_cannot_import(session, fake_lookup_cls):
    _to_preview(session, CSV.replace("250", "-250"))
    session.check_existing(fake_lookup_cls())
    assert not session.can_import
    with pytest.raises(InvalidTransitionError):
        session.start_import(RecordingExecutor())
    session.edit_cell(0, "weight_kg", "250")
    assert session.can_import


def test_existing_values_block_import(session, fake_lookup_cls):
    _to_preview(session)
    assert session.check_existing(fake_lookup_cls({"pallet_no": {"P-2"}}))
    assert not session.can_import
    assert session.validate().errors_for_row(1) == ('Pallet already exists in database: "P-2"',)


def test_edit_introducing_unchecked_value_needs_new_check(session, fake_lookup_cls):
    _to_preview(session)
    session.check_existing(fake_lookup_cls())
    session.edit_cell(0, "Pallet", "P-7")
    assert session.validate().is_valid
    assert not session.can_import
    session.check_existing(fake_lookup_cls())
    assert session.can_import


def test_is_checking_blocks_import(session):
    _to_preview(session)
    request = session.begin_existing_check()
    assert session.is_checking
    assert not session.can_import
    with pytest.raises(InvalidTransitionError):
        session.start_import(RecordingExecutor())
    assert session.complete_existing_check(request, {})
    assert not session.is_checking
    assert session.can_import


def test_stale_result_after_reset_is_discarded(session):
    _to_preview(session)
    stale = session.begin_existing_check()
    session.reset()
    _to_preview(session)
    assert not session.complete_existing_check(stale, {"pallet_no": {"P-1"}})
    assert session.preview.existing.values_for("pallet_no") == frozenset()
    assert not session.is_checking


def test_superseded_request_is_discarded(session):
    _to_preview(session)
    old = session.begin_existing_check()
    new = session.begin_existing_check()
    assert not session.complete_existing_check(old, {"pallet_no": {"P-1"}})
    assert session.complete_existing_check(new, {})
    assert session.can_import


def test_failed_check_keeps_import_blocked(session, fake_lookup_cls):
    _to_preview(session)
    assert not session.check_existing(fake_lookup_cls(error=ExistingLookupError("timeout")))
    assert session.check_error == "timeout"
    assert not session.is_checking
    assert not session.can_import


def test_failed_refresh_after_successful_check_blocks_import(session, fake_lookup_cls):
    _to_preview(session)
    assert session.check_existing(fake_lookup_cls())
    assert session.can_import
    assert not session.check_existing(fake_lookup_cls(error=ExistingLookupError("timeout")))
    assert session.check_error == "timeout"
    assert not session.can_import
    with pytest.raises(InvalidTransitionError):
        session.start_import(RecordingExecutor())
    assert session.check_existing(fake_lookup_cls())
    assert session.check_error is None
    assert session.can_import


def test_executor_failure_still_completes(session, fake_lookup_cls):
    _to_preview(session)
    session.check_existing(fake_lookup_cls())
    results = session.start_import(RecordingExecutor(error=RuntimeError("connection lost")))
    assert session.step is ImportStep.COMPLETE
    assert results.success == 0
    assert results.failed == 2
    assert results.errors == ["connection lost"]


def test_complete_is_terminal(session, fake_lookup_cls):
    _to_preview(session)
    session.check_existing(fake_lookup_cls())
    session.start_import(RecordingExecutor())
    for action in (session.reset, session.back):
        with pytest.raises(InvalidTransitionError):
            action()
    with pytest.raises(InvalidTransitionError):
        session.upload(CSV)


def test_summary(session):
    assert session.summary()["step"] == "upload"
    _to_preview(session)
    summary = session.summary()
    assert summary["rows"] == 2
    assert summary["is_valid"] is True
    assert summary["can_import"] is False
