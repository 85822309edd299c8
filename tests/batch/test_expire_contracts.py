"""
Tests for the contract expiry batch: the task, the SAVEPOINT-per-item
runner, the registry, and the nightly script.
"""

import importlib.util
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from rental_batch.domain.types import BatchItemStatus
from rental_batch.runner import run_task
from rental_batch.tasks.base import (
    BatchItemInput,
    BatchTask,
    BatchTaskResult,
    TaskRegistry,
    default_task_registry,
)
from rental_batch.tasks.contract_tasks import ExpireContractsTask
from rental_kernel.db.engine import get_session, init_engine_from_url, reset_engine
from rental_kernel.db.immutability import unregister_delete_guards
from rental_modules._orm_registry import create_all_tables
from rental_modules.contracts.orm import PropertyContractModel, UnitContractModel

TODAY = date(2025, 3, 15)
SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "expire_contracts.py"


class FlakyExpireTask(ExpireContractsTask):
    """Expires like the real task, then blows up on one contract."""

    def __init__(self, poisoned_key: str):
        self.poisoned_key = poisoned_key

    def execute_item(
        self, item: BatchItemInput, parameters: dict[str, Any],
        session: Session, as_of: datetime,
    ) -> BatchTaskResult:
        result = super().execute_item(item, parameters, session, as_of)
        if item.item_key == self.poisoned_key:
            raise RuntimeError("disk on fire")
        return result


@pytest.fixture
def stale(make_unit_contract, make_property_contract):
    return {
        "rental": make_unit_contract(
            start_date=TODAY - timedelta(days=400), end_date=TODAY - timedelta(days=1)
        ),
        "supply": make_property_contract(
            start_date=TODAY - timedelta(days=400), end_date=TODAY - timedelta(days=20)
        ),
    }


@pytest.fixture
def current(make_unit_contract):
    return make_unit_contract(end_date=TODAY)


class TestExpireContractsTask:

    def test_protocol(self):
        assert isinstance(ExpireContractsTask(), BatchTask)

    def test_expires_stale_contracts_of_both_kinds(
        self, session, deterministic_clock, stale, current
    ):
        summary = run_task(ExpireContractsTask(), session, clock=deterministic_clock)

        assert summary.task_type == "contracts.expire"
        assert summary.total_items == 2
        assert summary.succeeded == 2
        assert not summary.has_failures
        session.expire_all()
        assert session.get(UnitContractModel, stale["rental"].id).contract_status == "expired"
        assert session.get(PropertyContractModel, stale["supply"].id).contract_status == "expired"
        assert session.get(UnitContractModel, current.id).contract_status == "active"

    def test_kind_filter(self, session, deterministic_clock, stale):
        summary = run_task(
            ExpireContractsTask(), session, clock=deterministic_clock,
            parameters={"kinds": ["supply"]},
        )
        assert summary.keys_with(BatchItemStatus.SUCCEEDED) == (stale["supply"].contract_number,)
        session.expire_all()
        assert session.get(UnitContractModel, stale["rental"].id).contract_status == "active"

    def test_nothing_to_do(self, session, deterministic_clock, current):
        summary = run_task(ExpireContractsTask(), session, clock=deterministic_clock)
        assert summary.total_items == 0

    def test_contract_changed_after_prepare_is_skipped(
        self, session, deterministic_clock, stale
    ):
        task = ExpireContractsTask()
        as_of = deterministic_clock.now()
        items = task.prepare_items({"kinds": ["rental"]}, session, as_of)
        stale["rental"].contract_status = "terminated"
        session.flush()

        result = task.execute_item(items[0], {}, session, as_of)
        assert result.status is BatchItemStatus.SKIPPED

    def test_replay_for_past_day(self, session, stale):
        summary = run_task(
            ExpireContractsTask(), session,
            as_of=datetime(2025, 3, 1, 12, 0),
        )
        assert summary.keys_with(BatchItemStatus.SUCCEEDED) == (stale["supply"].contract_number,)


class TestRunnerIsolation:

    def test_failing_item_rolled_back_others_committed(
        self, session, deterministic_clock, stale
    ):
        poisoned = stale["rental"].contract_number
        summary = run_task(FlakyExpireTask(poisoned), session, clock=deterministic_clock)

        assert summary.succeeded == 1
        assert summary.failed == 1
        failed = summary.item_results[0]
        assert failed.item_key == poisoned
        assert failed.error_code == "UNHANDLED_EXCEPTION"
        assert failed.error_message == "disk on fire"

        session.expire_all()
        assert session.get(UnitContractModel, stale["rental"].id).contract_status == "active"
        assert session.get(PropertyContractModel, stale["supply"].id).contract_status == "expired"

    def test_run_lines_share_batch_run_id(
        self, session, deterministic_clock, stale, captured_logs
    ):
        summary = run_task(ExpireContractsTask(), session, clock=deterministic_clock)

        records = [r for r in captured_logs() if r.get("batch_run_id")]
        messages = [r["message"] for r in records]
        assert messages[0] == "batch_run_started"
        assert messages.count("contract_expired") == 2
        assert messages[-1] == "batch_run_completed"
        assert {r["batch_run_id"] for r in records} == {str(summary.run_id)}


class TestTaskRegistry:

    def test_default_registry(self):
        registry = default_task_registry()
        assert "contracts.expire" in registry
        assert registry.list_tasks() == ("contracts.expire",)

    def test_duplicate_rejected(self):
        registry = TaskRegistry()
        registry.register(ExpireContractsTask())
        with pytest.raises(ValueError):
            registry.register(ExpireContractsTask())

    def test_unknown_task(self):
        with pytest.raises(KeyError):
            TaskRegistry().get("payments.remind")


class TestScript:

    @pytest.fixture
    def script(self):
        spec = importlib.util.spec_from_file_location("expire_contracts_script", SCRIPT)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    @pytest.fixture
    def db_url(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'rental.db'}"
        init_engine_from_url(url)
        create_all_tables()
        yield url
        unregister_delete_guards()
        reset_engine()

    def test_main_expires_and_lists(self, script, db_url, capsys):
        property_id = uuid4()
        session = get_session()
        session.add_all([
            UnitContractModel(
                contract_number="UC-2024-0001",
                tenant_id=uuid4(),
                unit_id=uuid4(),
                property_id=property_id,
                monthly_rent=Decimal("1200.00"),
                duration_months=12,
                start_date=date(2024, 3, 1),
                contract_status="active",
                payment_frequency="monthly",
            ),
            UnitContractModel(
                contract_number="UC-2024-0002",
                tenant_id=uuid4(),
                unit_id=uuid4(),
                property_id=property_id,
                monthly_rent=Decimal("900.00"),
                duration_months=12,
                start_date=date(2024, 3, 20),
                contract_status="active",
                payment_frequency="monthly",
            ),
        ])
        session.commit()
        session.close()

        exit_code = script.main(["--db-url", db_url, "--as-of", "2025-03-15", "--kind", "rental"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Expired: 1" in out
        assert "UC-2024-0002  ends 2025-03-19" in out

    def test_bad_date_rejected(self, script):
        with pytest.raises(SystemExit):
            script.main(["--as-of", "15/03/2025"])
