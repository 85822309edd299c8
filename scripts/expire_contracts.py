#!/usr/bin/env python3
"""
Nightly contract expiry: mark active contracts whose end date has passed as
expired, then list the contracts that expire soon.

Usage:
    python3 scripts/expire_contracts.py [--db-url URL] [--as-of YYYY-MM-DD]
        [--warn-days N] [--kind rental|supply]

Examples:
    # Run against the default database as of today
    python3 scripts/expire_contracts.py

    # Replay the job for a past day, rental contracts only
    python3 scripts/expire_contracts.py --as-of 2025-06-30 --kind rental

Exit status is 1 when any contract failed to expire.
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import date
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DB_URL = os.environ.get("RENTAL_DATABASE_URL", "sqlite:///rental.db")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Expire stale contracts and list contracts expiring soon.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--db-url",
        default=DB_URL,
        help=f"Database URL (default: RENTAL_DATABASE_URL or {DB_URL!r}).",
    )
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Evaluation day YYYY-MM-DD (default: today).",
    )
    parser.add_argument(
        "--warn-days",
        type=int,
        default=None,
        help="List contracts ending within N days (default: expiry_warning_days setting).",
    )
    parser.add_argument(
        "--kind",
        choices=("rental", "supply"),
        action="append",
        default=None,
        help="Contract kind to process; repeat for both (default: both).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration set YAML (default: rental_config/sets/default.yaml).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from rental_batch.runner import run_task
    from rental_batch.tasks.contract_tasks import ExpireContractsTask
    from rental_config import get_active_settings
    from rental_kernel.db.engine import init_engine_from_url, session_scope
    from rental_kernel.domain.clock import DeterministicClock, SystemClock
    from rental_kernel.services.settings_service import SettingsService
    from rental_modules._orm_registry import create_all_tables
    from rental_modules.contracts.config import ContractConfig
    from rental_modules.contracts.models import ContractKind
    from rental_modules.contracts.service import ContractService

    try:
        settings = get_active_settings(args.config)
    except Exception as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    try:
        init_engine_from_url(args.db_url)
        create_all_tables()
    except Exception as e:
        print(f"ERROR: Database init failed: {e}", file=sys.stderr)
        return 1

    clock = DeterministicClock.on(args.as_of) if args.as_of else SystemClock()
    kinds = args.kind or [k.value for k in ContractKind]

    with session_scope() as session:
        store = SettingsService(session, clock, ttl_seconds=settings.setting_cache_ttl_seconds)
        config = ContractConfig.from_settings(settings, store)
        warn_days = args.warn_days if args.warn_days is not None else config.expiry_warning_days

        summary = run_task(
            ExpireContractsTask(),
            session,
            as_of=clock.now(),
            parameters={"kinds": kinds},
        )
        print(
            f"Expired: {summary.succeeded}  Skipped: {summary.skipped}  "
            f"Failed: {summary.failed}  (as of {clock.today().isoformat()})"
        )
        for outcome in summary.item_results:
            if outcome.error_message:
                print(f"  FAILED {outcome.item_key}: {outcome.error_message}")

        service = ContractService(session, clock, config)
        for kind_value in kinds:
            expiring = service.expiring_soon(ContractKind(kind_value), days=warn_days)
            print(f"\n{kind_value.capitalize()} contracts ending within {warn_days} day(s): {len(expiring)}")
            for contract in expiring:
                print(
                    f"  {contract.contract_number}  ends {contract.end_date.isoformat()}  "
                    f"({contract.lifecycle.remaining_days} day(s) left)"
                )

    return 1 if summary.has_failures else 0


if __name__ == "__main__":
    sys.exit(main())
