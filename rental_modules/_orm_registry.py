"""
Module ORM Registry (``rental_modules._orm_registry``).

Responsibility
--------------
Import every ORM model so that ``Base.metadata`` holds all table
definitions before ``create_all()`` runs.  Payment tables reference the
contract tables, so the contract models are imported first.

Usage
-----
Scripts, entrypoints and ``tests/conftest.py`` call ``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Register kernel and module ORM models.  Idempotent."""
    # fmt: off
    import rental_kernel.models  # noqa: F401
    import rental_modules.contracts.orm  # noqa: F401
    import rental_modules.collections.orm  # noqa: F401
    import rental_modules.supply.orm  # noqa: F401
    # fmt: on


def create_all_tables(install_guards: bool = True) -> None:
    """Create every table, then optionally register the ORM guards.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from rental_kernel.db.engine import create_tables
    from rental_kernel.db.immutability import register_delete_guards

    create_tables()
    if install_guards:
        register_delete_guards()
