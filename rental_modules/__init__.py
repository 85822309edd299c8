"""
Rental business modules.

* ``contracts``   -- rental (unit) and supply (property) contracts: payment
                     counts, installment schedules, lifecycle classification.
* ``collections`` -- rent collection payments and their derived status.
* ``supply``      -- owner payouts and their derived status.

Each module follows the same layout: ``models`` (enums + frozen
dataclasses), ``calculations`` (pure rules, ZERO I/O), ``orm``,
``selectors`` and ``service``, plus ``config`` where the module has
tunable thresholds.
"""
