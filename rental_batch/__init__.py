"""
rental_batch -- nightly jobs over contracts and payments.

Tasks implement the ``BatchTask`` protocol (``rental_batch.tasks.base``) and
are executed by ``rental_batch.runner.run_task``, one SAVEPOINT per item.
"""
