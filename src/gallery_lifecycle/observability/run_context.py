"""Run ID management for batch job correlation.

Each sweep or teardown run gets a run_id so every log line it emits can be
correlated, the same way request IDs correlate HTTP requests.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def generate_run_id() -> str:
    return str(uuid.uuid4())


def get_run_id() -> str:
    """Get current run ID from context, or "no-run-id" if not set."""
    return run_id_var.get() or "no-run-id"


@contextmanager
def job_run(run_id: Optional[str] = None) -> Iterator[str]:
    """Bind a run ID for the duration of a block.

    Nested runs keep the outer run's ID.
    """
    existing = run_id_var.get()
    if existing:
        yield existing
        return
    token = run_id_var.set(run_id or generate_run_id())
    try:
        yield run_id_var.get()
    finally:
        run_id_var.reset(token)
