"""Prometheus metrics for the lifecycle engine.

Operational counters for sweeps, restores and account teardown.
"""

from prometheus_client import Counter, Histogram

events_trashed_total = Counter(
    "gallery_events_trashed_total",
    "Events moved to the trash by the trash sweep",
    ["reason"]  # expired_download|free_event_old|expired_download_and_free_old
)

events_deleted_total = Counter(
    "gallery_events_deleted_total",
    "Events permanently deleted by the permanent-delete sweep"
)

events_restored_total = Counter(
    "gallery_events_restored_total",
    "Events restored from the trash by their owner"
)

storage_delete_failures_total = Counter(
    "gallery_storage_delete_failures_total",
    "Object storage deletions that failed (non-fatal)",
    ["operation"]  # prefix|url|teardown
)

sweep_failures_total = Counter(
    "gallery_sweep_item_failures_total",
    "Per-event failures caught during a sweep",
    ["sweep"]  # trash|permanent_delete
)

sweep_duration_seconds = Histogram(
    "gallery_sweep_duration_seconds",
    "Wall time of one sweep run in seconds",
    ["sweep"],
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0, 900.0]
)

users_deleted_total = Counter(
    "gallery_users_deleted_total",
    "User accounts torn down",
    ["method"]  # teardown|deep_cleanup_provider|deep_cleanup_manual
)
