from prometheus_client import Counter

SYNC_RUNS_TOTAL = Counter(
    "inbox_sync_runs_total",
    "Historical sync runs by outcome",
    ["status"],
)

SYNC_ITEMS_TOTAL = Counter(
    "inbox_sync_items_total",
    "Entities processed during sync",
    ["kind", "status"],
)

PROVIDER_REQUESTS_TOTAL = Counter(
    "inbox_provider_requests_total",
    "Requests made to the messaging provider",
    ["operation", "status"],
)

WEBHOOK_EVENTS_TOTAL = Counter(
    "inbox_webhook_events_total",
    "Provider webhook events handled",
    ["event", "status"],
)

ATTACHMENT_RESOLUTIONS_TOTAL = Counter(
    "inbox_attachment_resolutions_total",
    "Attachment resolutions by winning source",
    ["source"],
)
