"""Application constants."""

USER_AGENT = "suburb-ingest/0.3 (+dashboard proxy)"
DEFAULT_TIMEOUT_MS = 8000
DEFAULT_SNIPPET_LIMIT = 400

ENDPOINT_PATHS = {
    "amenity": "amenity",
    "schools": "schools",
    "properties": "properties",
    "market": "market",
    "risk": "risk",
    "similar": "similar",
    "summary": "summary",
}
PROPERTY_TYPE_ENDPOINTS = ("properties", "market")
PROPERTY_TYPES = ("all", "house", "unit", "townhouse", "land")

FAILURE_POLICIES = ("error", "degrade")
RUNNERS = (
    "amenities",
    "schools",
    "located-schools",
    "properties",
    "centroid",
    "similar",
    "market",
    "risk",
    "summary",
)

EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "request_id",
    "stage",
    "suburb",
    "endpoint",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
