"""Prometheus metrics for document requests.

Defines operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter

document_requests_created_total = Counter(
    "docrequest_requests_created_total",
    "Total document requests created",
    ["type_id", "status"]  # status: Draft|Sent
)

token_validations_total = Counter(
    "docrequest_token_validations_total",
    "Portal token validations",
    ["outcome"]  # valid|malformed|unknown|expired|closed|not_configured
)

portal_uploads_total = Counter(
    "docrequest_portal_uploads_total",
    "Portal upload batches",
    ["outcome"]  # accepted|invalid_token|limit_exceeded|rejected|store_error
)

portal_files_uploaded_total = Counter(
    "docrequest_portal_files_uploaded_total",
    "Files accepted through the portal"
)

files_reviewed_total = Counter(
    "docrequest_files_reviewed_total",
    "Per-file review decisions",
    ["decision"]  # approved|rejected|removed
)

commits_total = Counter(
    "docrequest_commits_total",
    "Commit attempts",
    ["outcome"]  # committed|already_committed
)

requests_expired_total = Counter(
    "docrequest_requests_expired_total",
    "Requests moved to Expired",
    ["trigger"]  # lazy|sweep
)
