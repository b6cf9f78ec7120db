"""
Library-Wide Constants

All magic numbers and configuration defaults centralized here.
"""

from typing import Final

# =============================================================================
# BATCH UPLOAD
# =============================================================================
MAX_BATCH_SIZE: Final[int] = 50
UPLOAD_CONCURRENCY: Final[int] = 5

# =============================================================================
# ENDPOINT
# =============================================================================
DEFAULT_REGION: Final[str] = "eu-west-1"
URL_TEMPLATE: Final[str] = "https://s3.{region}.amazonaws.com/{bucket}/{key}"

# =============================================================================
# TRANSPORT
# =============================================================================
CONNECT_TIMEOUT_SECONDS: Final[int] = 5
READ_TIMEOUT_SECONDS: Final[int] = 60
MAX_POOL_CONNECTIONS: Final[int] = 10

# HTTP statuses accepted as success
STATUS_OK: Final[int] = 200
STATUS_NO_CONTENT: Final[int] = 204
DELETE_SUCCESS_STATUSES: Final[frozenset[int]] = frozenset({STATUS_OK, STATUS_NO_CONTENT})

# =============================================================================
# ENVIRONMENT
# =============================================================================
ENV_PREFIX: Final[str] = "BUCKETLINE"
