"""
bucketline: Result-Returning Facade over S3-Compatible Object Storage

- Upload single objects or batches with a bounded number of requests in flight
- Download and delete (single and batch) objects
- Build deterministic public URLs for stored objects

Every operation returns Ok/Err instead of raising; the wire protocol is
delegated to aioboto3.

License: MIT
"""

__version__ = "1.0.0"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================
from bucketline.core.types import (
    Result,
    Ok,
    Err,
    AccessPolicy,
    UploadItem,
)
from bucketline.core.errors import (
    ErrorCode,
    ObjectStoreError,
)
from bucketline.core.cancellation import CancellationToken
from bucketline.core.config import ClientConfig
from bucketline.storage import (
    ObjectStorageTransport,
    InMemoryTransport,
    BoundedScheduler,
    ObjectStoreClient,
    BucketClient,
)

__all__ = [
    "__version__",
    # Result monad
    "Result",
    "Ok",
    "Err",
    # Domain types
    "AccessPolicy",
    "UploadItem",
    "CancellationToken",
    # Errors
    "ErrorCode",
    "ObjectStoreError",
    # Config
    "ClientConfig",
    # Storage
    "ObjectStorageTransport",
    "InMemoryTransport",
    "BoundedScheduler",
    "ObjectStoreClient",
    "BucketClient",
]
