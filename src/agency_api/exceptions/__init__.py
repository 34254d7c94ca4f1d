
# agency_api/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # App-level errors (RequestValidationFailed, PersistenceError)
# │   └── classifier.py              # Driver-level error classification (for logs only)

from .base import Violation, ApiError, RequestValidationFailed, PersistenceError

__all__ = ["Violation", "ApiError", "RequestValidationFailed", "PersistenceError"]
