from typing import Dict, Optional

from fastapi import status
from libs.result import Error


class ClientError(Exception):
    """Caller-side failure, rendered with the given status"""

    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        retry_after = self.base_error.details.get("retry_after_seconds")
        if retry_after:
            return {"Retry-After": str(retry_after)}
        return None


class ServerError(Exception):
    """Failure on our side or upstream; retryable errors surface as 503"""

    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)

    @property
    def status_code(self) -> int:
        if self.base_error.retryable:
            return status.HTTP_503_SERVICE_UNAVAILABLE
        return status.HTTP_500_INTERNAL_SERVER_ERROR
