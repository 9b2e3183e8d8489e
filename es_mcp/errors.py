from enum import Enum
from typing import Any, Optional

class ErrorCodes(Enum):
    MISSING_PARAMETER = "missing_parameter"
    INVALID_PARAMETER = "invalid_parameter"
    INVALID_JSON = "invalid_json"
    ELASTICSEARCH_ERROR = "elasticsearch_error"
    CONNECTION_ERROR = "connection_error"
    DECODE_ERROR = "decode_error"
    REQUEST_CANCELLED = "request_cancelled"
    NOT_CONNECTED_TO_ELASTICSEARCH = "not_connected_to_elasticsearch"
    MISCONFIGURED_CONNECTION = "misconfigured_connection"
    INVALID_CONFIGURATION = "invalid_configuration"

# Raised before any backend call is attempted
PARAMETER_ERRORS = frozenset({
    ErrorCodes.MISSING_PARAMETER,
    ErrorCodes.INVALID_PARAMETER,
    ErrorCodes.INVALID_JSON,
})

class ElasticsearchError(Exception):
    def __init__(self, code: ErrorCodes, message: str, details: Optional[Any] = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"{code.value}: {message}")

    @property
    def is_parameter_error(self) -> bool:
        return self.code in PARAMETER_ERRORS
