"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class MetadataServiceError(ServiceError):
    """Raised when the movie metadata API is unreachable or returns garbage."""


class MetadataHTTPError(MetadataServiceError):
    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(f"Metadata request failed ({status_code}): {detail}")
        self.status_code = status_code
        self.detail = detail


class TrendStoreError(ServiceError):
    pass
