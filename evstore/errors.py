"""Exceptions raised by the evidence store."""


class EvidenceStoreError(Exception):
    """Base class for evidence store errors."""


class ConfigurationError(EvidenceStoreError):
    """The store or its configuration is unusable (e.g. no backend configured)."""


class AllBackendsFailedError(EvidenceStoreError):
    """Every attempted backend write failed."""

    def __init__(self, errors: dict[str, BaseException]):
        self.errors = errors
        details = "; ".join(f"{name}: {error}" for name, error in errors.items())
        super().__init__(f"All storage operations failed ({details})")


class NoSourceAvailableError(EvidenceStoreError):
    """No configured backend matches the identifiers given for retrieval."""

    def __init__(self, message: str = "No valid storage source provided or available"):
        super().__init__(message)


class IntegrityError(EvidenceStoreError):
    """Retrieved bytes do not match the hash recorded with them."""

    def __init__(self, location: str, expected: str, actual: str):
        self.location = location
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Hash verification failed for {location}: expected {expected}, got {actual}"
        )


class BackendNotConfiguredError(EvidenceStoreError):
    """An operation was requested against a backend that is not configured."""

    def __init__(self, backend: str):
        self.backend = backend
        super().__init__(f"{backend} store not configured")


class EvidenceNotFoundError(EvidenceStoreError):
    """The requested object does not exist in the backend."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"Object not found: {location}")
