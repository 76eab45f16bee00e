"""Core exceptions for SpaceTraveling."""


class SpaceTravelingError(Exception):
    """Base exception for all SpaceTraveling errors."""


class CMSError(SpaceTravelingError):
    """Raised when the CMS answers with something the client cannot use."""


class MalformedFieldError(SpaceTravelingError):
    """Raised when a CMS document lacks a field the site requires."""

    def __init__(self, field: str, document_uid: str | None = None) -> None:
        self.field = field
        self.document_uid = document_uid
        where = f" in document '{document_uid}'" if document_uid else ""
        super().__init__(f"Missing or invalid field '{field}'{where}")


class FetchFailure(SpaceTravelingError):
    """Raised when fetching the next listing page fails (network or parse)."""

    def __init__(self, cursor: str, reason: str) -> None:
        self.cursor = cursor
        self.reason = reason
        super().__init__(reason)


class GenerationFailure(SpaceTravelingError):
    """Raised when a page cannot be generated at build or request time."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to generate {path}: {reason}")
