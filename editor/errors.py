"""Editor error taxonomy."""


class EditorError(Exception):
    """Base class for editor errors."""


class ValidationError(EditorError):
    """Caller requested an operation the editor cannot perform."""


class PersistenceError(EditorError):
    """A store call failed (network, auth, server)."""

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.document_id = document_id
        self.status_code = status_code


class StaleRequestIgnored(EditorError):
    """A response arrived for a document that is no longer active.

    Bookkeeping only: logged and discarded, never shown to the user.
    """

    def __init__(self, document_id: str, active_document_id: str | None) -> None:
        super().__init__(
            f"Discarding response for {document_id} (active: {active_document_id})"
        )
        self.document_id = document_id
        self.active_document_id = active_document_id


class SessionRequiredError(EditorError):
    """The editor was mounted without an authenticated user."""


class AuthorizationError(EditorError):
    """The document belongs to a different user."""


class EnhancementError(EditorError):
    """The AI enhancement collaborator failed."""
