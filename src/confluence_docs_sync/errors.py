"""Exception types raised while publishing documentation.

Only ``RenderBackendFailure`` is recovered locally (the diagram is skipped);
every other error aborts the run and is reported by the sync engine.
"""


class SyncError(Exception):
    """Base class for all errors raised by confluence_docs_sync."""


class ValidationError(SyncError, ValueError):
    """A call argument has the wrong type or a required field is missing."""


class RequestError(SyncError):
    """The Confluence REST API answered with a non-success status."""

    def __init__(
        self, status: int, reason: str = "", message: str | None = None
    ) -> None:
        self.status = status
        self.reason = reason
        self.message = message
        super().__init__(
            f"Request failed with: {status} - {message or reason}"
        )


class RepoConflictError(SyncError):
    """A page title is already owned by a different source repository."""

    def __init__(
        self, title: str, remote_repo: str | None, local_repo: str
    ) -> None:
        self.title = title
        self.remote_repo = remote_repo
        self.local_repo = local_repo
        super().__init__(
            f'Page "{title}" already exist for another repo '
            f'"{remote_repo}" (this repo is "{local_repo}")'
        )


class ParentPageNotFoundError(SyncError):
    """The page configured as parent does not exist in the space."""

    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(
            f"The page configured as parent ({title}) does not exist in confluence"
        )


class RenderBackendFailure(SyncError):
    """A diagram backend answered with a non-success status."""

    def __init__(self, backend: str, path: str, status: int) -> None:
        self.backend = backend
        self.path = path
        self.status = status
        super().__init__(
            f"{backend} failed to render {path} (status {status})"
        )
