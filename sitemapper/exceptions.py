"""Custom exceptions for sitemapper services."""


class SitemapperError(Exception):
    """Base class for engine errors."""


class InvalidInputError(SitemapperError):
    """Raised synchronously when caller input is rejected (bad seed URL, bad parameters)."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class ProjectNotFoundError(SitemapperError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project '{project_id}' not found")


class CollectionNotFoundError(SitemapperError):
    def __init__(self, collection_id: str):
        self.collection_id = collection_id
        super().__init__(f"Validation collection '{collection_id}' not found")


class RunAlreadyActiveError(SitemapperError):
    """Raised when a run is requested for an id that already has a non-terminal run."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"A run is already active for '{run_id}'")


class HttpFetchError(SitemapperError):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")


class StorageError(SitemapperError):
    """Raised by the blob store when a read or write fails."""

    def __init__(self, store_id: str, name: str, original: Exception):
        self.store_id = store_id
        self.name = name
        self.original = original
        super().__init__(f"Storage failure for {store_id}/{name}: {original}")


class CollectionDecodeError(SitemapperError):
    """Raised when a persisted validation collection does not match the current schema."""

    def __init__(self, collection_id: str, reason: str):
        self.collection_id = collection_id
        self.reason = reason
        super().__init__(f"Cannot decode validation collection '{collection_id}': {reason}")


class IncompleteResultsError(SitemapperError):
    """Raised by a strict results load when part of the persisted set cannot be read."""

    def __init__(self, project_id: str, reason: str):
        self.project_id = project_id
        self.reason = reason
        super().__init__(f"Results for '{project_id}' could not be fully loaded: {reason}")
