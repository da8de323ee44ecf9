"""
Exception classes for the blog backend.

Every error raised by the store, the asset layer and the credential gate
derives from BlogError so the HTTP layer can map them in one place.
"""


class BlogError(Exception):
    """Base exception for all blog errors."""
    status_code = 500


class ConfigurationError(BlogError):
    """Raised when a required setting (the admin secret) is missing."""
    status_code = 503


class Unauthorized(BlogError):
    """Raised when a password or capability token does not check out."""
    status_code = 401


class NotFound(BlogError):
    """Raised when update/delete reference an unknown post identity."""
    status_code = 404


class DuplicateSlug(BlogError):
    """Raised when a write would leave two posts sharing one slug."""
    status_code = 409

    def __init__(self, slug: str):
        super().__init__(f"Slug already exists: {slug}")
        self.slug = slug


class AssetUnavailable(BlogError):
    """Raised when the asset backend cannot store or resolve content."""
    status_code = 502


class InvalidUpload(BlogError):
    """Raised when an uploaded file is rejected (type or size)."""
    status_code = 400
