"""Exception types shared across postdesk."""


class PostdeskError(Exception):
    """Base error for postdesk."""


class RecordNotFoundError(PostdeskError, KeyError):
    """A record id or slug does not exist in a store."""


class NotAuthenticatedError(PostdeskError):
    """No current session."""


class PermissionDeniedError(PostdeskError):
    """The current user's role does not allow the operation."""


class ContentDecodeError(PostdeskError, ValueError):
    """Persisted content is not a well-formed list of sections."""


class ConfigurationError(PostdeskError):
    """A required setting is missing or unusable."""
