"""Domain errors raised by services and mapped to responses in app.main."""


class FormValidationError(Exception):
    """User-correctable field errors: [{"field": ..., "msg": ...}]."""

    def __init__(self, errors: list[dict], data: dict | None = None):
        super().__init__("; ".join(e["msg"] for e in errors))
        self.errors = errors
        self.data = data


class AccountError(Exception):
    """Account flow failure reported to the user as a single message."""


class DuplicateEmail(AccountError):
    pass


class InvalidToken(AccountError):
    """Unknown or already-consumed confirmation/reset token."""


class LoginFailed(AccountError):
    pass


class UnknownEmail(AccountError):
    pass


class InvalidProof(Exception):
    """Session proof failed signature, format or expiry checks."""


class LoginRequired(Exception):
    def __init__(self, clear_cookie: bool = False):
        super().__init__("Login required")
        self.clear_cookie = clear_cookie


class ListingAccessDenied(Exception):
    """Base for every owner-path failure; all collapse to the same redirect."""


class ListingNotFound(ListingAccessDenied):
    pass


class ListingAlreadyPublished(ListingAccessDenied):
    pass


class NotListingOwner(ListingAccessDenied):
    pass


class AssetDeletionError(Exception):
    """Stored image could not be removed; the listing record is kept."""


class ImageRequired(ListingAccessDenied):
    """A draft cannot be made visible before its image is attached."""
