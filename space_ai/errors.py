"""Exception types raised across the image service boundary."""


class SpaceAIError(Exception):
    """Base class for all errors raised by space_ai."""


class ImageServiceError(SpaceAIError):
    """A remote image operation failed. ``code`` identifies the failure class."""

    code = "remote_operation_failed"


class CredentialExpiredError(ImageServiceError):
    """The configured credential was rejected (or none is configured)."""

    code = "credential_expired"


class NoImageReturnedError(ImageServiceError):
    """The provider answered without inline image data."""

    code = "no_image_returned"


class RemoteOperationFailedError(ImageServiceError):
    """Any other provider or network failure; keeps the provider's message."""

    code = "remote_operation_failed"


class CredentialUnavailableError(SpaceAIError):
    """No interactive credential selector exists in this deployment."""


class InvalidImageError(SpaceAIError, ValueError):
    """Bytes or payload strings that cannot be decoded as an image."""
