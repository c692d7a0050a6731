class ValidationError(ValueError):
    """A required field is missing; nothing was written."""


class TransportError(RuntimeError):
    """The SMS transport could not deliver a message."""
