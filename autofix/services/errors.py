class AutofixError(Exception):
    pass


class StorageWriteError(AutofixError):
    """A collection could not be serialized or written to the backing store."""


class VerificationNotFoundError(AutofixError):
    pass


class InvalidTransitionError(AutofixError):
    """A payment verification was asked to leave a terminal state."""
