class AuthorizationError(Exception):
    """Scheduled-job trigger presented a missing or wrong secret."""


class DataFetchError(Exception):
    """The data store could not be read; the run is aborted before any write."""


class DispatchError(Exception):
    """A notification could not be handed to the channel."""

    retryable = False


class TransientSendError(DispatchError):
    retryable = True


class PermanentSendError(DispatchError):
    retryable = False
