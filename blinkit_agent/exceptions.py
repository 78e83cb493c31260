"""
blinkit_agent/exceptions.py

Custom exceptions for the project.

Every exception carries a human-readable message and, where one exists,
a suggested next action for the user.
"""


class BlinkitError(Exception):
    """
    Base exception for all blinkit_agent errors.
    """

    def __init__(self, message: str, next_action: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.next_action = next_action

    def __str__(self) -> str:
        if self.next_action:
            return f"{self.message} Next: {self.next_action}"
        return self.message


# Transport _______________________________________________________________________________________

class WorkerError(BlinkitError):
    """
    Base exception for failures of the worker process or its line protocol.
    Always recoverable by restarting the worker.
    """
    pass


class WorkerStartupError(WorkerError):
    """
    Exception raised when the worker process cannot be launched or fails its init handshake.
    """
    pass


class WorkerTimeoutError(WorkerError):
    """
    Exception raised when a command gets no response before its deadline.
    The worker may still complete the action, so the outcome is unknown.
    """
    pass


class WorkerCrashedError(WorkerError):
    """
    Exception raised for every pending command when the worker process exits.
    """
    pass


class WorkerNotRunningError(WorkerError):
    """
    Exception raised when a command is sent while no worker process is running.
    """
    pass


class ProtocolError(WorkerError):
    """
    Exception raised when a response line or its data does not match the protocol models.
    """
    pass


# Remote system ___________________________________________________________________________________

class StoreUnavailableError(BlinkitError):
    """
    Exception raised when the store reports itself closed, unavailable or under high demand.
    Never retried automatically.
    """
    pass


class WorkflowError(BlinkitError):
    """
    Exception raised when the worker reports that a remote action failed.
    """
    pass


# Recovery ________________________________________________________________________________________

class ItemUnknownError(BlinkitError):
    """
    Exception raised when recovery is requested for an item id that no search ever returned.
    """
    pass


class ItemNotFoundAfterRecoveryError(BlinkitError):
    """
    Exception raised when an item is still absent after re-running its source query.
    """
    pass


# Invariants and preconditions ____________________________________________________________________

class SpendLimitExceededError(BlinkitError):
    """
    Exception raised when a cart total exceeds the configured hard limit.
    """

    def __init__(self, message: str, total: float, limit: float) -> None:
        super().__init__(message, next_action="Remove items from the cart to bring the total under the limit.")
        self.total = total
        self.limit = limit


class LoginRequiredError(BlinkitError):
    """
    Exception raised when an operation needs an authenticated session.
    """
    pass


class ConfigurationError(BlinkitError):
    """
    Exception raised when settings fail validation.
    """
    pass
