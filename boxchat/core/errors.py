"""
Application errors for clean API error handling.

InvalidInputError is a client error (400). GatewayError wraps any failure of the
upstream model provider and is fatal for a manager turn (502). UnknownCollectionError
and AgentFailureError never leave the orchestrator: they are turned into tool results.
RunCancelledError is raised when a chat run hits its deadline (504).
"""


class InvalidInputError(ValueError):
    """Raised when the request is malformed (e.g. empty transcript)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class GatewayError(Exception):
    """Raised when the model provider call fails (transport, auth, rate limit, bad response)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ServiceUnavailableError(GatewayError):
    """Raised when the model provider is misconfigured (e.g. no API key)."""


class UnknownCollectionError(LookupError):
    """Raised when a tool call references a collection id that was not supplied."""

    def __init__(self, collection_id: str) -> None:
        self.collection_id = collection_id
        super().__init__(f'Error: no collection with id "{collection_id}" is available.')


class AgentFailureError(Exception):
    """Raised when a collection agent's model call fails."""

    def __init__(self, collection_name: str, cause: Exception) -> None:
        self.collection_name = collection_name
        self.cause = cause
        super().__init__(f'Error: could not query collection "{collection_name}": {cause}')


class RunCancelledError(Exception):
    """Raised when a chat run is abandoned because its deadline passed."""

    def __init__(self, message: str = "Chat run cancelled: deadline exceeded.") -> None:
        self.message = message
        super().__init__(message)
