"""Exceptions raised by the routing domain besides Protean's own."""


class PublishCancelled(Exception):
    """A publish was cancelled before its unit of work committed; nothing was stored."""

    def __init__(self, message: str = "Publish cancelled before commit"):
        super().__init__(message)
