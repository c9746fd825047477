"""Custom exceptions for the change feed."""


class RealtimeError(Exception):
    """Base exception for change feed errors."""


class InvalidRowFilterError(RealtimeError):
    """Row filter expression could not be parsed."""


class ChannelClosedError(RealtimeError):
    """Channel was closed with an error by the feed."""
