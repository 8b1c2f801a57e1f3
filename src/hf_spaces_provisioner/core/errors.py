"""Errors raised by the Hub client."""

from __future__ import annotations


class RemoteError(Exception):
    """Base exception for failed Hub API calls."""


class TransportError(RemoteError):
    """The request could not be completed (connection, DNS, timeout...)."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"Unable to {operation}: {message}")
        self.operation = operation


class RemoteRejected(RemoteError):
    """The Hub answered with a non-success status code."""

    def __init__(self, operation: str, status_code: int, message: str = "") -> None:
        msg = f"Unable to {operation}, got status code: {status_code}"
        if message:
            msg += f", response body: {message}"
        super().__init__(msg)
        self.operation = operation
        self.status_code = status_code
        self.message = message


class DecodeError(RemoteError):
    """The response body did not match the expected shape."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"Unable to decode {operation} response: {message}")
        self.operation = operation
