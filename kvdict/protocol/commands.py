"""
Protocol Command and Response Definitions

This module defines the data structures for protocol commands and responses.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List


class CommandType(Enum):
    """Enumeration of supported command types."""
    GET = auto()
    PUT = auto()
    DELETE = auto()
    INVALID = auto()


class ResponseStatus(Enum):
    """Enumeration of response statuses, valued by their wire code."""
    FOUND = "200"
    NOT_FOUND = "404"


@dataclass
class Command:
    """
    Represents a parsed protocol command.

    Attributes:
        type: The type of command (GET, PUT, DELETE, INVALID)
        key: The key for the operation (empty for INVALID)
        value: The value for PUT and DELETE (empty for GET)
        raw: The original raw command string
    """
    type: CommandType
    key: str = ""
    value: str = ""
    raw: str = ""

    @property
    def is_valid(self) -> bool:
        """Check if the command should be applied to the store."""
        return self.type != CommandType.INVALID


@dataclass
class Response:
    """
    Represents a protocol response.

    Attributes:
        status: FOUND (200) or NOT_FOUND (404)
        values: The values held by the key after the operation
    """
    status: ResponseStatus
    values: List[str] = field(default_factory=list)

    @classmethod
    def from_values(cls, values: List[str]) -> "Response":
        """Create a 200 response for a non-empty result, 404 otherwise."""
        if values:
            return cls(status=ResponseStatus.FOUND, values=list(values))
        return cls.not_found()

    @classmethod
    def not_found(cls) -> "Response":
        """Create a 404 response."""
        return cls(status=ResponseStatus.NOT_FOUND)
