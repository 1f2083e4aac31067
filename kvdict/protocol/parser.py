"""
Protocol Parser Module

This module handles parsing of raw protocol lines and formatting of responses.
"""

import re
from typing import Optional

from .commands import Command, CommandType, Response, ResponseStatus
from ..config.settings import settings

# Wire text is UTF-8; undecodable bytes survive as lone surrogates.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


class ProtocolParser:
    """
    Parser for the KV-Dict text protocol.

    Protocol Format:
        Request:  <COMMAND> <ARGS>\n
        Response: 200 <v1> <v2> ...\n | 404\n

    Commands:
        GET <key>               -> 200 <values...> | 404
        PUT <key> <value>       -> 200 <values...>
        DELETE <key> <value>    -> 200 <remaining values...> | 404

    Keys and values are wrapped in angle brackets on the wire. They may
    contain spaces but not the bracket characters, and are limited to
    255 characters each. Keywords are case-sensitive.

    In lenient mode, a known keyword with malformed arguments keeps its
    type with an empty key and value instead of becoming INVALID.
    """

    def __init__(self, lenient: bool = None):
        self.max_key_length = settings.MAX_KEY_LENGTH
        self.max_value_length = settings.MAX_VALUE_LENGTH
        self.lenient = lenient if lenient is not None else settings.LENIENT_PARSING

        key = rf"<([^<>]{{1,{self.max_key_length}}})>"
        value = rf"<([^<>]{{1,{self.max_value_length}}})>"
        self._key_pattern = re.compile(key)
        self._key_value_pattern = re.compile(f"{key} {value}")

    def parse_request(self, data: str) -> Command:
        """
        Parse a raw request line into a Command object.

        Args:
            data: Raw request line (may include trailing newline)

        Returns:
            Command object representing the parsed request.
            Returns Command with type=INVALID for unknown or malformed requests.

        Examples:
            >>> parser = ProtocolParser()
            >>> cmd = parser.parse_request("PUT <fruit> <apple>")
            >>> cmd.type == CommandType.PUT
            True
            >>> cmd.key, cmd.value
            ('fruit', 'apple')
        """
        raw = data.strip()
        keyword, _, args = raw.partition(" ")
        args = args.strip()

        if keyword == "GET":
            return self._parse_get(args, raw)
        if keyword == "PUT":
            return self._parse_key_value(CommandType.PUT, args, raw)
        if keyword == "DELETE":
            return self._parse_key_value(CommandType.DELETE, args, raw)

        return Command(type=CommandType.INVALID, raw=raw)

    def _parse_get(self, args: str, raw: str) -> Command:
        """
        Parse a GET command.

        Format: GET <key>
        """
        match = self._key_pattern.fullmatch(args)
        if match is None:
            return self._malformed(CommandType.GET, raw)
        return Command(type=CommandType.GET, key=match.group(1), raw=raw)

    def _parse_key_value(self, command_type: CommandType, args: str, raw: str) -> Command:
        """
        Parse a PUT or DELETE command.

        Format: PUT <key> <value> / DELETE <key> <value>
        """
        match = self._key_value_pattern.fullmatch(args)
        if match is None:
            return self._malformed(command_type, raw)
        return Command(type=command_type, key=match.group(1), value=match.group(2), raw=raw)

    def _malformed(self, command_type: CommandType, raw: str) -> Command:
        if self.lenient:
            return Command(type=command_type, raw=raw)
        return Command(type=CommandType.INVALID, raw=raw)

    def format_response(self, response: Response) -> str:
        """
        Format a Response object into a protocol string.

        Examples:
            >>> parser = ProtocolParser()
            >>> parser.format_response(Response.from_values(["apple", "banana"]))
            '200 <apple> <banana>\\n'
            >>> parser.format_response(Response.not_found())
            '404\\n'
        """
        if response.status == ResponseStatus.FOUND and response.values:
            body = " ".join(f"<{value}>" for value in response.values)
            return f"{response.status.value} {body}\n"
        return f"{ResponseStatus.NOT_FOUND.value}\n"

    def decode_line(self, data: bytes) -> Optional[str]:
        """
        Decode one newline-terminated request line.

        Returns:
            The line without its terminator, or None if the data was cut
            off before a newline arrived.
        """
        if not data.endswith(b"\n"):
            return None
        return data.decode(ENCODING, ENCODING_ERRORS).rstrip("\r\n")

    def encode_response(self, response: Response) -> bytes:
        """Format a response and encode it for the wire."""
        return self.format_response(response).encode(ENCODING, ENCODING_ERRORS)
