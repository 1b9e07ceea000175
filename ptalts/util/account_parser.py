"""
Parsing of delivered account lines.

Accounts arrive as ``[username]email:password | mctoken: token``.
"""

import re
from dataclasses import dataclass

LINE_PATTERN = re.compile(
    r"\[(?P<username>[^\]]+)\](?P<email>[^:]+):(?P<password>[^|]+)\|\s*mctoken:\s*(?P<mctoken>.+)",
    re.IGNORECASE
)


@dataclass(frozen=True)
class AccountInformation:
    """One purchased account."""
    username: str
    email: str
    password: str
    mctoken: str


def parse(line: str) -> AccountInformation:
    """Parse an account line, raising ``ValueError`` if it is malformed."""
    match = LINE_PATTERN.fullmatch(line)
    if match is None:
        raise ValueError("Input string does not match expected format")

    return AccountInformation(
        username=match.group("username"),
        email=match.group("email"),
        password=match.group("password").strip(),
        mctoken=match.group("mctoken").strip()
    )


def is_valid_format(line: str) -> bool:
    return LINE_PATTERN.fullmatch(line) is not None
