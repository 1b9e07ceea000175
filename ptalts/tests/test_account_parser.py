"""
Unit tests for account line parsing.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from ptalts.util.account_parser import AccountInformation, is_valid_format, parse


class TestAccountParser:
    """Test cases for the account parser."""

    def test_parse(self):
        """Test a well-formed line is split into its parts."""
        account = parse("[Notch]notch@example.com:s3cret | mctoken: eyJ.token.sig")

        assert account == AccountInformation(
            username="Notch",
            email="notch@example.com",
            password="s3cret",
            mctoken="eyJ.token.sig"
        )

    def test_parse_tolerates_spacing_and_case(self):
        """Test spacing around the separator and the tag case are flexible."""
        account = parse("[user]a@b.c:pass|MCTOKEN:tok")

        assert account.password == "pass"
        assert account.mctoken == "tok"

    @pytest.mark.parametrize("line", [
        "",
        "notch@example.com:s3cret | mctoken: tok",
        "[Notch]notch@example.com | mctoken: tok",
        "[Notch]notch@example.com:s3cret",
        "[Notch]notch@example.com:s3cret | token: tok",
    ])
    def test_malformed_lines(self, line):
        """Test malformed lines are reported and refused."""
        assert is_valid_format(line) is False

        with pytest.raises(ValueError):
            parse(line)

    def test_valid_format(self):
        """Test the format check accepts well-formed lines."""
        assert is_valid_format("[u]e@x.y:p | mctoken: t") is True
