"""Error types raised by report flows and surfaced by the CLI."""

from __future__ import annotations


class AbuError(Exception):
    """Base class for expected, user-facing failures."""


class ConfigurationError(AbuError):
    """Required configuration is missing or invalid."""


class AccountNotFoundError(AbuError):
    """No account matches the requested name or identifier."""

    def __init__(self, target: str) -> None:
        super().__init__(f"No account found matching '{target}'")
        self.target = target


class AccountSuspendedError(AbuError):
    """The requested account exists but is suspended."""

    def __init__(self, account_id: str, name: str) -> None:
        super().__init__(f"Account {name} ({account_id}) is suspended")
        self.account_id = account_id
        self.name = name
