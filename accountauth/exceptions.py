"""Exceptions."""

from datetime import datetime


class AccountNotFound(RuntimeError):
    """No account matches the provided identifier."""


class InvalidPassword(RuntimeError):
    """Password is not correct."""


class AccountLocked(RuntimeError):
    """Too many failed logins; the account is locked for a while."""

    def __init__(self, until: datetime) -> None:
        super().__init__(f'This account is locked until {until.isoformat()}')
        self.until = until


class DuplicateAccount(RuntimeError):
    """An account with that username or e-mail address already exists."""


class EmailAlreadyInUse(RuntimeError):
    """The e-mail address is registered to another account."""


class InvalidEmailAddress(RuntimeError):
    """The e-mail address is not well-formed."""


class RecoveryKeyExpired(RuntimeError):
    """The recovery key is past its expiry time."""


class EmailDeliveryFailed(RuntimeError):
    """
    A recovery key was issued, but the e-mail could not be sent.

    The key is stored and still valid. Retry delivery with
    :meth:`.AccountAuthService.send_recovery_email` rather than issuing a new
    key.
    """

    def __init__(self, email: str) -> None:
        super().__init__('Key issued but e-mail failed to send')
        self.email = email


class StoreError(RuntimeError):
    """Failed to read or write the account store."""


class ConcurrentModification(StoreError):
    """The account was changed by someone else since it was loaded."""


class MailDeliveryFailed(RuntimeError):
    """The mail service could not send a message."""
