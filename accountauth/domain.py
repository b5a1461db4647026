"""Defines account concepts used throughout :mod:`accountauth`."""

from typing import Any, NamedTuple, Optional
from datetime import datetime

from pytz import UTC

DEFAULT_BIO = 'Put something about yourself here'
DEFAULT_WEBSITE_URL = 'http://www.example.com/'
DEFAULT_PROFILE_IMAGE_URL = 'http://www.example.com/images/default-profile.png'


class UserFullName(NamedTuple):
    """Represents an account holder's full name."""

    first_name: Optional[str] = None
    """First name or given name."""

    middle_name: Optional[str] = None
    """Middle name(s), if any."""

    surname: Optional[str] = None
    """Last name or family name."""


class AccountRecovery(NamedTuple):
    """A recovery key issued so that a password can be reset."""

    recovery_key: str
    """Random alphanumeric key. Empty once the key has been consumed."""

    expires_at: datetime
    """The key may not be used at or after this moment."""

    def expired(self, now: datetime) -> bool:
        """Whether the key is no longer usable at ``now``."""
        return not self.expires_at > now

    @property
    def consumed(self) -> bool:
        """Consumed keys are cleared rather than deleted."""
        return not self.recovery_key


class Account(NamedTuple):
    """
    Represents a user account.

    Instances are immutable. Operations that mutate an account produce a new
    instance via ``_replace`` and hand it to the store, so that an in-flight
    copy is never shared between operations.
    """

    username: str
    """Unique, slug-like username."""

    email: str
    """Unique e-mail address."""

    password_hash: str
    """Digest of the password keyed by :attr:`.salt`."""

    salt: str
    """Per-account random salt."""

    account_id: Optional[str] = None
    """Unique identifier. If ``None``, the account has not been stored."""

    version: int = 0
    """Incremented by the store on every save."""

    failed_login_attempts: int = 0
    """Consecutive failed logins since the last successful one."""

    locked_until: Optional[datetime] = None
    """If set and in the future, login is refused."""

    recovery: Optional[AccountRecovery] = None
    """The most recently issued recovery key, if any."""

    name: UserFullName = UserFullName()
    """The account holder's name (if available)."""

    bio: str = DEFAULT_BIO
    """Free-form profile text."""

    website_url: str = DEFAULT_WEBSITE_URL
    """Homepage or external profile URL."""

    profile_image_url: str = DEFAULT_PROFILE_IMAGE_URL
    """Location of the account holder's avatar."""

    created: Optional[datetime] = None
    """When the account was registered."""

    def to_public_dict(self) -> dict:
        """
        Generate a dict of the publicly visible parts of the account.

        Credentials, login counters, lock state and recovery data are left
        out.
        """
        return {
            'username': self.username,
            'email': self.email,
            'name': to_dict(self.name),
            'bio': self.bio,
            'website_url': self.website_url,
            'profile_image_url': self.profile_image_url,
        }


def now() -> datetime:
    """Get the current time, in UTC."""
    return datetime.now(tz=UTC)


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    This just uses the built-in ``_asdict`` method on the intance, but also
    calls this on any child NamedTuple instances (recursively) so that the
    entire tree is cast to ``dict``.

    Parameters
    ----------
    obj : tuple
        A NamedTuple instance.

    Returns
    -------
    dict

    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}
    data = obj._asdict()  # type: ignore

    def _cast(value: Any) -> Any:
        if hasattr(value, '_asdict'):
            value = to_dict(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        return value

    return {key: _cast(value) for key, value in data.items()}
