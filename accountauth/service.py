"""
Account authentication and recovery.

:class:`.AccountAuthService` implements the account lifecycle: registration,
password login with lockout after repeated failures, password changes,
password reset via e-mailed recovery keys, profile changes, and removal.

Each operation loads one account, applies its rule to a private copy, and
saves the copy. Saves are conditional on the account's version; if another
operation saved the account in the meantime, the whole operation is re-run
from a fresh load (see :meth:`AccountAuthService._modify`).
"""

from typing import Callable, List, Optional
from datetime import timedelta
from html import escape
from urllib.parse import urlencode
import logging

from flask import Flask, current_app, g, has_app_context

from . import passwords
from .domain import Account, AccountRecovery, UserFullName, now
from .exceptions import AccountLocked, AccountNotFound, \
    ConcurrentModification, DuplicateAccount, EmailAlreadyInUse, \
    EmailDeliveryFailed, InvalidEmailAddress, InvalidPassword, \
    MailDeliveryFailed, RecoveryKeyExpired
from .mail import MailSession, get_mail_session
from .store import AccountStore

logger = logging.getLogger(__name__)

RECOVERY_SUBJECT = 'Account Recovery'


class AccountAuthService(object):
    """
    Authenticates, registers and maintains user accounts.

    Parameters
    ----------
    store : :class:`.AccountStore`
        Where accounts are loaded from and saved to.
    mail : :class:`.MailSession`
        Used to send recovery links.
    max_failed_logins : int
        A failed login that brings the count of consecutive failures above
        this number locks the account.
    lockout_duration : int
        Seconds for which a locked account refuses logins.
    recovery_lifespan : int
        Seconds for which a recovery key can be used.
    recovery_url : str
        Client route to which ``recoveryKey`` and ``emailAddress`` are
        appended as query parameters.
    hash_iterations : int
        PBKDF2 iteration count for password hashes.
    retries : int
        Number of attempts at an operation that keeps colliding with
        concurrent updates to the same account.

    """

    def __init__(self, store: AccountStore, mail: MailSession,
                 max_failed_logins: int = 4,
                 lockout_duration: int = 3600,
                 recovery_lifespan: int = 3600,
                 recovery_url: str = 'https://localhost:3000/#/password-reset',
                 hash_iterations: int = passwords.DEFAULT_ITERATIONS,
                 retries: int = 3) -> None:
        self._store = store
        self._mail = mail
        self._max_failed_logins = max_failed_logins
        self._lockout_duration = timedelta(seconds=lockout_duration)
        self._recovery_lifespan = timedelta(seconds=recovery_lifespan)
        self._recovery_url = recovery_url
        self._hash_iterations = hash_iterations
        self._retries = max(retries, 1)

    # Password helpers.

    def _hash(self, password: str, salt: str) -> str:
        return passwords.hash_password(password, salt, self._hash_iterations)

    def _verify(self, password: str, account: Account) -> bool:
        return passwords.check_password(password, account.salt,
                                        account.password_hash,
                                        self._hash_iterations)

    def _with_new_password(self, account: Account, password: str) -> Account:
        salt = passwords.generate_salt()
        return account._replace(salt=salt,
                                password_hash=self._hash(password, salt))

    # Loading and saving.

    def _load_by_identifier(self, identifier: str) -> Account:
        account = self._store.find_by_identifier(identifier)
        if account is None:
            logger.debug('No account for %s', identifier)
            raise AccountNotFound('The user was not found')
        return account

    def _load_by_email(self, email: str) -> Account:
        account = self._store.find_one(email=email)
        if account is None:
            logger.debug('No account for %s', email)
            raise AccountNotFound('User account not found')
        return account

    def _modify(self, load: Callable[[], Account],
                change: Callable[[Account], Account]) -> Account:
        """
        Load an account, change it, and save the result.

        ``change`` may raise to abandon the operation without saving. If the
        save collides with a concurrent update, the account is loaded again
        and ``change`` re-applied, up to the configured number of attempts.
        """
        attempt = 1
        while True:
            account = load()
            try:
                return self._store.save(change(account))
            except ConcurrentModification:
                if attempt >= self._retries:
                    logger.error('Gave up updating account %s after %i '
                                 'attempts', account.account_id, attempt)
                    raise
                logger.debug('Retrying update of account %s',
                             account.account_id)
                attempt += 1

    # Authentication.

    def login(self, identifier: str, password: str) -> Account:
        """
        Authenticate with a username or e-mail address, and a password.

        Every attempt on an existing, unlocked account is recorded: a valid
        password resets the failure count, an invalid one increments it and
        may lock the account.

        Parameters
        ----------
        identifier : str
            Either the username or the e-mail address of the account.
        password : str

        Returns
        -------
        :class:`.Account`

        Raises
        ------
        :class:`AccountNotFound`
        :class:`AccountLocked`
            The account is locked; ``until`` says when the lock expires.
        :class:`InvalidPassword`

        """
        verified = False

        def _attempt(account: Account) -> Account:
            nonlocal verified
            current = now()
            locked_until = account.locked_until
            if locked_until is not None and locked_until > current:
                logger.debug('Login to locked account %s', account.account_id)
                raise AccountLocked(locked_until)
            verified = self._verify(password, account)
            if verified:
                return account._replace(failed_login_attempts=0,
                                        locked_until=None)

            failed = account.failed_login_attempts + 1
            if failed > self._max_failed_logins:
                locked_until = current + self._lockout_duration
                logger.info('Locking account %s until %s', account.account_id,
                            locked_until.isoformat())
            return account._replace(failed_login_attempts=failed,
                                    locked_until=locked_until)

        account = self._modify(lambda: self._load_by_identifier(identifier),
                               _attempt)
        if not verified:
            raise InvalidPassword('Invalid password')
        return account

    # Registration and existence checks.

    def register(self, username: str, password: str, email: str,
                 first_name: Optional[str] = None,
                 middle_name: Optional[str] = None,
                 surname: Optional[str] = None) -> Account:
        """
        Create a new account.

        Raises
        ------
        :class:`InvalidEmailAddress`
        :class:`DuplicateAccount`
            The username or the e-mail address is already registered.

        """
        if not passwords.is_valid_email(email):
            raise InvalidEmailAddress(f'Not an e-mail address: {email}')
        salt = passwords.generate_salt()
        account = Account(
            username=username,
            email=email,
            salt=salt,
            password_hash=self._hash(password, salt),
            name=UserFullName(first_name=first_name, middle_name=middle_name,
                              surname=surname),
            created=now()
        )
        return self._store.insert(account)

    def username_exists(self, username: str) -> bool:
        """Determine whether an account with ``username`` exists."""
        return self._store.count(username=username) == 1

    def email_registered(self, email: str) -> bool:
        """Determine whether an account with ``email`` exists."""
        return self._store.count(email=email) == 1

    def get_account(self, identifier: str) -> Account:
        """Get the account with ``identifier`` as username or e-mail."""
        return self._load_by_identifier(identifier)

    def list_accounts(self) -> List[dict]:
        """Get the public profile of every account."""
        return [account.to_public_dict() for account in self._store.find()]

    # Passwords.

    def change_password(self, email: str, old_password: str,
                        new_password: str) -> Account:
        """Set a new password, given the current one."""
        def _change(account: Account) -> Account:
            if not self._verify(old_password, account):
                raise InvalidPassword('Invalid password')
            return self._with_new_password(account, new_password)

        return self._modify(lambda: self._load_by_email(email), _change)

    def issue_recovery_key(self, email: str) -> None:
        """
        Issue a recovery key and e-mail a password reset link.

        Raises
        ------
        :class:`AccountNotFound`
        :class:`EmailDeliveryFailed`
            The key was stored and remains usable, but the message could not
            be sent. Use :meth:`send_recovery_email` to try again.

        """
        recovery = AccountRecovery(
            recovery_key=passwords.generate_recovery_key(),
            expires_at=now() + self._recovery_lifespan
        )
        self._modify(lambda: self._load_by_email(email),
                     lambda account: account._replace(recovery=recovery))
        logger.info('Recovery key issued to %s', email)
        self._deliver_recovery_key(email, recovery.recovery_key)

    def send_recovery_email(self, email: str) -> None:
        """Send the reset link for the live recovery key again."""
        account = self._load_by_email(email)
        if account.recovery is None or account.recovery.consumed:
            raise AccountNotFound('No recovery key issued for this account')
        if account.recovery.expired(now()):
            raise RecoveryKeyExpired('Recovery key expired')
        self._deliver_recovery_key(email, account.recovery.recovery_key)

    def recovery_link(self, email: str, recovery_key: str) -> str:
        """Build the password reset link for a recovery key."""
        query = urlencode({'recoveryKey': recovery_key, 'emailAddress': email})
        separator = '&' if '?' in self._recovery_url else '?'
        return f'{self._recovery_url}{separator}{query}'

    def _deliver_recovery_key(self, email: str, recovery_key: str) -> None:
        link = self.recovery_link(email, recovery_key)
        text_body = f'Hi there, here is a link to recover your account: {link}'
        html_body = f'<a href="{escape(link)}">Click here</a> to recover ' \
            'your account.'
        try:
            self._mail.send_email(email, RECOVERY_SUBJECT, text_body,
                                  html_body)
        except MailDeliveryFailed as e:
            logger.error('Recovery e-mail to %s failed: %s', email, e)
            raise EmailDeliveryFailed(email) from e

    def reset_password(self, new_password: str, recovery_key: str,
                       email: str) -> Account:
        """
        Set a new password using a recovery key.

        The key is cleared, so it can be used only once.

        Raises
        ------
        :class:`AccountNotFound`
            No account has both this e-mail address and this key.
        :class:`RecoveryKeyExpired`

        """
        def _load() -> Account:
            account = None
            if recovery_key:
                account = self._store.find_one(email=email,
                                               recovery_key=recovery_key)
            if account is None:
                raise AccountNotFound('There is no account with that e-mail '
                                      'address and recovery key')
            return account

        def _reset(account: Account) -> Account:
            recovery = account.recovery
            if recovery is None:
                raise AccountNotFound('There is no account with that e-mail '
                                      'address and recovery key')
            if recovery.expired(now()):
                raise RecoveryKeyExpired('Recovery key expired')
            account = self._with_new_password(account, new_password)
            return account._replace(
                recovery=recovery._replace(recovery_key='')
            )

        return self._modify(_load, _reset)

    # Profile.

    def change_email(self, email: str, new_email: str) -> Account:
        """
        Change the e-mail address of an account.

        Raises
        ------
        :class:`AccountNotFound`
        :class:`InvalidEmailAddress`
        :class:`EmailAlreadyInUse`

        """
        if not passwords.is_valid_email(new_email):
            raise InvalidEmailAddress(f'Not an e-mail address: {new_email}')

        def _change(account: Account) -> Account:
            other = self._store.find_one(email=new_email)
            if other is not None and other.account_id != account.account_id:
                raise EmailAlreadyInUse('Email address already in use')
            return account._replace(email=new_email)

        try:
            return self._modify(lambda: self._load_by_email(email), _change)
        except DuplicateAccount as e:   # Registered since we checked.
            raise EmailAlreadyInUse('Email address already in use') from e

    def change_name(self, email: str, first_name: Optional[str] = None,
                    middle_name: Optional[str] = None,
                    surname: Optional[str] = None) -> Account:
        """Change whichever parts of the account holder's name are given."""
        def _change(account: Account) -> Account:
            name = account.name
            if first_name is not None:
                name = name._replace(first_name=first_name)
            if middle_name is not None:
                name = name._replace(middle_name=middle_name)
            if surname is not None:
                name = name._replace(surname=surname)
            return account._replace(name=name)

        return self._modify(lambda: self._load_by_email(email), _change)

    def change_bio(self, email: str, bio: str) -> Account:
        """Change the free-form profile text."""
        return self._modify(lambda: self._load_by_email(email),
                            lambda account: account._replace(bio=bio))

    def change_website_url(self, email: str, website_url: str) -> Account:
        """Change the profile homepage URL."""
        return self._modify(
            lambda: self._load_by_email(email),
            lambda account: account._replace(website_url=website_url)
        )

    def change_profile_image_url(self, email: str,
                                 profile_image_url: str) -> Account:
        """Change the profile avatar URL."""
        return self._modify(
            lambda: self._load_by_email(email),
            lambda account: account._replace(
                profile_image_url=profile_image_url
            )
        )

    # Removal.

    def remove_account(self, email: str, password: str) -> None:
        """Delete an account, after checking its password."""
        account = self._load_by_email(email)
        if not self._verify(password, account):
            raise InvalidPassword('Incorrect password')
        self._store.remove(account)
        logger.info('Removed account %s', account.account_id)


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('MAXIMUM_FAILED_LOGIN_ATTEMPTS', 4)
    app.config.setdefault('LOCKOUT_DURATION', 3600)
    app.config.setdefault('RECOVERY_KEY_LIFESPAN', 3600)
    app.config.setdefault('RECOVERY_URL',
                          'https://localhost:3000/#/password-reset')
    app.config.setdefault('PASSWORD_HASH_ITERATIONS',
                          passwords.DEFAULT_ITERATIONS)
    app.config.setdefault('ACCOUNT_UPDATE_RETRIES', 3)


def get_service(app: Optional[Flask] = None) -> AccountAuthService:
    """Get a new :class:`.AccountAuthService` configured for ``app``."""
    app = app or current_app
    config = app.config
    return AccountAuthService(
        AccountStore(),
        get_mail_session(app),
        max_failed_logins=int(config.get('MAXIMUM_FAILED_LOGIN_ATTEMPTS', 4)),
        lockout_duration=int(config.get('LOCKOUT_DURATION', 3600)),
        recovery_lifespan=int(config.get('RECOVERY_KEY_LIFESPAN', 3600)),
        recovery_url=config.get('RECOVERY_URL',
                                'https://localhost:3000/#/password-reset'),
        hash_iterations=int(config.get('PASSWORD_HASH_ITERATIONS',
                                       passwords.DEFAULT_ITERATIONS)),
        retries=int(config.get('ACCOUNT_UPDATE_RETRIES', 3))
    )


def current_service() -> AccountAuthService:
    """Get/create :class:`.AccountAuthService` for this context."""
    if not has_app_context():
        raise RuntimeError('No application context')
    if 'account_service' not in g:
        g.account_service = get_service()
    return g.account_service    # type: ignore
