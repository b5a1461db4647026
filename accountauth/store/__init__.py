"""
Database integration for persisting :class:`domain.Account` records.

Every write is guarded by the account's ``version``. An update only applies
if the stored version still matches the version that was loaded; otherwise
:class:`.ConcurrentModification` is raised and the caller may reload and
try again.
"""

from typing import Any, Dict, Generator, List, Optional
from contextlib import contextmanager
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from . import util, models
from .. import domain
from ..exceptions import AccountNotFound, ConcurrentModification, \
    DuplicateAccount, StoreError

logger = logging.getLogger(__name__)

init_app = util.init_app
create_all = util.create_all
drop_all = util.drop_all


@contextmanager
def _database_errors(action: str) -> Generator:
    try:
        yield
    except IntegrityError as e:
        logger.debug('Constraint violated while trying to %s: %s', action, e)
        raise DuplicateAccount('Duplicate account') from e
    except SQLAlchemyError as e:
        logger.error('Database error while trying to %s: %s', action, e)
        raise StoreError(f'Could not {action}: {e}') from e


class AccountStore(object):
    """Loads and saves accounts using the application's database session."""

    def find_one(self, **criteria: Any) -> Optional[domain.Account]:
        """
        Get the first account matching all of ``criteria``.

        Parameters
        ----------
        criteria : kwargs
            Column names of :class:`.models.DBAccount` and the values they
            must be equal to.

        Returns
        -------
        :class:`domain.Account` or None

        """
        with _database_errors('load account'):
            with util.transaction() as session:
                db_account = session.query(models.DBAccount) \
                    .filter_by(**criteria) \
                    .first()
                if db_account is None:
                    return None
                return _to_domain(db_account)

    def find_by_identifier(self, identifier: str) -> Optional[domain.Account]:
        """Get the account whose username or e-mail is ``identifier``."""
        with _database_errors('load account'):
            with util.transaction() as session:
                db_account = session.query(models.DBAccount) \
                    .filter(or_(models.DBAccount.username == identifier,
                                models.DBAccount.email == identifier)) \
                    .first()
                if db_account is None:
                    return None
                return _to_domain(db_account)

    def find(self, **criteria: Any) -> List[domain.Account]:
        """Get all accounts matching ``criteria``, oldest first."""
        with _database_errors('load accounts'):
            with util.transaction() as session:
                return [
                    _to_domain(db_account) for db_account
                    in session.query(models.DBAccount)
                    .filter_by(**criteria)
                    .order_by(models.DBAccount.account_id)
                ]

    def count(self, **criteria: Any) -> int:
        """Count the accounts matching ``criteria``."""
        with _database_errors('count accounts'):
            with util.transaction() as session:
                count: int = session.query(models.DBAccount) \
                    .filter_by(**criteria) \
                    .count()
                return count

    def insert(self, account: domain.Account) -> domain.Account:
        """
        Store a new account.

        Raises
        ------
        :class:`DuplicateAccount`
            The username or e-mail address is already taken.
        :class:`StoreError`

        """
        values = _to_columns(account)
        values['version'] = 0
        values['created'] = util.epoch(account.created or domain.now())
        with _database_errors('create account'):
            with util.transaction() as session:
                db_account = models.DBAccount(**values)
                session.add(db_account)
                session.commit()
                return _to_domain(db_account)

    def save(self, account: domain.Account) -> domain.Account:
        """
        Update a stored account, if nobody else has updated it first.

        Returns
        -------
        :class:`domain.Account`
            The account as stored, with its new version.

        Raises
        ------
        :class:`ConcurrentModification`
            The account was changed (or removed) since it was loaded.
        :class:`DuplicateAccount`
            A unique field collides with another account.
        :class:`StoreError`

        """
        if account.account_id is None:
            raise ValueError('Account ID must be set')

        values = _to_columns(account)
        values['version'] = account.version + 1
        with _database_errors('save account'):
            with util.transaction() as session:
                updated = session.query(models.DBAccount) \
                    .filter(models.DBAccount.account_id == _pk(account)) \
                    .filter(models.DBAccount.version == account.version) \
                    .update(values, synchronize_session=False)
                session.commit()
        if updated != 1:
            logger.info('Account %s changed since it was loaded',
                        account.account_id)
            raise ConcurrentModification('Account changed since it was loaded')
        return account._replace(version=account.version + 1)

    def remove(self, account: domain.Account) -> None:
        """Delete exactly one stored account."""
        with _database_errors('remove account'):
            with util.transaction() as session:
                removed = session.query(models.DBAccount) \
                    .filter(models.DBAccount.account_id == _pk(account)) \
                    .delete(synchronize_session=False)
                session.commit()
        if removed != 1:
            raise AccountNotFound('Account not found')


def _to_columns(account: domain.Account) -> Dict[str, Any]:
    recovery = account.recovery
    return dict(
        username=account.username,
        email=account.email,
        password_hash=account.password_hash,
        salt=account.salt,
        failed_login_attempts=account.failed_login_attempts,
        locked_until=(util.epoch(account.locked_until)
                      if account.locked_until is not None else None),
        recovery_key=recovery.recovery_key if recovery else None,
        recovery_expires_at=(util.epoch(recovery.expires_at)
                             if recovery else None),
        first_name=account.name.first_name,
        middle_name=account.name.middle_name,
        surname=account.name.surname,
        bio=account.bio,
        website_url=account.website_url,
        profile_image_url=account.profile_image_url,
    )


def _to_domain(db_account: models.DBAccount) -> domain.Account:
    recovery = None
    if db_account.recovery_expires_at is not None:
        recovery = domain.AccountRecovery(
            recovery_key=db_account.recovery_key or '',
            expires_at=util.from_epoch(db_account.recovery_expires_at)
        )
    return domain.Account(
        account_id=str(db_account.account_id),
        version=db_account.version,
        username=db_account.username,
        email=db_account.email,
        password_hash=db_account.password_hash,
        salt=db_account.salt,
        failed_login_attempts=db_account.failed_login_attempts,
        locked_until=util.from_epoch(db_account.locked_until),
        recovery=recovery,
        name=domain.UserFullName(
            first_name=db_account.first_name,
            middle_name=db_account.middle_name,
            surname=db_account.surname
        ),
        bio=db_account.bio,
        website_url=db_account.website_url,
        profile_image_url=db_account.profile_image_url,
        created=util.from_epoch(db_account.created)
    )


def _pk(account: domain.Account) -> int:
    return int(account.account_id)  # type: ignore
