"""Tests for :mod:`accountauth.domain`."""

from unittest import TestCase
from datetime import datetime, timedelta

from pytz import UTC

from .. import domain

T = datetime(2021, 3, 4, 5, 6, 7, tzinfo=UTC)


class TestAccount(TestCase):
    """Tests for :class:`.domain.Account`."""

    def setUp(self):
        self.account = domain.Account(
            username='foouser',
            email='foo@bar.com',
            password_hash='fakehash',
            salt='fakesalt',
            name=domain.UserFullName('Foo', None, 'User')
        )

    def test_defaults(self):
        """New accounts have no failures, no lock and placeholder profile."""
        self.assertEqual(self.account.failed_login_attempts, 0)
        self.assertIsNone(self.account.locked_until)
        self.assertIsNone(self.account.recovery)
        self.assertEqual(self.account.bio, domain.DEFAULT_BIO)
        self.assertEqual(self.account.website_url, domain.DEFAULT_WEBSITE_URL)

    def test_to_public_dict(self):
        """Credentials are not public."""
        data = self.account.to_public_dict()
        self.assertEqual(data['username'], 'foouser')
        self.assertEqual(data['name'], {'first_name': 'Foo',
                                        'middle_name': None,
                                        'surname': 'User'})
        self.assertNotIn('password_hash', data)
        self.assertNotIn('salt', data)


class TestAccountRecovery(TestCase):
    """Tests for :class:`.domain.AccountRecovery`."""

    def test_expired(self):
        """A key expires at its expiry time."""
        recovery = domain.AccountRecovery('thekey', T)
        self.assertFalse(recovery.expired(T - timedelta(seconds=1)))
        self.assertTrue(recovery.expired(T))
        self.assertFalse(recovery.consumed)
        self.assertTrue(recovery._replace(recovery_key='').consumed)


class TestDictCoercion(TestCase):
    """Tests for :func:`domain.to_dict`."""

    def test_nested(self):
        """Child tuples and datetimes are cast."""
        recovery = domain.AccountRecovery('thekey', T)
        self.assertEqual(domain.to_dict(recovery),
                         {'recovery_key': 'thekey',
                          'expires_at': T.isoformat()})

    def test_not_a_namedtuple(self):
        self.assertEqual(domain.to_dict(('a', 'b')), {})
