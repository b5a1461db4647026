"""
User accounts and password authentication.

This package provides registration, password login with lockout after
repeated failures, password reset via e-mailed recovery keys, and profile
changes for user accounts stored in a SQL database.

Quick start
-----------

.. code-block:: python

   from accountauth.factory import create_web_app
   from accountauth.service import current_service

   app = create_web_app(create_db=True)
   with app.app_context():
       accounts = current_service()
       accounts.register('alice', 'P@ss1', 'alice@example.com')
       account = accounts.login('alice', 'P@ss1')

Failures are raised as the exceptions in :mod:`accountauth.exceptions`.
"""

from .domain import Account, AccountRecovery, UserFullName
from .service import AccountAuthService
