"""Flask configuration."""

import os

SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite://')
SQLALCHEMY_TRACK_MODIFICATIONS = False
CREATE_DB = bool(int(os.environ.get('CREATE_DB', 0)))

LOGFILE = os.environ.get('LOGFILE')
LOGLEVEL = os.environ.get('LOGLEVEL', 20)

MAXIMUM_FAILED_LOGIN_ATTEMPTS = \
    int(os.environ.get('MAXIMUM_FAILED_LOGIN_ATTEMPTS', '4'))
"""Failed logins beyond this number lock the account."""

LOCKOUT_DURATION = int(os.environ.get('LOCKOUT_DURATION', '3600'))
"""Seconds for which a locked account refuses logins."""

RECOVERY_KEY_LIFESPAN = int(os.environ.get('RECOVERY_KEY_LIFESPAN', '3600'))
"""Seconds for which a recovery key can be used."""

RECOVERY_URL = os.environ.get('RECOVERY_URL',
                              'https://localhost:3000/#/password-reset')
"""Client route that accepts ``recoveryKey`` and ``emailAddress``."""

PASSWORD_HASH_ITERATIONS = \
    int(os.environ.get('PASSWORD_HASH_ITERATIONS', '100000'))

ACCOUNT_UPDATE_RETRIES = int(os.environ.get('ACCOUNT_UPDATE_RETRIES', '3'))
"""Attempts at an update before giving up on concurrent modification."""

SMTP_HOST = os.environ.get('SMTP_HOST', 'localhost')
SMTP_PORT = int(os.environ.get('SMTP_PORT', '25'))
SMTP_TIMEOUT = float(os.environ.get('SMTP_TIMEOUT', '10'))
MAIL_SENDER = os.environ.get('MAIL_SENDER', 'noreply@localhost')
