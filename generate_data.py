"""Generate synthetic accounts for testing and development purposes."""

import os
import random
import sys
os.environ.setdefault('SQLALCHEMY_DATABASE_URI', 'sqlite:///test.db')

from mimesis import Internet, Person, Text
from mimesis.locales import Locale

from accountauth.exceptions import DuplicateAccount, InvalidEmailAddress
from accountauth.factory import create_web_app
from accountauth.service import current_service

LOCALES = [Locale.EN, Locale.EN_GB, Locale.DE, Locale.FR, Locale.ES]
COUNT = 500


def _get_locale() -> Locale:
    return LOCALES[random.randint(0, len(LOCALES) - 1)]


def main(count: int = COUNT) -> None:
    app = create_web_app(create_db=True)
    with app.app_context():
        accounts = current_service()
        for _ in range(count):
            locale = _get_locale()
            person = Person(locale)
            password = person.password()
            try:
                account = accounts.register(
                    person.username(),
                    password,
                    person.email(unique=True),
                    first_name=person.first_name(),
                    surname=person.surname()
                )
            except (DuplicateAccount, InvalidEmailAddress):
                continue
            if random.randint(0, 100) < 50:
                accounts.change_bio(account.email, Text(locale).sentence())
            if random.randint(0, 100) < 30:
                accounts.change_website_url(account.email,
                                            Internet().url())
            print('\t'.join([account.email, account.username, password]))


if __name__ == '__main__':
    main(int(sys.argv[1]) if len(sys.argv) > 1 else COUNT)
