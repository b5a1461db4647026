"""SQLAlchemy models for database integration."""

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import BigInteger, Column, Integer, String, Text, text

from .. import domain

db: SQLAlchemy = SQLAlchemy()


class DBAccount(db.Model):  # type: ignore
    """
    Persistence for :class:`domain.Account`.

    +----------------------+--------------+------+-----+---------+
    | Field                | Type         | Null | Key | Default |
    +----------------------+--------------+------+-----+---------+
    | account_id           | int          | NO   | PRI | NULL    |
    | username             | varchar(64)  | NO   | UNI |         |
    | email                | varchar(255) | NO   | UNI |         |
    | password_hash        | varchar(255) | NO   |     |         |
    | salt                 | varchar(64)  | NO   |     |         |
    | version              | int          | NO   |     | 0       |
    | failed_login_attempts| int          | NO   |     | 0       |
    | locked_until         | bigint       | YES  |     | NULL    |
    | recovery_key         | varchar(64)  | YES  | MUL | NULL    |
    | recovery_expires_at  | bigint       | YES  |     | NULL    |
    | created              | bigint       | NO   |     | 0       |
    +----------------------+--------------+------+-----+---------+

    Timestamps are UNIX epoch microseconds.
    """

    __tablename__ = 'accounts'

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    salt = Column(String(64), nullable=False)
    version = Column(Integer, nullable=False, server_default=text("'0'"))
    """Bumped on every update; see :meth:`.AccountStore.save`."""

    failed_login_attempts = Column(Integer, nullable=False,
                                   server_default=text("'0'"))
    locked_until = Column(BigInteger, nullable=True)
    recovery_key = Column(String(64), nullable=True, index=True)
    recovery_expires_at = Column(BigInteger, nullable=True)

    first_name = Column(String(50))
    middle_name = Column(String(50))
    surname = Column(String(50))
    bio = Column(Text, nullable=False, default=domain.DEFAULT_BIO)
    website_url = Column(String(255), nullable=False,
                         default=domain.DEFAULT_WEBSITE_URL)
    profile_image_url = Column(String(255), nullable=False,
                               default=domain.DEFAULT_PROFILE_IMAGE_URL)
    created = Column(BigInteger, nullable=False, server_default=text("'0'"))
