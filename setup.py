"""Install the accountauth package."""

from setuptools import setup, find_packages

setup(
    name='accountauth',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "pytz",
        "mimesis",
    ],
    extras_require={
        "mysql": ["mysqlclient"],
        "test": ["pytest", "hypothesis"],
    },
    zip_safe=False
)
