#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    setup.py
    ~~~~~~~~
    BorrowTrack, equipment borrowing records, returns and availability

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details.
"""

import os
import re
import codecs
from setuptools import setup, find_packages

here = os.path.abspath(os.path.dirname(__file__))


def read(*parts):
    return codecs.open(os.path.join(here, *parts), 'r').read()


def find_version(*file_paths):
    version_file = read(*file_paths)
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]",
                              version_file, re.M)
    if version_match:
        return version_match.group(1)
    raise RuntimeError("Unable to find version string.")

setup(
    name='borrowtrack',
    version=find_version("borrowtrack", "__init__.py"),
    description='BorrowTrack, an equipment borrowing tracker',
    long_description=read('README.md'),
    long_description_content_type='text/markdown',
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Web Environment",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP",
    ],
    packages=find_packages(exclude=['tests', 'tests.*', 'scripts']),
    platforms='any',
    license='LICENSE',
    python_requires='>=3.11',
    install_requires=[
        'fastapi',
        'uvicorn',
        'pydantic>=2',
        'sqlalchemy>=2',
        'itsdangerous',
        'firebase-admin',
        'google-api-core',
        'anyio',
        'python-dotenv',
        ],
    extras_require={
        'postgres': ['psycopg2-binary'],
        'test': ['pytest', 'httpx'],
        },
    include_package_data=True
    )
