#!/usr/bin/env python

"""
    Configurations for BorrowTrack

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

import os


# Determine environment
TESTING = os.getenv("TESTING", "false").lower() == "true"

# API server configuration
SCHEME = 'http'
HOST = os.environ.get('BORROWTRACK_HOST', 'localhost')
PORT = int(os.environ.get('BORROWTRACK_PORT', 8080))
WORKERS = int(os.environ.get('BORROWTRACK_WORKERS', 1))
DEBUG = bool(int(os.environ.get('BORROWTRACK_DEBUG', 0)))
LOG_LEVEL = os.environ.get('BORROWTRACK_LOG_LEVEL', 'info')
SSL_CRT = os.environ.get('BORROWTRACK_SSL_CRT')
SSL_KEY = os.environ.get('BORROWTRACK_SSL_KEY')
CORS_ORIGINS = [
    origin.strip() for origin in
    os.environ.get('BORROWTRACK_CORS_ORIGINS', 'http://localhost:3000').split(',')
    if origin.strip()
]

OPTIONS = {
    'host': HOST,
    'port': PORT,
    'log_level': LOG_LEVEL,
    'reload': DEBUG,
    'workers': WORKERS,
}
if SSL_CRT and SSL_KEY:
    OPTIONS['ssl_keyfile'] = SSL_KEY
    OPTIONS['ssl_certfile'] = SSL_CRT
    SCHEME = 'https'

# Which document database backs the record store: sql, firestore or memory
BACKEND = os.environ.get('BORROWTRACK_BACKEND', 'sql').lower()

DB_CONFIG = {
    'user': os.environ.get('DB_USER', 'postgres'),
    'password': os.environ.get('DB_PASSWORD'),
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', '5432')),
    'dbname': os.environ.get('DB_NAME', 'borrowtrack'),
}

# Database configuration
DB_URI = (
    "sqlite:///:memory:" if TESTING else
    os.environ.get('BORROWTRACK_DB_URI') or (
        'postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}'.format(**DB_CONFIG)
        if DB_CONFIG['password'] else 'sqlite:///borrowtrack.db'
    )
)

# Firestore configuration
FIREBASE_CONFIG = {
    'credentials': os.environ.get('FIREBASE_CREDENTIALS'),
    'project_id': os.environ.get('FIREBASE_PROJECT_ID'),
}

# Record store reconciliation
FALLBACK_MONTHS = int(os.environ.get('BORROWTRACK_FALLBACK_MONTHS', 18))
SCAN_CONCURRENCY = int(os.environ.get('BORROWTRACK_SCAN_CONCURRENCY', 8))
SETTINGS_KEY = 'default'

# Identity
SEED = os.environ.get('BORROWTRACK_SEED', 'borrowtrack-dev-seed')
AUTH_REQUIRED = os.environ.get(
    'BORROWTRACK_AUTH_REQUIRED', 'false' if TESTING else 'true').lower() == 'true'
ADMIN_ACCOUNT = {
    'username': os.environ.get('BORROWTRACK_ADMIN_USERNAME', 'Admin'),
    'email': os.environ.get('BORROWTRACK_ADMIN_EMAIL', 'admin@borrowtrack.local'),
    'password': os.environ.get('BORROWTRACK_ADMIN_PASSWORD'),
}

__all__ = [
    'SCHEME', 'HOST', 'PORT', 'DEBUG', 'OPTIONS', 'BACKEND', 'DB_URI', 'DB_CONFIG',
    'FIREBASE_CONFIG', 'FALLBACK_MONTHS', 'SCAN_CONCURRENCY', 'SEED', 'TESTING',
]
