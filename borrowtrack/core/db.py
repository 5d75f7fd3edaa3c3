import logging
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from borrowtrack.configs import DB_URI, DEBUG
from borrowtrack.core.exceptions import StoreError

logger = logging.getLogger(__name__)


def make_engine(uri=DB_URI):
    engine_kwargs = {'echo': DEBUG}
    if uri.startswith('sqlite'):
        # Sessions are opened from the threadpool, and an in-memory
        # database only exists on its one connection
        engine_kwargs['connect_args'] = {'check_same_thread': False}
        if ':memory:' in uri:
            engine_kwargs['poolclass'] = StaticPool
    elif uri.startswith('postgresql'):
        engine_kwargs['client_encoding'] = 'utf8'
    return create_engine(uri, **engine_kwargs)


engine = make_engine()

Base = declarative_base()


def init(bind=engine):
    from borrowtrack.core import models  # noqa: F401, registers tables on Base
    try:
        Base.metadata.create_all(bind=bind)
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise StoreError(e.__class__.__name__, str(e)) from e
