from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool

from demand_planning.config import config
from demand_planning.exceptions import DatabaseError
from demand_planning.logging_setup import get_logger

logger = get_logger(__name__)

class Database:
    """Database connection manager for the Demand Planning backend."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Database, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the database connection if not already initialized."""
        if self._initialized:
            return

        self._engine = None
        self._session_factory = None
        self._session = None
        self._initialized = True

    def initialize(self, connection_string=None):
        """Initialize database connection.

        Args:
            connection_string: Optional database connection string.
                              If not provided, will use configuration.
        """
        if connection_string is None:
            connection_string = config.get_db_url()

        echo = config.get_boolean('DATABASE', 'echo', False)

        if connection_string.startswith('sqlite'):
            # In-memory SQLite needs one shared connection across sessions
            self._engine = create_engine(
                connection_string,
                echo=echo,
                connect_args={'check_same_thread': False},
                poolclass=StaticPool
            )
        else:
            self._engine = create_engine(
                connection_string,
                echo=echo,
                pool_size=config.get_int('DATABASE', 'pool_size', 10),
                max_overflow=config.get_int('DATABASE', 'max_overflow', 20),
                pool_timeout=config.get_int('DATABASE', 'pool_timeout', 30),
                pool_recycle=config.get_int('DATABASE', 'pool_recycle', 1800)
            )

        self._session_factory = sessionmaker(bind=self._engine, autoflush=False)
        self._session = scoped_session(self._session_factory)
        logger.info(f"Database initialized using {self._engine.url.get_backend_name()}")

    def create_all_tables(self):
        """Create all tables defined in the models."""
        from demand_planning.models import Base
        Base.metadata.create_all(self.engine)

    def drop_all_tables(self):
        """Drop all tables from the database."""
        from demand_planning.models import Base
        Base.metadata.drop_all(self.engine)

    def test_connection(self):
        """Run a trivial query against the configured database."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except Exception as e:
            raise DatabaseError(f"Database connection test failed: {str(e)}") from e

    def dispose(self):
        """Release the engine and forget the session registry."""
        if self._session is not None:
            self._session.remove()
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None
        self._session = None

    @property
    def session(self):
        """Get the current database session registry."""
        if self._session is None:
            self.initialize()
        return self._session

    @property
    def engine(self):
        """Get the database engine."""
        if self._engine is None:
            self.initialize()
        return self._engine

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations."""
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

# Global database instance
db = Database()

@contextmanager
def session_scope():
    """Session scope context manager."""
    with db.session_scope() as session:
        yield session
