"""
Backend gateway for the Book Catalog admin shell.

This module owns the one authenticated session the shell holds against
PostgreSQL. It is responsible for:

1. Connection lifecycle: one SQLAlchemy engine and one connection per session,
   released exactly once
2. Parameterized execution: user values only ever travel as bound parameters
3. Error mapping: driver failures become ``CommandError`` /
   ``CatalogConnectionError`` / ``BootstrapError``
4. Notices: backend ``RAISE NOTICE`` output is forwarded to an observer only
   while a ``notices()`` scope is active

Usage:

```python
with connect("library", "admin", password) as session:
    session.install_routines()
    with session.notices(print):
        session.execute("CALL sp_create_table(:p1)", ["books"])
```
"""

import logging
from collections.abc import Callable, Generator, Sequence
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from ..config import ClientConfig, get_config
from ..errors import BootstrapError, CatalogConnectionError, CommandError, SessionClosedError
from ..models import ResultSet
from .routines import DATABASE_ROUTINES_SQL, ROUTINES_SQL, SET_CLIENT_MIN_MESSAGES, describe

logger = logging.getLogger(__name__)

NoticeObserver = Callable[[str], None]


def _backend_message(error: SQLAlchemyError) -> str:
    """Extract the driver's message, without SQLAlchemy's statement echo."""
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig).strip()
    return str(error).strip()


class NoticeSink:
    """
    Collects backend notices for one connection.

    psycopg2 delivers notices by calling ``append()`` on the connection's
    ``notices`` attribute, so the sink is installed there. A notice is handed
    to the observer only while the sink is armed; otherwise it is logged at
    DEBUG and dropped.
    """

    def __init__(self) -> None:
        self._observer: NoticeObserver | None = None

    @property
    def observer(self) -> NoticeObserver | None:
        return self._observer

    @property
    def armed(self) -> bool:
        return self._observer is not None

    def append(self, message: str) -> None:
        notice = str(message).strip()
        logger.debug("Backend notice: %s", notice)
        if self._observer is not None:
            self._observer(notice)

    @contextmanager
    def arm(self, observer: NoticeObserver | None) -> Generator["NoticeSink", None, None]:
        """Forward notices to ``observer`` for the duration of the block."""
        previous = self._observer
        self._observer = observer
        try:
            yield self
        finally:
            self._observer = previous


def install_notice_sink(dbapi_connection: Any, sink: NoticeSink) -> None:
    """Hook ``sink`` into a raw PostgreSQL driver connection."""
    if hasattr(dbapi_connection, "add_notice_handler"):
        # psycopg 3
        dbapi_connection.add_notice_handler(
            lambda diagnostic: sink.append(diagnostic.message_primary or "")
        )
    else:
        # psycopg2
        dbapi_connection.notices = sink


def _attach_notice_sink(engine: Engine, sink: NoticeSink) -> None:
    """Route notices of every DBAPI connection the engine opens into ``sink``."""

    @event.listens_for(engine, "connect")
    def install_sink(dbapi_connection, connection_record):  # noqa: ARG001
        install_notice_sink(dbapi_connection, sink)


class CatalogSession:
    """
    One live, authenticated connection to a catalog.

    The session exclusively owns its engine and connection. ``close()``
    releases both exactly once; every other method raises
    ``SessionClosedError`` afterwards.
    """

    def __init__(
        self,
        engine: Engine,
        connection: Connection,
        *,
        url: URL,
        sink: NoticeSink,
        config: ClientConfig,
    ):
        self._engine = engine
        self._connection: Connection | None = connection
        self._sink = sink
        self.url = url
        self.config = config

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<CatalogSession catalog={self.catalog!r} user={self.user!r} {state}>"

    def __enter__(self) -> "CatalogSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def catalog(self) -> str | None:
        return self.url.database

    @property
    def user(self) -> str | None:
        return self.url.username

    @property
    def closed(self) -> bool:
        return self._connection is None

    @property
    def notice_sink(self) -> NoticeSink:
        return self._sink

    @property
    def is_postgresql(self) -> bool:
        return self._engine.dialect.name == "postgresql"

    def _require_open(self, operation: str) -> Connection:
        if self._connection is None:
            raise SessionClosedError("Session is closed", operation=operation)
        return self._connection

    def execute(self, template: str, params: Sequence[Any] = ()) -> ResultSet:
        """
        Execute a fixed command template with positional parameters.

        Args:
            template: Command text whose only variable parts are the
                placeholders ``:p1 ... :pn``
            params: Values bound to the placeholders, in order

        Returns:
            The rows (if any) and the driver's affected-row count

        Raises:
            CommandError: If the backend rejects the command. The error is
                labelled with the operation name, not the template text
            SessionClosedError: If the session has been closed
        """
        operation = describe(template)
        connection = self._require_open(operation)
        bound = {f"p{position}": value for position, value in enumerate(params, start=1)}
        logger.debug("Executing %s with %d parameter(s)", template, len(bound))

        try:
            result = connection.execute(text(template), bound)
            if result.returns_rows:
                columns = list(result.keys())
                rows = [tuple(row) for row in result.fetchall()]
            else:
                columns, rows = [], []
        except SQLAlchemyError as e:
            message = _backend_message(e)
            logger.warning("Command failed: %s: %s", template, message)
            raise CommandError(message, operation=operation) from e

        return ResultSet(columns=columns, rows=rows, rowcount=result.rowcount)

    def install_routines(self, script: str = ROUTINES_SQL) -> None:
        """
        Ensure the stored routines this client calls exist on the server.

        ``script`` defaults to every routine; provisioning sub-sessions pass
        only the database lifecycle routines.

        Every routine is declared with ``CREATE OR REPLACE``, so this is safe
        to run on every bootstrap.

        Raises:
            BootstrapError: If the routine script fails
            SessionClosedError: If the session has been closed
        """
        connection = self._require_open("install routines")
        logger.info("Installing stored routines on %s", self.catalog)
        try:
            # The script contains '%' characters meant for PL/pgSQL format();
            # no_parameters keeps the driver from treating them as placeholders.
            connection.exec_driver_sql(script, execution_options={"no_parameters": True})
        except SQLAlchemyError as e:
            logger.exception("Stored routine installation failed")
            raise BootstrapError(_backend_message(e), operation="install routines") from e

    @contextmanager
    def notices(self, observer: NoticeObserver | None) -> Generator["CatalogSession", None, None]:
        """
        Forward backend notices to ``observer`` for exactly one block.

        Passing ``None`` keeps notices discarded. The previous state is
        restored on exit, including when the block raises.
        """
        self._require_open("notices")
        with self._sink.arm(observer):
            yield self

    @contextmanager
    def provision(self) -> Generator["CatalogSession", None, None]:
        """
        Open a short-lived sub-session on the maintenance catalog.

        Database creation and removal cannot run against the catalog being
        administered, so they go through a separate session with the same
        credentials. The database lifecycle routines are installed on the
        maintenance catalog before the sub-session is handed out. The current
        notice observer carries over.

        Raises:
            CatalogConnectionError: If the sub-session cannot connect
            CommandError: If the routines cannot be installed there
        """
        self._require_open("provision")
        sub_session = open_session(
            self.url.set(database=self.config.maintenance_catalog), config=self.config
        )
        try:
            try:
                sub_session.install_routines(DATABASE_ROUTINES_SQL)
            except BootstrapError as e:
                raise CommandError(
                    e.args[0], operation=f"preparing {sub_session.catalog}"
                ) from e
            with sub_session.notices(self._sink.observer):
                yield sub_session
        finally:
            sub_session.close()

    def close(self) -> None:
        """Close the connection and dispose of the engine. Idempotent."""
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        try:
            connection.close()
        finally:
            self._engine.dispose()
            logger.info("Session to %s closed", self.catalog)


def open_session(url: str | URL, config: ClientConfig | None = None) -> CatalogSession:
    """
    Open a session from an explicit SQLAlchemy URL.

    The engine runs in AUTOCOMMIT mode with no pooling: every routine call
    commits on its own, and the one connection is the only one ever opened.

    Raises:
        CatalogConnectionError: If the engine or the connection cannot be
            created. Anything partially built is released first.
    """
    config = config or get_config()
    url = make_url(url)
    sink = NoticeSink()

    try:
        engine = create_engine(url, isolation_level="AUTOCOMMIT", poolclass=NullPool, echo=False)
    except (SQLAlchemyError, ImportError) as e:
        raise CatalogConnectionError(str(e), operation=f"connect to {url.database}") from e

    if engine.dialect.name == "postgresql":
        _attach_notice_sink(engine, sink)

    try:
        connection = engine.connect()
    except SQLAlchemyError as e:
        engine.dispose()
        message = _backend_message(e)
        logger.warning("Connection to %s failed: %s", url.database, message)
        raise CatalogConnectionError(message, operation=f"connect to {url.database}") from e

    session = CatalogSession(engine, connection, url=url, sink=sink, config=config)

    if session.is_postgresql:
        try:
            session.execute(SET_CLIENT_MIN_MESSAGES, [config.client_min_messages])
        except CommandError as e:
            session.close()
            raise CatalogConnectionError(str(e), operation=f"connect to {url.database}") from e

    logger.info("Connected to %s as %s", session.catalog, session.user)
    return session


def connect(
    catalog: str, user: str, password: str, config: ClientConfig | None = None
) -> CatalogSession:
    """
    Establish an authenticated session on ``catalog``.

    Raises:
        CatalogConnectionError: If the backend is unreachable or rejects the
            credentials
    """
    config = config or get_config()
    return open_session(config.get_database_url(catalog, user, password), config=config)
