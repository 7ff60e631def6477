"""Cassandra session lifecycle and schema bootstrap."""

import structlog
from cassandra import OperationTimedOut
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, NoHostAvailable, Session
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy

from learnpath.config import Settings, get_settings
from learnpath.courses.models import COURSES_TABLES_CQL
from learnpath.enrollments.models import ENROLLMENTS_TABLES_CQL
from learnpath.progress.models import PROGRESS_TABLES_CQL
from learnpath.structure.models import STRUCTURE_TABLES_CQL


logger = structlog.get_logger(__name__)


# Creation order matters only for readability; tables have no cross references.
SCHEMA: dict[str, list[str]] = {
    "courses": COURSES_TABLES_CQL,
    "structure": STRUCTURE_TABLES_CQL,
    "enrollments": ENROLLMENTS_TABLES_CQL,
    "progress": PROGRESS_TABLES_CQL,
}


def _build_cluster(settings: Settings) -> Cluster:
    credentials = None
    if settings.cassandra_username and settings.cassandra_password:
        credentials = PlainTextAuthProvider(
            username=settings.cassandra_username,
            password=settings.cassandra_password,
        )
    return Cluster(
        contact_points=settings.cassandra_hosts,
        port=settings.cassandra_port,
        auth_provider=credentials,
        protocol_version=settings.cassandra_protocol_version,
        load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
        connect_timeout=settings.cassandra_connect_timeout,
    )


class CassandraConnection:
    """Process-wide cluster and session, shared by every repository."""

    _cluster: Cluster | None = None
    _session: Session | None = None

    @classmethod
    def connect(cls, settings: Settings | None = None) -> Session:
        """Open the session once; later calls return the same one.

        Raises:
            ConnectionError: If no contact point answers
        """
        if cls._session is not None:
            return cls._session

        settings = settings or get_settings()
        cls._cluster = _build_cluster(settings)
        try:
            cls._session = cls._cluster.connect()
        except (NoHostAvailable, OperationTimedOut) as e:
            logger.error(
                "cassandra_connection_failed",
                hosts=settings.cassandra_hosts,
                error=str(e),
            )
            cls._cluster.shutdown()
            cls._cluster = None
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
        )
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        session, cluster = cls._session, cls._cluster
        cls._session = cls._cluster = None
        if session is not None:
            session.shutdown()
        if cluster is not None:
            cluster.shutdown()
            logger.info("cassandra_disconnected")

    @classmethod
    def is_connected(cls) -> bool:
        return cls._session is not None and not cls._session.is_shutdown


def replication_options(settings: Settings) -> str:
    """Render the keyspace replication map for the current environment."""
    if settings.is_production:
        options = {"class": "NetworkTopologyStrategy", "datacenter1": 3}
    else:
        options = {
            "class": "SimpleStrategy",
            "replication_factor": settings.cassandra_replication_factor,
        }
    pairs = ", ".join(
        f"'{key}': {value!r}" if isinstance(value, str) else f"'{key}': {value}"
        for key, value in options.items()
    )
    return "{" + pairs + "}"


def create_schema(session: Session, settings: Settings) -> None:
    """Create the keyspace and every module's tables if missing."""
    keyspace = settings.cassandra_keyspace
    session.execute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {replication_options(settings)} "
        "AND durable_writes = true"
    )
    session.set_keyspace(keyspace)
    for module, statements in SCHEMA.items():
        for cql in statements:
            session.execute(cql.format(keyspace=keyspace))
        logger.debug("tables_ready", module=module, keyspace=keyspace)


def init_cassandra() -> Session:
    """Connect and make sure the schema exists."""
    settings = get_settings()
    session = CassandraConnection.connect(settings)
    create_schema(session, settings)
    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


def shutdown_cassandra() -> None:
    CassandraConnection.disconnect()
