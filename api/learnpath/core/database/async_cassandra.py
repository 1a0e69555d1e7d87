"""Async Cassandra connection using cassandra-asyncio-driver.

The cassandra-asyncio-driver cluster hands out sessions that expose
``session.aexecute()`` on top of the regular cassandra-driver API.
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from learnpath.auth.models import AUTH_TABLES_CQL
from learnpath.catalog.models import CATALOG_TABLES_CQL
from learnpath.certificates.models import CERTIFICATE_TABLES_CQL
from learnpath.config.settings import get_settings
from learnpath.enrollments.models import ENROLLMENT_TABLES_CQL
from learnpath.progress.models import PROGRESS_TABLES_CQL


logger = structlog.get_logger(__name__)

# Module name -> table statements, created in this order at startup
SCHEMA_CQL: dict[str, list[str]] = {
    "auth": AUTH_TABLES_CQL,
    "catalog": CATALOG_TABLES_CQL,
    "enrollments": ENROLLMENT_TABLES_CQL,
    "progress": PROGRESS_TABLES_CQL,
    "certificates": CERTIFICATE_TABLES_CQL,
}


class AsyncCassandraConnection:
    """Process-wide cluster/session holder."""

    _cluster: Cluster | None = None
    _session = None  # Session from cassandra_asyncio

    @classmethod
    def connect(cls):
        """Connect to the cluster (synchronous) and return the session.

        Raises:
            ConnectionError: If the cluster cannot be reached
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
        )
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close session and cluster."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_cluster_closed")


async def init_keyspace(session, keyspace: str) -> None:
    """Create the keyspace if it does not exist."""
    settings = get_settings()

    if settings.is_production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"

    await session.aexecute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {{{replication}}} AND durable_writes = true"
    )
    logger.info("keyspace_ready", keyspace=keyspace)


async def init_tables(session, keyspace: str) -> None:
    """Create every module's tables."""
    for module, statements in SCHEMA_CQL.items():
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("tables_ready", module=module, keyspace=keyspace)


async def init_async_cassandra():
    """Connect and make sure keyspace and tables exist.

    Returns:
        Session with aexecute() support
    """
    settings = get_settings()
    session = AsyncCassandraConnection.connect()

    await init_keyspace(session, settings.cassandra_keyspace)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_tables(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    """Shutdown the Cassandra connection."""
    AsyncCassandraConnection.disconnect()
