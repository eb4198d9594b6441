"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class GraphDialect(str, Enum):
    """Cypher dialect spoken by the graph store."""

    NEO4J = "neo4j"
    MEMGRAPH = "memgraph"


class PostgresSettings(BaseSettings):
    """Relational source-of-truth configuration."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = "localhost"
    port: int = 5432
    user: str = "tia"
    password: SecretStr = SecretStr("tia-dev-password")
    db: str = "tia-dev"

    # Full SQLAlchemy async URL; overrides the parts above when set
    # (e.g. mysql+aiomysql://root:pw@database:3306/tia-dev)
    dsn: SecretStr | None = None

    @property
    def async_url(self) -> str:
        """Generate async SQLAlchemy connection URL."""
        if self.dsn is not None:
            return self.dsn.get_secret_value()
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.db}"


class Neo4jSettings(BaseSettings):
    """Graph store configuration (Neo4j or Memgraph over Bolt)."""

    model_config = SettingsConfigDict(env_prefix="NEO4J_", populate_by_name=True)

    host: str = "localhost"
    bolt_port: int = Field(default=7687, alias="NEO4J_BOLT_PORT")
    user: str = "neo4j"
    password: SecretStr = SecretStr("partner_graph_password")
    database: str | None = None
    auth_enabled: bool = True
    dialect: GraphDialect = GraphDialect.NEO4J
    max_connection_pool_size: int = 50

    # Full Bolt URI; overrides host/bolt_port when set
    uri_override: str | None = Field(default=None, alias="NEO4J_URI")

    @property
    def uri(self) -> str:
        """Generate Bolt URI."""
        if self.uri_override:
            return self.uri_override
        return f"bolt://{self.host}:{self.bolt_port}"


class KafkaSettings(BaseSettings):
    """Kafka event streaming configuration."""

    model_config = SettingsConfigDict(env_prefix="KAFKA_")

    bootstrap_servers: str = "localhost:9092"
    security_protocol: str = "PLAINTEXT"


class SyncSettings(BaseSettings):
    """CDC graph synchronizer configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    # Debezium names topics <server>.<database>.<table>
    topic_prefix: str = "tia-db.tia-dev"
    topics: str = ""
    group_id: str = "kg-builder-group"
    auto_offset_reset: str = "earliest"
    poll_timeout_ms: int = 1000
    max_poll_records: int = 500

    connect_attempts: int = Field(default=5, ge=1)
    connect_backoff_seconds: float = Field(default=2.0, ge=0.0)

    bulk_load_enabled: bool = True
    # Periodic reloads run on the consume task between polls, so a reload
    # longer than max_poll_interval_ms gets this member evicted from the
    # group. Raise SYNC_MAX_POLL_INTERVAL_MS above the slowest full reload.
    reload_interval_seconds: float = Field(default=0.0, ge=0.0)
    max_poll_interval_ms: int = Field(default=300000, ge=1)

    def topic_list(self, tables: list[str]) -> list[str]:
        """Explicit topics when configured, otherwise one topic per table."""
        explicit = [t.strip() for t in self.topics.split(",") if t.strip()]
        if explicit:
            return explicit
        return [f"{self.topic_prefix}.{table}" for table in tables]


class RecommendationSettings(BaseSettings):
    """Recommendation engine configuration."""

    model_config = SettingsConfigDict(env_prefix="RECOMMENDATION_")

    max_results: int = Field(default=20, ge=1)
    tech_skill_category: str = "Technology"
    business_skill_category: str = "Business"


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "*"
    allow_credentials: bool = False

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    connection_analyzer: int = Field(default=8082, alias="CONNECTION_ANALYZER_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Data stores
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    neo4j: Neo4jSettings = Field(default_factory=Neo4jSettings)
    kafka: KafkaSettings = Field(default_factory=KafkaSettings)

    # Pipelines
    sync: SyncSettings = Field(default_factory=SyncSettings)
    recommendation: RecommendationSettings = Field(default_factory=RecommendationSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
