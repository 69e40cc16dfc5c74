"""Configuration models using Pydantic."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from snapwatch.core.errors import ConfigurationError


class EndpointWithREST(BaseModel):
    """A peer address paired with the REST mirror used to health-check it."""

    core_rest: str = ""  # may be empty: the peer is then never health-checked
    endpoint: str


class NetworkConfig(BaseModel):
    """Definition of one live network the local node joins."""

    artifacts_repository: str
    genesis_url: str
    binary_version_override: str = ""  # set when a patch release is deployed

    data_nodes_rest: list[str] = []
    rpc_peers: list[EndpointWithREST] = []
    seeds: list[str] = []
    bootstrap_peers: list[EndpointWithREST] = []

    # The run still aborts on resolution errors, but the result is marked skippable
    failure_tolerant: bool = False

    def validate_complete(self) -> None:
        """
        Check that the definition carries everything a run needs.

        Raises:
            ConfigurationError: If any required list or URL is empty
        """
        if not self.data_nodes_rest:
            raise ConfigurationError("no data nodes rest endpoints")
        if not self.bootstrap_peers:
            raise ConfigurationError("no bootstrap peers")
        if not self.rpc_peers:
            raise ConfigurationError("no rpc peers")
        if not self.seeds:
            raise ConfigurationError("no seeds")
        if not self.genesis_url:
            raise ConfigurationError("no genesis url")
        if not self.artifacts_repository:
            raise ConfigurationError("empty artifacts repository")

    @property
    def bootstrap_peer_addresses(self) -> list[str]:
        """Bootstrap peer multiaddresses without their REST mirrors."""
        return [peer.endpoint for peer in self.bootstrap_peers]

    @classmethod
    def from_yaml(cls, path: Path | str) -> NetworkConfig:
        """Load a network definition from a YAML (or JSON) file."""
        import yaml

        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Network config file not found: {path}")

        with path.open() as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NetworkConfig:
        """Create a network definition from a dictionary."""
        from pydantic import ValidationError

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid network config: {e}") from e


class ContainerConfig(BaseModel):
    """What the container runtime needs to start one container."""

    name: str
    image: str
    environment: dict[str, str] = {}
    command: list[str] = []
    ports: dict[int, int] = {}  # container port -> host port


class PostgreSQLCredentials(BaseModel):
    """Credentials shared by the database container and the data-node config."""

    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    user: str = "vega"
    password: str = "vega"
    database: str = "vega"


class NetworkQueryConfig(BaseModel):
    """REST query behaviour and endpoint health thresholds."""

    request_timeout: float = Field(default=5.0, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=0.5, ge=0)
    healthy_blocks_threshold: int = Field(default=450, ge=0)
    healthy_time_threshold: float = Field(default=300.0, ge=0)  # seconds
    snapshot_window_min_offset: int = Field(default=500, ge=0)
    snapshot_window_max_offset: int = Field(default=6000, ge=0)


class SupervisorConfig(BaseModel):
    """Component supervisor timing."""

    health_check_interval: float = Field(default=30.0, gt=0)
    stop_timeout: float = Field(default=10.0, gt=0)


class WatchdogConfig(BaseModel):
    """Node watchdog timing and lag thresholds."""

    poll_interval: float = Field(default=5.0, gt=0)
    liveness_timeout: float = Field(default=30.0, gt=0)
    max_blocks_lag: int = Field(default=500, ge=0)
    local_node_rest: str = "http://localhost:3008"


class LogConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    console: bool = True
    max_size_mb: int = Field(default=300, ge=1)
    backup_count: int = Field(default=1, ge=0)
    failure_tail_limit: int = Field(default=5000, ge=1)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPWATCH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    work_dir: Path = Path("/tmp/snapshot-testing")
    environment: str = "mainnet"
    config_path: str | None = None
    external_address: str = ""

    network: NetworkQueryConfig = Field(default_factory=NetworkQueryConfig)
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)
    watchdog: WatchdogConfig = Field(default_factory=WatchdogConfig)
    postgresql: PostgreSQLCredentials = Field(default_factory=PostgreSQLCredentials)
    logs: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> Settings:
        """Load settings from YAML file."""
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open() as f:
            data = yaml.safe_load(f)

        return cls(**data) if data else cls()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump()
