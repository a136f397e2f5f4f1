"""Cache store configuration management."""

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from mongocache.errors import CacheConfigurationError

DEFAULT_SERVER = "mongodb://localhost:27017"
DEFAULT_DATABASE = "cache"
DEFAULT_COLLECTION = "cache"


@dataclass
class CacheConfig:
    """Configuration for a MongoDB-backed cache store.

    Attributes:
        server: MongoDB connection URI
        database: Database holding the cache collection
        collection: Collection storing one document per cache id
        default_lifetime: Lifetime in seconds used when save() gets no
            specific lifetime (None = infinite)
        automatic_vacuum_factor: Compaction frequency after removals.
            0 disables it, 1 compacts after every removal, N > 1 compacts
            randomly once every N removals.
    """

    server: str = DEFAULT_SERVER
    database: str = DEFAULT_DATABASE
    collection: str = DEFAULT_COLLECTION
    default_lifetime: Optional[int] = 3600  # 1 hour
    automatic_vacuum_factor: int = 0

    def validate(self) -> None:
        """Check option values.

        Raises:
            CacheConfigurationError: If any option is out of range
        """
        if not self.database:
            raise CacheConfigurationError("Database name must not be empty")
        if not self.collection:
            raise CacheConfigurationError("Collection name must not be empty")
        if self.default_lifetime is not None and (
            isinstance(self.default_lifetime, bool)
            or not isinstance(self.default_lifetime, int)
        ):
            raise CacheConfigurationError(
                f"default_lifetime must be whole seconds, got {self.default_lifetime!r}"
            )
        if self.default_lifetime is not None and self.default_lifetime < 0:
            raise CacheConfigurationError(
                f"default_lifetime must be >= 0 or None, got {self.default_lifetime}"
            )
        if self.automatic_vacuum_factor < 0:
            raise CacheConfigurationError(
                "automatic_vacuum_factor must be >= 0, "
                f"got {self.automatic_vacuum_factor}"
            )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from a JSON file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            CacheConfig instance (defaults if the file does not exist)

        Raises:
            CacheConfigurationError: If the file is not valid JSON or has
                unknown keys
        """
        if config_path is None:
            config_path = Path.home() / ".mongocache" / "config.json"

        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "r") as f:
                data = json.load(f)
            config = cls(**data)
        except (json.JSONDecodeError, TypeError) as e:
            raise CacheConfigurationError(
                f"Invalid cache configuration in {config_path}: {e}"
            ) from e

        config.validate()
        return config

    def save(self, config_path: Path) -> None:
        """Save configuration to a JSON file.

        Args:
            config_path: Destination path; parent directories are created.
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            json.dump(asdict(self), f, indent=2)

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            MONGOCACHE_SERVER: MongoDB connection URI
            MONGOCACHE_DATABASE: Database name
            MONGOCACHE_COLLECTION: Collection name
            MONGOCACHE_LIFETIME: Default lifetime in seconds ("none" = infinite)
            MONGOCACHE_VACUUM_FACTOR: Automatic vacuum factor

        Returns:
            CacheConfig instance
        """
        config = cls()

        if os.getenv("MONGOCACHE_SERVER"):
            config.server = os.getenv("MONGOCACHE_SERVER")

        if os.getenv("MONGOCACHE_DATABASE"):
            config.database = os.getenv("MONGOCACHE_DATABASE")

        if os.getenv("MONGOCACHE_COLLECTION"):
            config.collection = os.getenv("MONGOCACHE_COLLECTION")

        try:
            lifetime = os.getenv("MONGOCACHE_LIFETIME")
            if lifetime:
                config.default_lifetime = (
                    None if lifetime.lower() == "none" else int(lifetime)
                )

            if os.getenv("MONGOCACHE_VACUUM_FACTOR"):
                config.automatic_vacuum_factor = int(
                    os.getenv("MONGOCACHE_VACUUM_FACTOR")
                )
        except ValueError as e:
            raise CacheConfigurationError(
                f"Invalid cache configuration in environment: {e}"
            ) from e

        config.validate()
        return config
