"""
Configuration for the grant store.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class GrantStoreConfig:
    """Grant store configuration settings"""
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = ""
    socket_timeout: Optional[float] = None
    connection_pool_kwargs: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "GrantStoreConfig":
        """Create configuration from environment variables"""
        timeout = os.getenv("GRANTSTORE_SOCKET_TIMEOUT")
        return cls(
            redis_url=os.getenv("GRANTSTORE_REDIS_URL", "redis://localhost:6379/0"),
            key_prefix=os.getenv("GRANTSTORE_KEY_PREFIX", ""),
            socket_timeout=float(timeout) if timeout else None,
        )

    def validate(self) -> bool:
        """Validate the configuration"""
        if not self.redis_url:
            raise ValueError("redis_url is required")
        if self.socket_timeout is not None and self.socket_timeout <= 0:
            raise ValueError("socket_timeout must be positive")
        return True
