"""Context object shared across worker threads."""

from dataclasses import dataclass

from server.bootstrap.config import ServerConfig
from server.transport.throttle import WorkerThrottle


@dataclass
class WorkerContext:
    """Dependencies shared across handler threads."""

    directory: str
    throttle: WorkerThrottle
    config: ServerConfig
