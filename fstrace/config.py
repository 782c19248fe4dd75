"""
Configuration for the instrumented proxies
"""

import logging
import socket
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# Same key the storage layer reads from its job configuration
STACK_TRACE_KEY = "fs.wrapper.stacktrace"

_TRUE_VALUES = {"true", "1", "yes", "on"}


def parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def resolve_node_address():
    """Return the local host address, or None when it cannot be resolved."""
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError as e:
        logger.debug(f"Could not resolve local address: {e}")
        return None


@dataclass(frozen=True)
class Capabilities:
    """Backend features the proxies may forward to.

    readahead: forward set_readahead hints to the backend stream instead of
    dropping them.
    """

    readahead: bool = False


@dataclass(frozen=True)
class TraceConfig:
    stack_trace: bool = False
    node_address: Optional[str] = field(default_factory=resolve_node_address)
    capabilities: Capabilities = field(default_factory=Capabilities)

    @classmethod
    def from_mapping(cls, conf, **overrides):
        """Build a config from a job configuration mapping."""
        conf = conf or {}
        return cls(stack_trace=parse_bool(conf.get(STACK_TRACE_KEY)), **overrides)
