# xrplops/transport/factory.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from xrplops.core.errors import ConfigError
from xrplops.model.node import Node
from xrplops.transport.base import Transport
from xrplops.transport.errors import TransportError
from xrplops.transport.reconnect import ReconnectingTransport
from xrplops.transport.registry import TransportDriverRegistry


RECONNECT_MAX_ATTEMPTS = 10


def build_transport(
    node: Node,
    registry: Optional[TransportDriverRegistry] = None,
    *,
    overrides: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> Transport:
    """
    Construct the transport for a node endpoint.
    Note: does NOT open the transport.
    """
    registry = registry or TransportDriverRegistry.default()
    params: Dict[str, Any] = {"url": node.url, "open_timeout": node.open_timeout_s}
    params.update(overrides or {})

    def _create() -> Transport:
        return registry.create(node.driver, **params)

    try:
        transport = _create()
    except (TransportError, TypeError) as e:
        # unknown driver key or constructor mismatch
        raise ConfigError(
            f"Failed to construct transport for {node.url} (driver='{node.driver}').",
            hint=str(e),
            details={"driver": node.driver, "url": node.url, "params": sorted(params)},
        ) from None

    if not node.reconnect:
        return transport

    # The wrapper dials through the factory, including the first dial.
    return ReconnectingTransport(_create, max_attempts=RECONNECT_MAX_ATTEMPTS, logger=logger)
