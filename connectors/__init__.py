"""
Package-level exports.

The HubSpot connector lives in `connectors/hubspot/`; the host-facing
protocol, loader, event bus and state helpers in `connectors/runtime/`.

  from connectors import load, ReadSelection
  hubspot = load("hubspot")
"""
from __future__ import annotations

from connectors.runtime.loader import load  # noqa: F401
from connectors.runtime.protocol import (  # noqa: F401
    Connector,
    ConnectorCapabilities,
    ReadResult,
    ReadSelection,
)

__all__ = ["Connector", "ConnectorCapabilities", "ReadResult", "ReadSelection", "load"]
