from __future__ import annotations

import importlib

from .protocol import Connector


def load(connector_type: str) -> Connector:
    """
    Load a connector by type string, e.g. "hubspot".

    The package `connectors.<type>` must expose a `connector()` factory
    returning a protocol Connector.
    """
    if not connector_type or not isinstance(connector_type, str):
        raise ValueError("connector_type must be a non-empty string")

    mod_name = f"connectors.{connector_type.lower()}"
    module = importlib.import_module(mod_name)

    factory = getattr(module, "connector", None)
    if not callable(factory):
        raise TypeError(f"{mod_name} has no connector() factory")

    obj = factory()
    if not isinstance(obj, Connector):
        # duck-typing: allow objects that implement the interface even if not subclassed
        if not (hasattr(obj, "check") and hasattr(obj, "read")):
            raise TypeError(f"{mod_name}.connector() did not return a protocol Connector")
    return obj  # type: ignore[return-value]


# API compatibility alias
load_connector = load
