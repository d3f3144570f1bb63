from .connector import HubSpotConnector, connector
from .pipeline import run_pipeline, test_connection

__all__ = ["HubSpotConnector", "connector", "run_pipeline", "test_connection"]
