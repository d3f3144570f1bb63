# connectors/hubspot/pipeline.py
from __future__ import annotations

import os
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import dlt

from .auth import OAuthTokenRefresher, refresher_for
from .config import HubSpotConfig, load_config
from .executor import RequestExecutor, executor_for
from .pages import fetch_page
from .profiles import EndpointProfile, ProfileTable, build_profile_table
from .walker import BatchWalker, iter_records

# =============================================================================
# Public API used by connector.py
# =============================================================================


def config_for(creds: Dict[str, Any], object_type: Optional[str] = None) -> HubSpotConfig:
    data = dict(creds or {})
    if object_type is not None:
        data["object_type"] = object_type
    return load_config(data)


def test_connection(config: HubSpotConfig, *, executor: Optional[RequestExecutor] = None) -> str:
    """Fetch the first page of the configured object type; errors propagate."""
    profile = config.profile()
    executor = executor or executor_for(config)
    page = fetch_page(executor, profile, config)
    return f"HubSpot OK: {profile.object_type} returned {len(page.items)} item(s) on the first page"


def selected_profiles(
    creds: Dict[str, Any],
    streams: Optional[Sequence[str]],
    profiles: ProfileTable,
) -> List[EndpointProfile]:
    if streams:
        out: List[EndpointProfile] = []
        for name in streams:
            p = profiles.resolve(name)
            if p not in out:
                out.append(p)
        return out
    return [profiles.resolve((creds or {}).get("object_type"))]


def run_pipeline(
    *,
    creds: Dict[str, Any],
    schema: str,
    state: Dict[str, Any],
    destination: Optional[str] = None,
    object_types: Optional[Sequence[str]] = None,
    executor: Optional[RequestExecutor] = None,
) -> Tuple[str, Optional[Dict[str, Any]], Dict[str, Any]]:
    """
    One-shot load: every selected object type is drained into its own dlt table.

    Returns (report, refreshed_creds, state_updates). Batch reads always start
    from the first page, so there is nothing to put back into state.
    """
    destination = destination or os.getenv("DLT_DESTINATION", None)
    profiles = build_profile_table()
    chosen = selected_profiles(creds, object_types, profiles)

    # One token fetch per run, shared by every resource.
    refresher: Optional[OAuthTokenRefresher] = None
    walkers: List[BatchWalker] = []
    resources: List[Any] = []
    for profile in chosen:
        config = config_for(creds, profile.object_type)
        if executor is None:
            refresher = refresher or refresher_for(config)
            executor = executor_for(config, refresher=refresher)
        walker = iter_records(executor, profile, config)
        walkers.append(walker)
        resources.append(_resource_records(walker, name=profile.stream_name))

    p = dlt.pipeline(pipeline_name="hubspot", dataset_name=schema, destination=destination)
    info = p.run(resources)

    loads = getattr(info, "loads_ids", None)
    loads_txt = f"{len(loads)} load package(s)" if isinstance(loads, list) else "load step completed"

    report_lines = ["HubSpot sync completed.", f"Pipeline hubspot {loads_txt}"]
    for w in walkers:
        report_lines.append(f"{w.object_type}: {w.records_emitted} record(s)")

    return "\n".join(report_lines), None, {}


def _resource_records(walker: BatchWalker, *, name: str) -> Any:
    @dlt.resource(name=name, write_disposition="append")
    def _gen() -> Iterable[Dict[str, Any]]:
        for record in walker:
            yield record.as_row()

    return _gen()
