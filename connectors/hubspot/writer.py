# connectors/hubspot/writer.py
from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Union

import requests

from .config import HubSpotConfig
from .errors import ConfigurationError
from .events import info
from .executor import HttpRequest, RequestExecutor, RetryPolicy, write_policy
from .profiles import ProfileTable, build_profile_table

WriteRecord = Union[str, Mapping[str, Any]]


class WriteSubmitter:
    """
    One record, one POST, one outcome.

    Server errors are retried with doubling delays until the write budget runs
    out; the last failure is then raised as RequestFailedError.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        config: HubSpotConfig,
        *,
        profiles: Optional[ProfileTable] = None,
        policy: Optional[RetryPolicy] = None,
    ):
        self.executor = executor
        self.config = config
        self.profiles = profiles or build_profile_table()
        self.policy = policy or write_policy(config)

    def submit(self, record: WriteRecord, object_type: Optional[str] = None) -> requests.Response:
        profile = self.profiles.lookup(object_type or self.config.object_type)
        url = self.config.write_url(profile)

        if isinstance(record, str):
            body = record
        elif isinstance(record, Mapping):
            body = json.dumps(dict(record), separators=(",", ":"), ensure_ascii=False)
        else:
            raise ConfigurationError(f"Write record must be JSON text or a mapping, got {type(record).__name__}")

        request = HttpRequest(
            method="POST",
            url=url,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            body=body,
            stream=profile.stream_name,
        )
        resp = self.executor.execute(request, self.policy)
        info("write.record.ok", stream=profile.stream_name, status=resp.status_code)
        return resp

    def submit_row(self, row: Mapping[str, Any], object_type: Optional[str] = None) -> requests.Response:
        field = self.config.object_field
        if field not in row:
            raise ConfigurationError(f"Row has no '{field}' field to write")
        value = row[field]
        if value is None:
            raise ConfigurationError(f"Row field '{field}' is null")
        return self.submit(value if isinstance(value, (str, Mapping)) else str(value), object_type)
