"""
State probers: one read-only describe call per poll, mapped to a snapshot.

Probers are stateless adapters. They surface any botocore failure as a
``ProbeError`` without retrying; retry policy belongs to the poll loop (see
``Reconciler``). Clients are built with botocore's own retries disabled and a
connect/read timeout shorter than the poll interval, so one hung call cannot
eat the whole wait budget.
"""

import logging
from collections.abc import Sequence
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from waiters._predicates import first_seen
from waiters.errors import ProbeError

logger = logging.getLogger(__name__)

# Interface type AWS assigns to the hyperplane ENIs of VPC-attached Lambdas.
LAMBDA_INTERFACE_TYPE = "lambda"


def make_client(
    service: str,
    region: str | None = None,
    profile: str | None = None,
    probe_timeout: float = 5.0,
) -> Any:
    """
    Build a boto3 client for probing.

    Region and profile fall back to boto3's usual resolution (environment,
    shared config) when None.
    """
    session = boto3.Session(profile_name=profile, region_name=region)
    config = Config(
        connect_timeout=probe_timeout,
        read_timeout=probe_timeout,
        retries={"max_attempts": 0, "mode": "standard"},
    )
    return session.client(service, config=config)


class NetworkInterfaceProber:
    """
    Snapshot of subnet ID -> first network interface ID for one security group.

    Only interfaces of ``interface_type`` in the given subnets are considered.
    """

    operation = "DescribeNetworkInterfaces"

    def __init__(
        self,
        client: Any,
        security_group_id: str,
        subnet_ids: Sequence[str],
        interface_type: str = LAMBDA_INTERFACE_TYPE,
    ):
        self._client = client
        self._filters = [
            {"Name": "group-id", "Values": [security_group_id]},
            {"Name": "interface-type", "Values": [interface_type]},
            {"Name": "subnet-id", "Values": list(subnet_ids)},
        ]

    def __call__(self) -> dict[str, str]:
        try:
            paginator = self._client.get_paginator("describe_network_interfaces")
            pairs = [
                (eni.get("SubnetId"), eni.get("NetworkInterfaceId"))
                for page in paginator.paginate(Filters=self._filters)
                for eni in page.get("NetworkInterfaces", [])
            ]
        except (ClientError, BotoCoreError) as exc:
            raise ProbeError(self.operation, str(exc)) from exc

        state = first_seen(pairs)
        logger.debug("Found %d ENIs, %d unique subnets", len(pairs), len(state))
        return state


class MountTargetProber:
    """Snapshot of mount-target ID -> lifecycle state for one EFS file system."""

    operation = "DescribeMountTargets"

    def __init__(self, client: Any, file_system_id: str):
        self._client = client
        self._file_system_id = file_system_id

    def __call__(self) -> dict[str, str]:
        pairs: list[tuple[str | None, str | None]] = []
        marker = None
        try:
            while True:
                kwargs = {"FileSystemId": self._file_system_id}
                if marker:
                    kwargs["Marker"] = marker
                resp = self._client.describe_mount_targets(**kwargs)
                pairs.extend(
                    (mt.get("MountTargetId"), mt.get("LifeCycleState"))
                    for mt in resp.get("MountTargets", [])
                )
                marker = resp.get("NextMarker")
                if not marker:
                    break
        except (ClientError, BotoCoreError) as exc:
            raise ProbeError(self.operation, str(exc)) from exc

        return first_seen(pairs)
