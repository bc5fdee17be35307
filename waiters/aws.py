"""
AWS readiness waits as Pulumi dynamic resources.

Two waits gate downstream resources on AWS side effects that Pulumi itself
does not track:

- **LambdaEniWait**: blocks until every subnet of a VPC-attached Lambda has a
  hyperplane network interface for the function's security group, then
  exposes ``eni_ids`` (one per subnet, in declared subnet order) so callers
  can attach one Elastic IP per interface.
- **EfsMountTargetWait**: blocks until every mount target of an EFS file
  system reports ``available``, sleeps a stabilization buffer, and echoes
  ``file_system_id`` for use as a dependency.

Inputs are parsed into typed, validated specs (``EniWaitSpec``,
``MountTargetWaitSpec``) before any AWS call. Only selector fields force a
replacement on change; editing timeouts does not re-run a finished wait.
"""

import functools
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

import pulumi
from pulumi.dynamic import CreateResult, DiffResult, Resource, ResourceProvider

from waiters import _logging
from waiters._predicates import AllMatchRule, CoverageRule, ordered_values
from waiters._probes import (
    LAMBDA_INTERFACE_TYPE,
    MountTargetProber,
    NetworkInterfaceProber,
    make_client,
)
from waiters._reconcile import ReconciliationResult, Reconciler, WaitTiming

DEFAULT_ENI_TIMING = WaitTiming(poll_interval=5, timeout=300)
DEFAULT_EFS_TIMING = WaitTiming(poll_interval=10, timeout=300, stabilization_delay=30)

EFS_AVAILABLE = "available"

# Prop names shared by both waits; values are seconds.
_TIMING_PROPS: dict[str, str] = {
    "poll_interval": "poll_seconds",
    "timeout": "timeout_seconds",
    "stabilization_delay": "stabilization_seconds",
    "jitter": "jitter",
}


def _timing_from_props(props: Mapping[str, Any], default: WaitTiming) -> WaitTiming:
    values = {
        attr: float(props[key]) if props.get(key) is not None else getattr(default, attr)
        for attr, key in _TIMING_PROPS.items()
    }
    return WaitTiming(**values)


def _timing_props(timing: WaitTiming) -> dict[str, float]:
    return {key: getattr(timing, attr) for attr, key in _TIMING_PROPS.items()}


def _timing(
    default: WaitTiming,
    poll_seconds: float | None,
    timeout_seconds: float | None,
    stabilization_seconds: float | None,
    jitter: float | None,
) -> WaitTiming:
    return _timing_from_props(
        {
            "poll_seconds": poll_seconds,
            "timeout_seconds": timeout_seconds,
            "stabilization_seconds": stabilization_seconds,
            "jitter": jitter,
        },
        default,
    )


def _require_id(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string, got {value!r}")
    return value


def _normalize(value: Any) -> Any:
    return list(value) if isinstance(value, (list, tuple)) else value


def _selector_diff(
    keys: Sequence[str],
    olds: Mapping[str, Any],
    news: Mapping[str, Any],
) -> DiffResult:
    replaces = [k for k in keys if _normalize(olds.get(k)) != _normalize(news.get(k))]
    return DiffResult(
        changes=bool(replaces),
        replaces=replaces,
        delete_before_replace=False,
    )


@dataclass(frozen=True)
class EniWaitSpec:
    """
    What a Lambda ENI wait looks for.

    Attributes:
        security_group_id: Security group attached to the Lambda function.
        subnet_ids: Subnets the function runs in; one interface is expected per
            subnet. Duplicates are dropped, first occurrence keeps its place.
        timing: Poll interval, timeout and stabilization delay.
        region: AWS region; None uses boto3's default resolution.
        profile: Named AWS profile; None uses the default credential chain.
        probe_retries: Extra attempts per failed describe call (0 = none).
    """

    SELECTOR: ClassVar[tuple[str, ...]] = ("security_group_id", "subnet_ids")

    security_group_id: str
    subnet_ids: tuple[str, ...]
    timing: WaitTiming = DEFAULT_ENI_TIMING
    region: str | None = None
    profile: str | None = None
    probe_retries: int = 0
    interface_type: str = LAMBDA_INTERFACE_TYPE

    def __post_init__(self):
        _require_id(self.security_group_id, "security_group_id")
        if isinstance(self.subnet_ids, str):
            raise ValueError("subnet_ids must be a sequence of subnet IDs, not a string")
        subnets = tuple(
            dict.fromkeys(_require_id(s, "subnet_ids entry") for s in self.subnet_ids)
        )
        if not subnets:
            raise ValueError("subnet_ids must contain at least one subnet")
        if self.probe_retries < 0:
            raise ValueError(f"probe_retries must be >= 0, got {self.probe_retries}")
        object.__setattr__(self, "subnet_ids", subnets)

    @classmethod
    def from_props(cls, props: Mapping[str, Any]) -> "EniWaitSpec":
        return cls(
            security_group_id=props.get("security_group_id"),
            subnet_ids=props.get("subnet_ids") or (),
            timing=_timing_from_props(props, DEFAULT_ENI_TIMING),
            region=props.get("region"),
            profile=props.get("profile"),
            probe_retries=int(props.get("probe_retries") or 0),
        )

    @property
    def description(self) -> str:
        return (
            f"{len(self.subnet_ids)} Lambda ENIs (one per subnet) "
            f"(SG={self.security_group_id})"
        )


@dataclass(frozen=True)
class MountTargetWaitSpec:
    """
    What an EFS mount-target wait looks for.

    Attributes:
        file_system_id: EFS file system whose mount targets must be available.
        timing: Poll interval, timeout and stabilization delay.
        region: AWS region; None uses boto3's default resolution.
        profile: Named AWS profile; None uses the default credential chain.
        probe_retries: Extra attempts per failed describe call (0 = none).
    """

    SELECTOR: ClassVar[tuple[str, ...]] = ("file_system_id",)

    file_system_id: str
    timing: WaitTiming = DEFAULT_EFS_TIMING
    region: str | None = None
    profile: str | None = None
    probe_retries: int = 0

    def __post_init__(self):
        _require_id(self.file_system_id, "file_system_id")
        if self.probe_retries < 0:
            raise ValueError(f"probe_retries must be >= 0, got {self.probe_retries}")

    @classmethod
    def from_props(cls, props: Mapping[str, Any]) -> "MountTargetWaitSpec":
        return cls(
            file_system_id=props.get("file_system_id"),
            timing=_timing_from_props(props, DEFAULT_EFS_TIMING),
            region=props.get("region"),
            profile=props.get("profile"),
            probe_retries=int(props.get("probe_retries") or 0),
        )

    @property
    def description(self) -> str:
        return f"EFS mount targets of {self.file_system_id}"


def wait_for_enis(
    spec: EniWaitSpec,
    client: Any = None,
    **reconciler_kwargs: Any,
) -> ReconciliationResult[list[str]]:
    """
    Run an ENI wait to completion and return the interface IDs.

    ``client`` defaults to an EC2 client for the wait's region and profile.
    Extra keyword arguments (``clock``, ``waiter``) go to ``Reconciler``;
    setting a ``threading.Event`` passed as ``waiter`` cancels the wait.
    """
    if client is None:
        client = make_client("ec2", spec.region, spec.profile, spec.timing.probe_timeout)
    prober = NetworkInterfaceProber(
        client, spec.security_group_id, spec.subnet_ids, spec.interface_type
    )
    reconciler = Reconciler(
        spec.description,
        prober,
        CoverageRule(len(spec.subnet_ids), noun="subnets"),
        functools.partial(ordered_values, key_order=spec.subnet_ids),
        spec.timing,
        probe_attempts=spec.probe_retries + 1,
        **reconciler_kwargs,
    )
    return reconciler.run()


def wait_for_mount_targets(
    spec: MountTargetWaitSpec,
    client: Any = None,
    **reconciler_kwargs: Any,
) -> ReconciliationResult[str]:
    """
    Run a mount-target wait to completion; the result value is the file system ID.

    ``client`` defaults to an EFS client for the wait's region and profile.
    Extra keyword arguments (``clock``, ``waiter``) go to ``Reconciler``.
    """
    if client is None:
        client = make_client("efs", spec.region, spec.profile, spec.timing.probe_timeout)
    reconciler = Reconciler(
        spec.description,
        MountTargetProber(client, spec.file_system_id),
        AllMatchRule(EFS_AVAILABLE, noun="mount targets"),
        lambda _state: spec.file_system_id,
        spec.timing,
        probe_attempts=spec.probe_retries + 1,
        **reconciler_kwargs,
    )
    return reconciler.run()


class LambdaEniWaitProvider(ResourceProvider):
    def create(self, props: dict[str, Any]) -> CreateResult:
        _logging.install()
        spec = EniWaitSpec.from_props(props)
        eni_ids = wait_for_enis(spec).value
        return CreateResult(
            id_=",".join(eni_ids),
            outs={**props, "subnet_ids": list(spec.subnet_ids), "eni_ids": eni_ids},
        )

    def diff(self, _id: str, olds: dict[str, Any], news: dict[str, Any]) -> DiffResult:
        return _selector_diff(EniWaitSpec.SELECTOR, olds, news)


class EfsMountTargetWaitProvider(ResourceProvider):
    def create(self, props: dict[str, Any]) -> CreateResult:
        _logging.install()
        spec = MountTargetWaitSpec.from_props(props)
        file_system_id = wait_for_mount_targets(spec).value
        return CreateResult(
            id_=f"wait-for-{file_system_id}",
            outs={**props, "file_system_id": file_system_id},
        )

    def diff(self, _id: str, olds: dict[str, Any], news: dict[str, Any]) -> DiffResult:
        return _selector_diff(MountTargetWaitSpec.SELECTOR, olds, news)


def _aws_target(region: str | None, profile: str | None) -> dict[str, str | None]:
    # Resolved here, in the program, so the provider never reads stack config.
    aws_config = pulumi.Config("aws")
    return {
        "region": region or aws_config.get("region"),
        "profile": profile or aws_config.get("profile"),
    }


class LambdaEniWait(Resource):
    """
    Wait for one Lambda hyperplane ENI per subnet.

    The provider does not react to the engine cancelling an update: an aborted
    ``pulumi up`` stops the wait only by ending the provider process.
    Cancellation is only available to library callers: ``Reconciler.cancel()``,
    or setting the ``waiter`` event passed to ``wait_for_enis``.

    Outputs:
        eni_ids: Interface IDs in the order of ``subnet_ids``.
    """

    eni_ids: pulumi.Output[list[str]]

    def __init__(
        self,
        name: str,
        security_group_id: pulumi.Input[str],
        subnet_ids: pulumi.Input[Sequence[pulumi.Input[str]]],
        timeout_seconds: float | None = None,
        poll_seconds: float | None = None,
        stabilization_seconds: float | None = None,
        jitter: float | None = None,
        probe_retries: int = 0,
        region: str | None = None,
        profile: str | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        # Bad timing fails the preview, not the provider run.
        timing = _timing(
            DEFAULT_ENI_TIMING, poll_seconds, timeout_seconds, stabilization_seconds, jitter
        )
        props = {
            "security_group_id": security_group_id,
            "subnet_ids": subnet_ids,
            "probe_retries": probe_retries,
            "eni_ids": None,
            **_timing_props(timing),
            **_aws_target(region, profile),
        }
        super().__init__(LambdaEniWaitProvider(), name, props, opts)


class EfsMountTargetWait(Resource):
    """
    Wait for every mount target of an EFS file system to become available.

    Like ``LambdaEniWait``, an aborted ``pulumi up`` stops the wait only by
    ending the provider process; ``Reconciler.cancel()`` is the library path.

    Outputs:
        file_system_id: The input file system ID, resolved once the wait is done.
    """

    file_system_id: pulumi.Output[str]

    def __init__(
        self,
        name: str,
        file_system_id: pulumi.Input[str],
        timeout_seconds: float | None = None,
        poll_seconds: float | None = None,
        stabilization_seconds: float | None = None,
        jitter: float | None = None,
        probe_retries: int = 0,
        region: str | None = None,
        profile: str | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        timing = _timing(
            DEFAULT_EFS_TIMING, poll_seconds, timeout_seconds, stabilization_seconds, jitter
        )
        props = {
            "file_system_id": file_system_id,
            "probe_retries": probe_retries,
            **_timing_props(timing),
            **_aws_target(region, profile),
        }
        super().__init__(EfsMountTargetWaitProvider(), name, props, opts)
