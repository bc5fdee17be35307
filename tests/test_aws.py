"""Tests for typed wait specs, wait runners and dynamic providers"""

import threading

import pytest
from botocore.stub import Stubber
from conftest import FakeClock

from waiters import aws as waiters_aws
from waiters._reconcile import WaitTiming
from waiters.aws import (
    DEFAULT_EFS_TIMING,
    DEFAULT_ENI_TIMING,
    EfsMountTargetWaitProvider,
    EniWaitSpec,
    LambdaEniWaitProvider,
    MountTargetWaitSpec,
    wait_for_enis,
    wait_for_mount_targets,
)
from waiters.errors import ProbeError, WaitCancelledError, WaitTimeoutError

SG = "sg-0123456789abcdef0"
SUBNET_A = "subnet-0aaaaaaaaaaaaaaa1"
SUBNET_B = "subnet-0bbbbbbbbbbbbbbb2"
ENI_A = "eni-0aaaaaaaaaaaaaaa1"
ENI_B = "eni-0bbbbbbbbbbbbbbb2"
FS = "fs-0123456789abcdef0"
OTHER_FS = "fs-0fedcba9876543210"
MT_1 = "fsmt-0123456789abcdef1"
MT_2 = "fsmt-0123456789abcdef2"


def _eni(eni_id, subnet_id):
    return {"NetworkInterfaceId": eni_id, "SubnetId": subnet_id}


def _mount_target(mt_id, state):
    return {
        "MountTargetId": mt_id,
        "FileSystemId": FS,
        "SubnetId": SUBNET_A,
        "LifeCycleState": state,
    }


class TestEniWaitSpec:
    def test_defaults(self):
        spec = EniWaitSpec(SG, (SUBNET_A,))
        assert spec.timing == DEFAULT_ENI_TIMING
        assert spec.probe_retries == 0

    def test_duplicate_subnets_are_dropped_in_order(self):
        spec = EniWaitSpec(SG, [SUBNET_B, SUBNET_A, SUBNET_B])
        assert spec.subnet_ids == (SUBNET_B, SUBNET_A)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"security_group_id": "", "subnet_ids": [SUBNET_A]},
            {"security_group_id": None, "subnet_ids": [SUBNET_A]},
            {"security_group_id": SG, "subnet_ids": []},
            {"security_group_id": SG, "subnet_ids": SUBNET_A},
            {"security_group_id": SG, "subnet_ids": [SUBNET_A, ""]},
            {"security_group_id": SG, "subnet_ids": [SUBNET_A], "probe_retries": -1},
        ],
    )
    def test_rejects_invalid_input(self, kwargs):
        with pytest.raises(ValueError):
            EniWaitSpec(**kwargs)

    def test_from_props(self):
        props = {
            "__provider": "serialized",
            "security_group_id": SG,
            "subnet_ids": [SUBNET_A, SUBNET_B],
            "timeout_seconds": 120.0,
            "poll_seconds": None,
            "probe_retries": 2.0,
            "region": "eu-central-1",
            "eni_ids": None,
        }
        spec = EniWaitSpec.from_props(props)

        assert spec.subnet_ids == (SUBNET_A, SUBNET_B)
        assert spec.timing == WaitTiming(poll_interval=5, timeout=120)
        assert spec.probe_retries == 2
        assert spec.region == "eu-central-1"
        assert spec.profile is None


class TestMountTargetWaitSpec:
    def test_defaults(self):
        spec = MountTargetWaitSpec(FS)
        assert spec.timing == DEFAULT_EFS_TIMING
        assert spec.timing.stabilization_delay == 30

    def test_rejects_missing_file_system(self):
        with pytest.raises(ValueError):
            MountTargetWaitSpec.from_props({})

    def test_from_props_overrides_stabilization(self):
        spec = MountTargetWaitSpec.from_props(
            {"file_system_id": FS, "timeout_seconds": 600, "stabilization_seconds": 120}
        )
        assert spec.timing == WaitTiming(poll_interval=10, timeout=600, stabilization_delay=120)


class TestWaitForEnis:
    def test_returns_ids_in_subnet_order(self, ec2):
        clock = FakeClock()
        spec = EniWaitSpec(SG, (SUBNET_A, SUBNET_B))
        with Stubber(ec2) as stubber:
            stubber.add_response(
                "describe_network_interfaces",
                {"NetworkInterfaces": [_eni(ENI_B, SUBNET_B)]},
            )
            stubber.add_response(
                "describe_network_interfaces",
                {"NetworkInterfaces": [_eni(ENI_B, SUBNET_B), _eni(ENI_A, SUBNET_A)]},
            )
            result = wait_for_enis(spec, client=ec2, clock=clock, waiter=clock)

        assert result.value == [ENI_A, ENI_B]
        assert result.polls == 2
        assert clock.sleeps == [5]

    def test_timeout_reports_coverage(self, ec2):
        clock = FakeClock()
        spec = EniWaitSpec(SG, (SUBNET_A, SUBNET_B), timing=WaitTiming(poll_interval=5, timeout=5))
        with Stubber(ec2) as stubber:
            for _ in range(2):
                stubber.add_response(
                    "describe_network_interfaces",
                    {"NetworkInterfaces": [_eni(ENI_A, SUBNET_A)]},
                )
            with pytest.raises(WaitTimeoutError) as excinfo:
                wait_for_enis(spec, client=ec2, clock=clock, waiter=clock)

        assert f"1/2 subnets: {SUBNET_A}:{ENI_A}" in str(excinfo.value)

    def test_retries_absorb_a_throttled_call(self, ec2):
        clock = FakeClock()
        spec = EniWaitSpec(SG, (SUBNET_A,), probe_retries=1)
        with Stubber(ec2) as stubber:
            stubber.add_client_error(
                "describe_network_interfaces",
                service_error_code="RequestLimitExceeded",
                http_status_code=503,
            )
            stubber.add_response(
                "describe_network_interfaces",
                {"NetworkInterfaces": [_eni(ENI_A, SUBNET_A)]},
            )
            result = wait_for_enis(spec, client=ec2, clock=clock, waiter=clock)

        assert result.value == [ENI_A]
        assert result.polls == 1

    def test_without_retries_a_failed_call_aborts(self, ec2):
        clock = FakeClock()
        spec = EniWaitSpec(SG, (SUBNET_A,))
        with Stubber(ec2) as stubber:
            stubber.add_client_error(
                "describe_network_interfaces",
                service_error_code="RequestLimitExceeded",
                http_status_code=503,
            )
            with pytest.raises(ProbeError):
                wait_for_enis(spec, client=ec2, clock=clock, waiter=clock)

    def test_set_waiter_event_cancels_before_any_call(self, ec2):
        cancelled = threading.Event()
        cancelled.set()
        with Stubber(ec2):
            with pytest.raises(WaitCancelledError):
                wait_for_enis(EniWaitSpec(SG, (SUBNET_A,)), client=ec2, waiter=cancelled)


class TestWaitForMountTargets:
    def test_stabilizes_then_echoes_file_system(self, efs):
        clock = FakeClock()
        spec = MountTargetWaitSpec(FS)
        with Stubber(efs) as stubber:
            stubber.add_response(
                "describe_mount_targets",
                {"MountTargets": [_mount_target(MT_1, "creating")]},
            )
            stubber.add_response(
                "describe_mount_targets",
                {"MountTargets": [_mount_target(MT_1, "available")]},
            )
            result = wait_for_mount_targets(spec, client=efs, clock=clock, waiter=clock)

        assert result.value == FS
        assert result.state == {MT_1: "available"}
        assert clock.sleeps == [10, 30]


class TestLambdaEniWaitProvider:
    def test_create_outputs_eni_ids(self, ec2, monkeypatch):
        monkeypatch.setattr(waiters_aws, "make_client", lambda *args, **kwargs: ec2)
        props = {
            "security_group_id": SG,
            "subnet_ids": [SUBNET_A, SUBNET_B],
            "eni_ids": None,
        }
        with Stubber(ec2) as stubber:
            stubber.add_response(
                "describe_network_interfaces",
                {"NetworkInterfaces": [_eni(ENI_B, SUBNET_B), _eni(ENI_A, SUBNET_A)]},
            )
            result = LambdaEniWaitProvider().create(props)

        assert result.id == f"{ENI_A},{ENI_B}"
        assert result.outs["eni_ids"] == [ENI_A, ENI_B]
        assert result.outs["security_group_id"] == SG

    def test_subnet_change_forces_replacement(self):
        olds = {"security_group_id": SG, "subnet_ids": [SUBNET_A], "timeout_seconds": 300}
        news = {"security_group_id": SG, "subnet_ids": [SUBNET_A, SUBNET_B]}

        diff = LambdaEniWaitProvider().diff(ENI_A, olds, news)

        assert diff.changes is True
        assert diff.replaces == ["subnet_ids"]

    def test_timing_change_does_not_rerun(self):
        olds = {"security_group_id": SG, "subnet_ids": [SUBNET_A], "timeout_seconds": 300}
        news = {"security_group_id": SG, "subnet_ids": (SUBNET_A,), "timeout_seconds": 600}

        diff = LambdaEniWaitProvider().diff(ENI_A, olds, news)

        assert diff.changes is False
        assert diff.replaces == []


class TestEfsMountTargetWaitProvider:
    def test_create_echoes_file_system_id(self, efs, monkeypatch):
        monkeypatch.setattr(waiters_aws, "make_client", lambda *args, **kwargs: efs)
        props = {"file_system_id": FS, "stabilization_seconds": 0}
        with Stubber(efs) as stubber:
            stubber.add_response(
                "describe_mount_targets",
                {
                    "MountTargets": [
                        _mount_target(MT_1, "available"),
                        _mount_target(MT_2, "available"),
                    ]
                },
            )
            result = EfsMountTargetWaitProvider().create(props)

        assert result.id == f"wait-for-{FS}"
        assert result.outs["file_system_id"] == FS

    def test_file_system_change_forces_replacement(self):
        diff = EfsMountTargetWaitProvider().diff(
            f"wait-for-{FS}", {"file_system_id": FS}, {"file_system_id": OTHER_FS}
        )
        assert diff.replaces == ["file_system_id"]
