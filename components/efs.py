"""
Shared EFS file system for VPC-attached Lambda functions.

This component creates a security group that admits NFS from the Lambda
security group, an encrypted EFS file system, one mount target per subnet and
an access point. Mount targets report ``available`` well before Lambda can
actually mount them, so creation is gated twice:

1. an ``EfsMountTargetWait`` after all mount targets (long stabilization),
   which the access point depends on;
2. a second wait after the access point (shorter stabilization).

``ready`` lists the resources a Lambda function must depend on before it can
use ``access_point_arn``.
"""

from collections.abc import Sequence

import pulumi
import pulumi_aws as aws

from components._helpers import indexed_names
from waiters import EfsMountTargetWait

ID: str = "readiness:aws:SharedFileSystem"

NFS_PORT = 2049


class SharedFileSystem(pulumi.ComponentResource):
    """
    EFS file system, per-subnet mount targets, access point and readiness waits.

    Resources: SecurityGroup, FileSystem, MountTarget (one per subnet),
    EfsMountTargetWait (two), AccessPoint.
    """

    def __init__(
        self,
        name: str,
        vpc_id: pulumi.Input[str],
        subnet_ids: Sequence[str],
        client_security_group_id: pulumi.Input[str],
        access_point_path: str = "/data",
        posix_uid: int = 1000,
        posix_gid: int = 1000,
        mount_wait_timeout: float = 600,
        mount_stabilization: float = 120,
        access_point_wait_timeout: float = 300,
        access_point_stabilization: float = 60,
        probe_retries: int = 0,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the file system and gate it on mount-target readiness.

        Args:
            name: Pulumi resource name prefix for every child resource.
            vpc_id: VPC holding the subnets.
            subnet_ids: Subnets to place one mount target in each. Must be
                known at program time so mount targets are declared directly.
            client_security_group_id: Security group of the Lambda functions
                allowed to reach NFS.
            access_point_path: Root directory exposed by the access point.
            posix_uid: Owner UID for the access point root and POSIX user.
            posix_gid: Owner GID for the access point root and POSIX user.
            mount_wait_timeout: Seconds to wait for mount targets.
            mount_stabilization: Seconds to sleep once mount targets are available.
            access_point_wait_timeout: Seconds for the post-access-point wait.
            access_point_stabilization: Stabilization for the post-access-point wait.
            probe_retries: Extra attempts per failed describe call in both waits.

        Outputs (set on self, registered for the component):
            file_system_id: EFS file system ID, resolved after the first wait.
            access_point_arn: ARN to use in a Lambda file_system_config.
        """
        super().__init__(ID, name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.security_group = aws.ec2.SecurityGroup(
            resource_name=f"{name}-sg",
            vpc_id=vpc_id,
            description="NFS access from Lambda functions",
            ingress=[
                aws.ec2.SecurityGroupIngressArgs(
                    from_port=NFS_PORT,
                    to_port=NFS_PORT,
                    protocol="tcp",
                    security_groups=[client_security_group_id],
                    description="NFS from Lambda",
                )
            ],
            egress=[
                aws.ec2.SecurityGroupEgressArgs(
                    from_port=0,
                    to_port=0,
                    protocol="-1",
                    cidr_blocks=["0.0.0.0/0"],
                    description="All outbound",
                )
            ],
            opts=child_opts,
        )

        self.file_system = aws.efs.FileSystem(
            resource_name=f"{name}-fs",
            encrypted=True,
            performance_mode="generalPurpose",
            tags={"Name": f"{name}-fs"},
            opts=child_opts,
        )

        # Returned explicitly so the wait can depend on the complete list.
        self.mount_targets: list[aws.efs.MountTarget] = [
            aws.efs.MountTarget(
                resource_name=mt_name,
                file_system_id=self.file_system.id,
                subnet_id=subnet_id,
                security_groups=[self.security_group.id],
                opts=child_opts,
            )
            for mt_name, subnet_id in zip(
                indexed_names(f"{name}-mt", len(subnet_ids)), subnet_ids
            )
        ]

        mount_wait = EfsMountTargetWait(
            f"{name}-wait",
            file_system_id=self.file_system.id,
            timeout_seconds=mount_wait_timeout,
            stabilization_seconds=mount_stabilization,
            probe_retries=probe_retries,
            opts=pulumi.ResourceOptions(parent=self, depends_on=self.mount_targets),
        )

        self.access_point = aws.efs.AccessPoint(
            resource_name=f"{name}-ap",
            file_system_id=mount_wait.file_system_id,
            root_directory=aws.efs.AccessPointRootDirectoryArgs(
                path=access_point_path,
                creation_info=aws.efs.AccessPointRootDirectoryCreationInfoArgs(
                    owner_gid=posix_gid,
                    owner_uid=posix_uid,
                    permissions="0777",
                ),
            ),
            posix_user=aws.efs.AccessPointPosixUserArgs(gid=posix_gid, uid=posix_uid),
            opts=pulumi.ResourceOptions(parent=self, depends_on=[mount_wait]),
        )

        access_point_wait = EfsMountTargetWait(
            f"{name}-ap-wait",
            file_system_id=self.file_system.id,
            timeout_seconds=access_point_wait_timeout,
            stabilization_seconds=access_point_stabilization,
            probe_retries=probe_retries,
            opts=pulumi.ResourceOptions(
                parent=self, depends_on=[self.access_point, mount_wait]
            ),
        )

        self.ready: list[pulumi.Resource] = [
            mount_wait,
            self.access_point,
            access_point_wait,
        ]
        self.file_system_id: pulumi.Output[str] = mount_wait.file_system_id
        self.access_point_arn: pulumi.Output[str] = self.access_point.arn
        self.register_outputs(
            {
                "file_system_id": self.file_system_id,
                "access_point_arn": self.access_point_arn,
            }
        )
