"""
Lambda readiness - VPC-attached Lambda with shared EFS and static egress.

Wires two ComponentResources around the functions using Pulumi config:

- **SharedFileSystem**: EFS with one mount target per default subnet. The
  access point and the functions are gated on mount-target readiness waits,
  since Lambda fails to mount targets that only just reported available.
- **LambdaEgress**: after the functions exist, waits for their hyperplane
  ENIs (one per subnet) and binds one Elastic IP to each.

Networking uses the default VPC and its default-for-AZ subnets.

Stack exports: function_names, file_system_id, access_point_arn, eni_ids,
egress_ips.
"""

import json

import pulumi
import pulumi_aws as aws

from components import LambdaEgress, SharedFileSystem
from components._helpers import lambda_function_name, lambda_mount_path, resource_name
from config import StackConfig

LAMBDA_MANAGED_POLICIES = [
    "arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole",
    "arn:aws:iam::aws:policy/service-role/AWSLambdaVPCAccessExecutionRole",
    "arn:aws:iam::aws:policy/AmazonElasticFileSystemClientReadWriteAccess",
]


def main():
    """
    Build the network, file system, functions and egress; export stack outputs.

    Looks up the default VPC and subnets, creates the Lambda security group and
    role, the shared file system, ``function_count`` functions mounting it, and
    the egress component that depends on every function and on file system
    readiness.
    """
    config = StackConfig.from_pulumi_config(pulumi.Config())

    def name(prefix: str) -> str:
        return resource_name(prefix, config.project_name, config.environment)

    vpc = aws.ec2.get_vpc(default=True)
    subnet_ids = aws.ec2.get_subnets(
        filters=[
            aws.ec2.GetSubnetsFilterArgs(name="vpc-id", values=[vpc.id]),
            aws.ec2.GetSubnetsFilterArgs(name="default-for-az", values=["true"]),
        ]
    ).ids

    lambda_sg = aws.ec2.SecurityGroup(
        resource_name=name("lambda-sg"),
        vpc_id=vpc.id,
        description="Security group for VPC-attached Lambda functions",
        egress=[
            aws.ec2.SecurityGroupEgressArgs(
                from_port=0,
                to_port=0,
                protocol="-1",
                cidr_blocks=["0.0.0.0/0"],
                description="All outbound",
            )
        ],
    )

    file_system = SharedFileSystem(
        name=name("efs"),
        vpc_id=vpc.id,
        subnet_ids=subnet_ids,
        client_security_group_id=lambda_sg.id,
        mount_wait_timeout=config.efs_wait_timeout,
        mount_stabilization=config.efs_stabilization_seconds,
        access_point_wait_timeout=config.access_point_wait_timeout,
        access_point_stabilization=config.access_point_stabilization_seconds,
        probe_retries=config.probe_retries,
    )

    role = aws.iam.Role(
        resource_name=name("lambda-role"),
        assume_role_policy=json.dumps(
            {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"Service": "lambda.amazonaws.com"},
                        "Action": "sts:AssumeRole",
                    }
                ],
            }
        ),
    )
    attachments = [
        aws.iam.RolePolicyAttachment(
            resource_name=f"{name('lambda-role')}-{policy_arn.rsplit('/', 1)[-1]}",
            role=role.name,
            policy_arn=policy_arn,
        )
        for policy_arn in LAMBDA_MANAGED_POLICIES
    ]

    functions = [
        aws.lambda_.Function(
            resource_name=name(f"fn-{i}"),
            name=lambda_function_name(name(f"fn-{i}")),
            role=role.arn,
            runtime=config.function_runtime,
            handler=config.function_handler,
            code=pulumi.FileArchive(config.function_code_path),
            vpc_config=aws.lambda_.FunctionVpcConfigArgs(
                subnet_ids=subnet_ids,
                security_group_ids=[lambda_sg.id],
            ),
            file_system_config=aws.lambda_.FunctionFileSystemConfigArgs(
                arn=file_system.access_point_arn,
                local_mount_path=lambda_mount_path("efs"),
            ),
            opts=pulumi.ResourceOptions(depends_on=[*file_system.ready, *attachments]),
        )
        for i in range(config.function_count)
    ]

    egress = LambdaEgress(
        name=name("egress"),
        security_group_id=lambda_sg.id,
        subnet_ids=subnet_ids,
        functions=functions,
        eni_wait_timeout=config.eni_wait_timeout,
        probe_retries=config.probe_retries,
        depends_on=file_system.ready,
    )

    for output_name, value in [
        ("function_names", pulumi.Output.all(*[fn.name for fn in functions])),
        ("file_system_id", file_system.file_system_id),
        ("access_point_arn", file_system.access_point_arn),
        ("eni_ids", egress.eni_ids),
        ("egress_ips", egress.public_ips),
    ]:
        pulumi.export(output_name, value)


if __name__ == "__main__":
    main()
