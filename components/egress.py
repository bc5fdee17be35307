"""
Static public egress for VPC-attached Lambda functions.

Lambda creates its hyperplane network interfaces asynchronously after the
function itself reports created, and Pulumi has no resource for them. This
component waits for one interface per subnet with ``LambdaEniWait`` and then
allocates one Elastic IP per interface and associates it, so the functions
reach the internet from fixed addresses.

The number of Elastic IPs is only known once the wait resolves, so they are
declared inside ``eni_ids.apply``. ``public_ips`` lists their addresses in
subnet order.
"""

from collections.abc import Sequence

import pulumi
import pulumi_aws as aws

from components._helpers import eip_bindings
from waiters import LambdaEniWait

ID: str = "readiness:aws:LambdaEgress"


class LambdaEgress(pulumi.ComponentResource):
    """
    LambdaEniWait plus one Eip and EipAssociation per resolved interface.
    """

    def __init__(
        self,
        name: str,
        security_group_id: pulumi.Input[str],
        subnet_ids: pulumi.Input[Sequence[pulumi.Input[str]]],
        functions: Sequence[pulumi.Resource],
        eni_wait_timeout: float = 300,
        probe_retries: int = 0,
        depends_on: Sequence[pulumi.Resource] = (),
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Wait for the Lambda ENIs and bind an Elastic IP to each.

        Args:
            name: Pulumi resource name prefix for every child resource.
            security_group_id: Security group attached to the functions.
            subnet_ids: Subnets the functions run in; one ENI is expected per
                subnet.
            functions: Lambda functions whose creation must finish before the
                wait starts.
            eni_wait_timeout: Seconds to wait for the interfaces.
            probe_retries: Extra attempts per failed describe call.
            depends_on: Other resources the wait must follow (e.g. file system
                readiness waits).

        Outputs (set on self, registered for the component):
            eni_ids: Interface IDs in subnet order.
            public_ips: Elastic IP addresses in the same order.
        """
        super().__init__(ID, name, None, opts)

        self._name = name
        self.eni_wait = LambdaEniWait(
            f"{name}-eni-wait",
            security_group_id=security_group_id,
            subnet_ids=subnet_ids,
            timeout_seconds=eni_wait_timeout,
            probe_retries=probe_retries,
            opts=pulumi.ResourceOptions(
                parent=self, depends_on=[*functions, *depends_on]
            ),
        )

        self.eni_ids: pulumi.Output[list[str]] = self.eni_wait.eni_ids
        self.public_ips: pulumi.Output[list[str]] = self.eni_ids.apply(
            self._attach_elastic_ips
        )
        self.register_outputs(
            {
                "eni_ids": self.eni_ids,
                "public_ips": self.public_ips,
            }
        )

    def _attach_elastic_ips(self, eni_ids: list[str]) -> pulumi.Output[list[str]]:
        public_ips = []
        for eip_name, assoc_name, eni_id in eip_bindings(self._name, eni_ids):
            eip = aws.ec2.Eip(
                resource_name=eip_name,
                domain="vpc",
                opts=pulumi.ResourceOptions(parent=self, depends_on=[self.eni_wait]),
            )
            aws.ec2.EipAssociation(
                resource_name=assoc_name,
                network_interface_id=eni_id,
                allocation_id=eip.id,
                opts=pulumi.ResourceOptions(parent=self, depends_on=[eip]),
            )
            public_ips.append(eip.public_ip)
        return pulumi.Output.all(*public_ips)
