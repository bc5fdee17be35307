"""
Lambda infrastructure components gated on readiness waits.

Each concern is encapsulated in its own ComponentResource. Use from the Pulumi
entrypoint (e.g. __main__.py) with config and output chaining:

- **SharedFileSystem**: EFS + per-subnet mount targets + access point; exposes
  ``access_point_arn`` and ``ready`` (resources a function must depend on).
- **LambdaEgress**: waits for the functions' ENIs and binds one Elastic IP per
  interface; exposes ``eni_ids`` and ``public_ips``.
"""

from components.efs import SharedFileSystem
from components.egress import LambdaEgress

__all__ = ["LambdaEgress", "SharedFileSystem"]
