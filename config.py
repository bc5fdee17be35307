"""
Stack configuration loaded from pulumi.Config().

Provides a typed, immutable view of stack settings. All settings are read from
Pulumi config (e.g. Pulumi.<stack>.yaml or pulumi config set). Naming keys and
the function code path are required; function settings and wait timings fall
back to defaults. Used by __main__.main() to name resources, build the Lambda
functions and size the readiness waits. AWS region and profile stay in the
``aws`` namespace and are picked up by the wait resources themselves.
"""

from dataclasses import dataclass
from typing import Any, Callable

import pulumi


def _require_str(config: pulumi.Config, key: str) -> str:
    return config.require(key)


def _optional(default: Any, cast: Callable[[str], Any]) -> Callable[[pulumi.Config, str], Any]:
    def parse(config: pulumi.Config, key: str) -> Any:
        raw = config.get(key)
        return default if raw is None or raw == "" else cast(raw)

    return parse


# (key, parser); parser receives (config, key) and returns value.
_CONFIG_SPEC: list[tuple[str, Callable[[pulumi.Config, str], Any]]] = [
    ("project_name", _require_str),
    ("environment", _require_str),
    ("function_code_path", _require_str),
    ("function_handler", _optional("index.handler", str)),
    ("function_runtime", _optional("python3.12", str)),
    ("function_count", _optional(1, int)),
    ("efs_wait_timeout", _optional(600.0, float)),
    ("efs_stabilization_seconds", _optional(120.0, float)),
    ("access_point_wait_timeout", _optional(300.0, float)),
    ("access_point_stabilization_seconds", _optional(60.0, float)),
    ("eni_wait_timeout", _optional(300.0, float)),
    ("probe_retries", _optional(0, int)),
]


@dataclass(frozen=True)
class StackConfig:
    """
    Stack configuration from Pulumi config.

    Attributes:
        project_name: Project name used in resource naming (required).
        environment: Environment label used in resource naming (required).
        function_code_path: Directory or archive with the Lambda code (required).
        function_handler: Lambda handler (default "index.handler").
        function_runtime: Lambda runtime (default "python3.12").
        function_count: Number of VPC-attached functions sharing the file
            system and egress (default 1).
        efs_wait_timeout: Seconds to wait for EFS mount targets (default 600).
        efs_stabilization_seconds: Buffer after mount targets are available
            (default 120).
        access_point_wait_timeout: Seconds for the wait after the access point
            is created (default 300).
        access_point_stabilization_seconds: Buffer for that wait (default 60).
        eni_wait_timeout: Seconds to wait for Lambda ENIs (default 300).
        probe_retries: Extra attempts per failed describe call in every wait
            (default 0, a failed call aborts the wait).
    """

    project_name: str
    environment: str
    function_code_path: str
    function_handler: str
    function_runtime: str
    function_count: int
    efs_wait_timeout: float
    efs_stabilization_seconds: float
    access_point_wait_timeout: float
    access_point_stabilization_seconds: float
    eni_wait_timeout: float
    probe_retries: int

    def __post_init__(self):
        if self.function_count < 1:
            raise ValueError(f"function_count must be >= 1, got {self.function_count}")
        if self.probe_retries < 0:
            raise ValueError(f"probe_retries must be >= 0, got {self.probe_retries}")

    @classmethod
    def from_pulumi_config(cls, config: pulumi.Config) -> "StackConfig":
        """
        Build StackConfig from pulumi.Config(). Keys without a default are required.
        """
        kwargs = {key: parser(config, key) for key, parser in _CONFIG_SPEC}
        return cls(**kwargs)
