"""
Pure helpers for resource naming and Lambda settings. Testable without Pulumi runtime.

Used by the EFS component (indexed_names, lambda_mount_path), the egress
component (eip_bindings) and the entrypoint (resource_name,
lambda_function_name). No Pulumi types; all functions accept and return
plain Python types.
"""

import re

# Lambda only mounts file systems below this directory.
LAMBDA_MOUNT_ROOT = "/mnt/"


def resource_name(*parts: str) -> str:
    """
    Join non-empty name parts with hyphens.

    Example: ``resource_name("lambda", "readiness", "dev")`` gives
    ``"lambda-readiness-dev"``.
    """
    return "-".join(part.strip("-") for part in parts if part and part.strip("-"))


def indexed_names(
    base: str,
    count: int,
) -> list[str]:
    """
    Return ``count`` names ``base-0 .. base-{count-1}``.

    One name per entry of a resolved list (mount target per subnet, Elastic
    IP per network interface), so names depend only on position.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    return [f"{base}-{i}" for i in range(count)]


def eip_bindings(
    base: str,
    eni_ids: list[str],
) -> list[tuple[str, str, str]]:
    """
    Pair each network interface with its Elastic IP and association names.

    Returns ``(eip_name, association_name, eni_id)`` in interface order, named
    ``base-eip-{i}`` and ``base-eip-assoc-{i}``. An empty list raises
    ``ValueError``.
    """
    if not eni_ids:
        raise ValueError("No ENIs available for Elastic IP association")
    count = len(eni_ids)
    return list(
        zip(
            indexed_names(f"{base}-eip", count),
            indexed_names(f"{base}-eip-assoc", count),
            eni_ids,
        )
    )


def lambda_function_name(
    name: str,
    max_len: int = 64,
) -> str:
    """
    Produce a Lambda-compliant function name.

    Lambda names allow letters, digits, hyphens and underscores, up to 64
    characters. Other characters become hyphens; the result is truncated.
    """
    cleaned = re.sub(r"[^A-Za-z0-9_-]", "-", name)
    return cleaned[:max_len]


def lambda_mount_path(
    path: str,
) -> str:
    """
    Return an absolute mount path under ``/mnt/`` for a Lambda file system.

    ``"efs"`` and ``"/efs"`` both give ``"/mnt/efs"``; a path already below
    ``/mnt/`` is returned unchanged.
    """
    if path.startswith(LAMBDA_MOUNT_ROOT):
        return path.rstrip("/")
    cleaned = path.strip("/")
    if not cleaned:
        raise ValueError("mount path must name a directory below /mnt/")
    return f"{LAMBDA_MOUNT_ROOT}{cleaned}"
