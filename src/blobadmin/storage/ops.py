"""Convenience entry points that resolve configurations by name.

Each call opens a short-lived client for the resolved configuration. The
``*_async`` variants run on the event loop; the multi-configuration upload
fans out concurrently there and sequentially in the blocking variant.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from .client import AsyncStorageClient, StorageClient
from .config import DEFAULT_CONFIG_NAME, ConfigRegistry
from .errors import StorageError
from .types import BlobInfo, CleanupResult, ConfigUploadResult

logger = logging.getLogger(__name__)

_default_registry = ConfigRegistry()


def get_default_registry() -> ConfigRegistry:
    return _default_registry


def _registry(registry: ConfigRegistry | None) -> ConfigRegistry:
    return registry if registry is not None else _default_registry


def upload_report_with_config(
    config_name: str,
    path: str | Path,
    *,
    registry: ConfigRegistry | None = None,
) -> str:
    config = _registry(registry).resolve(config_name)
    with StorageClient(config) as client:
        return client.upload_report(path)


async def upload_report_with_config_async(
    config_name: str,
    path: str | Path,
    *,
    registry: ConfigRegistry | None = None,
) -> str:
    config = _registry(registry).resolve(config_name)
    async with AsyncStorageClient(config) as client:
        return await client.upload_report(path)


def delete_old_reports_with_config(
    config_name: str,
    days: int,
    *,
    registry: ConfigRegistry | None = None,
) -> CleanupResult:
    config = _registry(registry).resolve(config_name)
    with StorageClient(config) as client:
        return client.delete_old_reports(days)


async def delete_old_reports_with_config_async(
    config_name: str,
    days: int,
    *,
    registry: ConfigRegistry | None = None,
) -> CleanupResult:
    config = _registry(registry).resolve(config_name)
    async with AsyncStorageClient(config) as client:
        return await client.delete_old_reports(days)


def generate_report_link_with_config(
    config_name: str,
    report_name: str,
    days: int,
    *,
    registry: ConfigRegistry | None = None,
) -> str:
    config = _registry(registry).resolve(config_name)
    with StorageClient(config) as client:
        return client.generate_report_link(report_name, days)


async def generate_report_link_with_config_async(
    config_name: str,
    report_name: str,
    days: int,
    *,
    registry: ConfigRegistry | None = None,
) -> str:
    config = _registry(registry).resolve(config_name)
    async with AsyncStorageClient(config) as client:
        return await client.generate_report_link(report_name, days)


def list_blobs_with_config(
    config_name: str,
    prefix: str | None = None,
    *,
    registry: ConfigRegistry | None = None,
) -> list[BlobInfo]:
    config = _registry(registry).resolve(config_name)
    with StorageClient(config) as client:
        return client.list(prefix)


async def list_blobs_with_config_async(
    config_name: str,
    prefix: str | None = None,
    *,
    registry: ConfigRegistry | None = None,
) -> list[BlobInfo]:
    config = _registry(registry).resolve(config_name)
    async with AsyncStorageClient(config) as client:
        return await client.list(prefix)


def validate_connection_with_config(
    config_name: str,
    *,
    registry: ConfigRegistry | None = None,
) -> bool:
    try:
        config = _registry(registry).resolve(config_name)
        with StorageClient(config) as client:
            client.test_connection()
    except StorageError as exc:
        logger.error("Named configuration %r validation failed: %s", config_name, exc)
        return False
    return True


async def validate_connection_with_config_async(
    config_name: str,
    *,
    registry: ConfigRegistry | None = None,
) -> bool:
    try:
        config = _registry(registry).resolve(config_name)
        async with AsyncStorageClient(config) as client:
            await client.test_connection()
    except StorageError as exc:
        logger.error("Named configuration %r validation failed: %s", config_name, exc)
        return False
    return True


def _fallback_name(fallback: str | None) -> str:
    return fallback if fallback is not None else DEFAULT_CONFIG_NAME


def upload_report_with_fallback(
    path: str | Path,
    primary: str,
    fallback: str | None = None,
    *,
    registry: ConfigRegistry | None = None,
) -> str:
    """Upload with ``primary``; on failure try ``fallback`` (or the env default).

    Returns the name of the configuration that succeeded.
    """
    try:
        upload_report_with_config(primary, path, registry=registry)
        logger.info("Uploaded report using primary config %r", primary)
        return primary
    except StorageError as exc:
        logger.warning("Primary config %r failed: %s", primary, exc)

    secondary = _fallback_name(fallback)
    try:
        upload_report_with_config(secondary, path, registry=registry)
    except StorageError as exc:
        logger.error("Fallback config %r also failed: %s", secondary, exc)
        raise
    logger.info("Uploaded report using fallback config %r", secondary)
    return secondary


async def upload_report_with_fallback_async(
    path: str | Path,
    primary: str,
    fallback: str | None = None,
    *,
    registry: ConfigRegistry | None = None,
) -> str:
    try:
        await upload_report_with_config_async(primary, path, registry=registry)
        logger.info("Uploaded report using primary config %r", primary)
        return primary
    except StorageError as exc:
        logger.warning("Primary config %r failed: %s", primary, exc)

    secondary = _fallback_name(fallback)
    try:
        await upload_report_with_config_async(secondary, path, registry=registry)
    except StorageError as exc:
        logger.error("Fallback config %r also failed: %s", secondary, exc)
        raise
    logger.info("Uploaded report using fallback config %r", secondary)
    return secondary


def upload_report_to_multiple_configs(
    path: str | Path,
    config_names: Iterable[str],
    *,
    registry: ConfigRegistry | None = None,
) -> dict[str, ConfigUploadResult]:
    results: dict[str, ConfigUploadResult] = {}
    for name in dict.fromkeys(config_names):
        try:
            url = upload_report_with_config(name, path, registry=registry)
        except StorageError as exc:
            results[name] = ConfigUploadResult(name, success=False, error=exc)
        else:
            results[name] = ConfigUploadResult(name, success=True, blob_url=url)
    return results


async def upload_report_to_multiple_configs_async(
    path: str | Path,
    config_names: Iterable[str],
    *,
    registry: ConfigRegistry | None = None,
) -> dict[str, ConfigUploadResult]:
    """Upload one report to every named configuration concurrently.

    Failures are reported per configuration; the call itself does not raise
    for storage errors.
    """

    async def upload_one(name: str) -> ConfigUploadResult:
        try:
            url = await upload_report_with_config_async(name, path, registry=registry)
        except StorageError as exc:
            return ConfigUploadResult(name, success=False, error=exc)
        return ConfigUploadResult(name, success=True, blob_url=url)

    outcomes = await asyncio.gather(*(upload_one(name) for name in dict.fromkeys(config_names)))
    return {outcome.config_name: outcome for outcome in outcomes}


__all__ = [
    "get_default_registry",
    "upload_report_with_config",
    "upload_report_with_config_async",
    "delete_old_reports_with_config",
    "delete_old_reports_with_config_async",
    "generate_report_link_with_config",
    "generate_report_link_with_config_async",
    "list_blobs_with_config",
    "list_blobs_with_config_async",
    "validate_connection_with_config",
    "validate_connection_with_config_async",
    "upload_report_with_fallback",
    "upload_report_with_fallback_async",
    "upload_report_to_multiple_configs",
    "upload_report_to_multiple_configs_async",
]
