import asyncio
import logging
import os
import tempfile

from dotenv import load_dotenv

from blobadmin.storage import (
    AsyncStorageClient,
    ConfigRegistry,
    SharedKey,
    StorageClient,
    StorageConfig,
    default_config_from_env,
)
from blobadmin.storage import aio

load_dotenv()
logging.basicConfig(level=logging.INFO)


async def main() -> None:
    # Reads AZURE_STORAGE_ACCOUNT, AZURE_STORAGE_CONTAINER and a key or SAS token
    config = default_config_from_env()

    # Instantiate clients
    client = AsyncStorageClient(config)
    client_sync = StorageClient(config)

    # 1) Upload a local report via upload_report() (async client)
    with tempfile.NamedTemporaryFile(
        "wb", prefix="weekly-", suffix=".csv", delete=False
    ) as tmp:
        tmp.write(b"region,total\nnorth,42\nsouth,17\n")
        tmp_local_path = tmp.name
    url = await client.upload_report(tmp_local_path)
    report_name = os.path.basename(tmp_local_path)
    print("uploaded:", url)

    # 2) List reports (async client)
    for blob in await client.list("reports/"):
        print(" -", blob.name, blob.size, blob.last_modified)

    # 3) Seven-day download link that forces a file download
    link = await client.generate_report_link(report_name, 7)
    print("download link:", link)

    # 4) Named configurations: the same account registered twice, uploaded to both
    registry = ConfigRegistry()
    registry.register("primary", config, description="from environment")
    key = os.getenv("AZURE_STORAGE_KEY")
    if key:
        registry.register(
            "mirror",
            StorageConfig(config.account_name, config.container_name, SharedKey(key)),
        )
    results = await aio.upload_report_to_multiple_configs(
        tmp_local_path, registry.names(), registry=registry
    )
    for name, result in results.items():
        print(f"{name}: {'ok' if result.success else result.error}")

    # 5) Synchronous StorageClient: check, clean up and close
    blob_name = f"reports/{report_name}"
    print("exists (sync):", client_sync.exists(blob_name))
    client_sync.delete(blob_name)
    print("exists after delete (sync):", client_sync.exists(blob_name))

    cleanup = client_sync.delete_old_reports(90)
    print(f"cleanup removed {cleanup.deleted_count} reports older than 90 days")

    try:
        os.remove(tmp_local_path)
    except OSError:
        pass
    client_sync.close()
    await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
