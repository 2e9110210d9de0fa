"""
Daily Product Export

Exports new/updated products since the last export to CSV and XML.
On first run (no last-export marker) the whole eligible catalog is exported;
later runs are incremental. Old export files are removed afterwards.

Intended for cron (e.g. `0 2 * * *`); exits non-zero on failure so the
supervisor can alert. Celery beat runs the same export via
workers.tasks.run_scheduled_export_task.
"""
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent.parent))

from catalog_export.core.config import settings
from catalog_export.core.db import init_engine, close_engine
from catalog_export.core.logging import setup_logger, attach_file_handler, detach_file_handler
from catalog_export.export.service import build_export_services
from catalog_export.export.triggers import run_scheduled_export

logger = setup_logger(settings.LOG_LEVEL)


async def run() -> int:
    """Run the scheduled export; returns the process exit code."""
    init_engine()

    try:
        services = build_export_services(settings)
        status = await run_scheduled_export(services.engine, services.status_store, services.cleaner)

        if status is None:
            logger.info("Nothing to do: another export is in progress")
            return 0

        for fmt, result in status.result.items():
            logger.info(f"📁 {fmt.value.upper()}: {result.file_path} ({result.record_count} products)")
            if result.s3_url:
                logger.info(f"☁️  Uploaded to: {result.s3_url}")

        logger.info("✅ Daily product export completed successfully!")
        return 0

    except Exception as e:
        logger.error(f"❌ Error during product export: {e}", exc_info=True)
        return 1

    finally:
        await close_engine()


def main() -> int:
    handler = attach_file_handler(settings.EXPORT_LOG_FILE)
    try:
        return asyncio.run(run())
    finally:
        detach_file_handler(handler)


if __name__ == "__main__":
    sys.exit(main())
