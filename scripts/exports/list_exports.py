"""
Print the latest product exports with their download URLs.

Usage: python scripts/exports/list_exports.py [--limit N]
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent.parent))

from catalog_export.core.config import settings
from catalog_export.export.listing import format_file_size, list_exports
from catalog_export.export.storage import ObjectStorage


def main() -> int:
    parser = argparse.ArgumentParser(description="List latest product exports")
    parser.add_argument("--limit", type=int, default=5, help="Number of runs to show")
    args = parser.parse_args()

    print("🔍 Searching for latest product exports...\n")

    storage = ObjectStorage.from_settings(settings)
    groups = list_exports(settings.EXPORT_DIR, storage)

    if not groups:
        print("❌ No export files found")
        print("💡 Run the export first: python scripts/exports/product_export_cron.py")
        return 1

    for group in groups[: args.limit]:
        count = group.record_count if group.record_count is not None else "?"
        print(f"📅 {group.timestamp}  ({count} products)")
        for entry in (group.csv, group.xml):
            if entry is None:
                continue
            print(f"   {entry.format.upper()}: {entry.filename} [{format_file_size(entry.size)}]")
            if entry.s3_url:
                print(f"      URL:   {entry.s3_url}")
            if entry.local_path:
                print(f"      Local: {entry.local_path}")
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
