"""Assign slugs to existing documents that have none, then create the slug index.

Usage:
    python scripts/backfill_slugs.py \\
        --collection articles \\
        --field title \\
        [--scope author_id] [--history] \\
        --mongodb-url mongodb://localhost:27017 --db docslug
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from docslug.config import settings
from docslug.database import Database
from docslug.errors import SlugError
from docslug.logging import setup_logging
from docslug.models.document_type import DocumentType
from docslug.models.slug_options import SLUGS_FIELD, SlugOptions
from docslug.services.slug_service import SlugService


class SlugBackfiller:
    """Backfills slugs for one collection."""

    def __init__(self, doc_type: DocumentType, mongodb_url: str, db_name: str):
        """Initialize backfiller.

        Args:
            doc_type: Registered type of the collection's documents
            mongodb_url: MongoDB connection URL
            db_name: Database name
        """
        self.doc_type = doc_type
        self.mongodb_url = mongodb_url
        self.db_name = db_name
        self.database = Database()

        # Stats
        self.stats = {"total": 0, "success": 0, "skipped": 0, "failed": 0}

    async def backfill(self):
        """Give every live document without a slug its first slug."""
        service = SlugService(self.database.db, self.doc_type)
        collection = self.database.get_collection(self.doc_type.collection)

        query = {SLUGS_FIELD: {"$exists": False}, "deleted": {"$ne": True}}
        async for doc in collection.find(query):
            self.stats["total"] += 1
            try:
                slug = await service.to_param(doc)
            except SlugError as e:
                self.stats["failed"] += 1
                print(f"  ✗ {doc['_id']}: {e}")
                continue

            if slug is None:
                self.stats["skipped"] += 1
                print(f"  - {doc['_id']}: blank slug source")
            else:
                self.stats["success"] += 1
                print(f"  ✓ {doc['_id']} -> {slug}")

        index_name = await service.ensure_indexes()
        print(f"Slug index: {index_name}")

    async def run(self):
        """Run backfill."""
        print(f"Backfilling slugs for {self.doc_type.collection}")

        await self.database.connect(self.mongodb_url, self.db_name)

        try:
            await self.backfill()

            # Print summary
            print("\n=== Backfill Summary ===")
            for key, value in self.stats.items():
                print(f"  {key.capitalize()}: {value}")
        finally:
            await self.database.disconnect()


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Backfill document slugs")
    parser.add_argument("--collection", required=True, help="Collection to backfill")
    parser.add_argument(
        "--field",
        action="append",
        required=True,
        help="Source field of the slug (repeat for several, in order)",
    )
    parser.add_argument("--scope", default=None, help="Field to scope slug uniqueness by")
    parser.add_argument("--history", action="store_true", help="Retain slug history")
    parser.add_argument("--mongodb-url", default=settings.mongodb_url, help="MongoDB connection URL")
    parser.add_argument("--db", default=settings.mongodb_db_name, help="Database name")

    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_json)

    doc_type = DocumentType(
        args.collection,
        args.collection,
        SlugOptions(fields=args.field, scope=args.scope, history=args.history),
    )
    backfiller = SlugBackfiller(doc_type, args.mongodb_url, args.db)

    await backfiller.run()


if __name__ == "__main__":
    asyncio.run(main())
