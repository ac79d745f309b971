#!/usr/bin/env python3
"""Bookshelf worker CLI - book enrichment from the Google Books catalog."""
import argparse
import asyncio
import sys
import json
from tabulate import tabulate
from bookshelf.background import get_queue, queue_book
from bookshelf.catalog import GoogleBooksCatalog
from bookshelf.config import Config
from bookshelf.images import ImageStore
from bookshelf.model import PostgresModel, get_model
from bookshelf.models import WorkerState
from bookshelf.pipeline import process_book
from bookshelf import worker
import logging

config = Config()

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def enqueue_books(args, config: Config):
    """Publish processBook messages for the given ids."""
    queue = get_queue(config)
    try:
        for book_id in args.book_ids:
            await queue_book(queue, book_id)
        logger.info(f"Queued {len(args.book_ids)} book(s)")
    finally:
        await queue.close()


async def process_once(args, config: Config):
    """Run the enrichment pipeline inline for one book."""
    model = get_model(config)
    state = WorkerState()

    try:
        async with GoogleBooksCatalog(
            api_key=config.GOOGLE_BOOKS_API_KEY,
            timeout=config.DEFAULT_TIMEOUT
        ) as catalog:
            images = ImageStore(config.IMAGE_BUCKET_DIR, config.IMAGE_PUBLIC_URL, timeout=config.DEFAULT_TIMEOUT)
            try:
                book = await process_book(
                    args.book_id, model=model, catalog=catalog, images=images, state=state
                )
                # Wait for the partial update before exiting
                await asyncio.gather(*state.pending_writes)
            finally:
                await images.close()

        display_books([book], args.format)
    finally:
        await model.close()


async def list_books(args, config: Config):
    """Print stored books."""
    model = get_model(config)
    try:
        books, next_cursor = await model.list(limit=args.limit, cursor=args.cursor)
        display_books(books, args.format)
        if next_cursor:
            logger.info(f"More results: --cursor {next_cursor}")
    finally:
        await model.close()


def init_db(args, config: Config):
    """Create the books table."""
    db = PostgresModel(config.DATABASE_URL)
    try:
        db.init_schema()
    finally:
        asyncio.run(db.close())


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ID", "Title", "Author", "Published", "Image"]
        rows = [
            [
                book.id,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.author[:30] + "..." if len(book.author) > 30 else book.author,
                book.published_date or "Unknown",
                book.image_url or "N/A"
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([book.to_dict() for book in books], indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.author or 'Unknown'}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Bookshelf worker - enrich books from the Google Books catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the worker (queue subscription + health server)
  %(prog)s worker

  # Ask the worker to process a book
  %(prog)s enqueue 42

  # Process a book without the queue
  %(prog)s process 42 --format json
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("worker", help="Run the background worker")

    enqueue_parser = subparsers.add_parser("enqueue", help="Queue books for processing")
    enqueue_parser.add_argument("book_ids", nargs="+", help="Book ids")

    process_parser = subparsers.add_parser("process", help="Process one book inline")
    process_parser.add_argument("book_id", help="Book id")
    process_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    list_parser = subparsers.add_parser("list", help="List stored books")
    list_parser.add_argument("--limit", type=int, default=10, help="Max results (default: 10)")
    list_parser.add_argument("--cursor", help="Cursor from a previous page")
    list_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    subparsers.add_parser("init-db", help="Create the PostgreSQL schema")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "worker":
            worker.main(config)

        elif args.command == "enqueue":
            asyncio.run(enqueue_books(args, config))

        elif args.command == "process":
            asyncio.run(process_once(args, config))

        elif args.command == "list":
            asyncio.run(list_books(args, config))

        elif args.command == "init-db":
            init_db(args, config)

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
