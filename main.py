"""Layout Sync - Cache block layouts and their categories in a local database."""

import argparse
import sys
from pathlib import Path

from api_client import ApiClient
from config import Config
from fetcher import AccountContext
from logging_setup import get_logger, setup_logging
from service import LayoutService
from store import Store
from thumbnails import ThumbnailSize


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch block layouts and cache them in a local database",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to config file (default: config.toml)",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override database URL from config",
    )
    parser.add_argument(
        "--api-base-url",
        type=str,
        default=None,
        help="Override API base URL from config",
    )
    parser.add_argument(
        "--site-id",
        type=int,
        default=None,
        help="Fetch the layouts of this site (requires --token)",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="OAuth token for the site's API",
    )
    parser.add_argument(
        "--width",
        type=float,
        default=160.0,
        help="Thumbnail width in points (default: 160)",
    )
    parser.add_argument(
        "--height",
        type=float,
        default=240.0,
        help="Thumbnail height in points (default: 240)",
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=None,
        help="Override display scale from config",
    )

    # Logging verbosity (mutually exclusive)
    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output (DEBUG level)",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (only warnings and errors)",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write logs to file (always DEBUG level)",
    )

    return parser.parse_args()


def build_account(args: argparse.Namespace, config: Config) -> AccountContext:
    if args.site_id is None and args.token is None:
        return AccountContext()

    api = None
    if args.token:
        api = ApiClient(
            config.api_base_url,
            token=args.token,
            user_agent=config.user_agent,
            timeout=config.request_timeout,
        )
    return AccountContext(remote_accessible=True, site_id=args.site_id, api=api)


def main() -> int:
    args = parse_args()

    # Setup logging first
    verbosity = 1 if args.verbose else (-1 if args.quiet else 0)
    setup_logging(verbosity=verbosity, log_file=args.log_file)
    logger = get_logger()

    logger.debug("Loading configuration...")
    config = Config.load(
        config_path=args.config,
        database_url_override=args.database_url,
        api_base_url_override=args.api_base_url,
        scale_override=args.scale,
    )

    logger.info("API base URL: %s", config.api_base_url)
    logger.info("Database: %s", config.database_url)
    logger.info("Display scale: %s", config.display_scale)

    store = Store(config.database_url)
    store.create_tables()
    account = build_account(args, config)
    size = ThumbnailSize(width=args.width, height=args.height)

    try:
        with LayoutService(config, store) as service:
            try:
                service.sync_layouts(account, size)
            except Exception as e:
                logger.error("Error syncing layouts: %s", e)
                return 1

            view = service.observe_categories()
            categories = view.categories
            view.close()
    finally:
        if account.api is not None:
            account.api.close()
        store.dispose()

    logger.info("")
    logger.info("=" * 50)
    logger.info("Layout Categories")
    logger.info("=" * 50)
    for category in categories:
        label = f"{category.emoji} {category.title}" if category.emoji else category.title
        logger.info("%s (%s): %d layouts", label, category.slug, len(category.layouts))

    logger.info("Synced %d categories.", len(categories))
    return 0


if __name__ == "__main__":
    sys.exit(main())
