from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from pydantic import ValidationError

from .core.dispatch import Dispatcher, QueueDispatcher
from .core.errors import CatFeedError, ConfigError
from .core.models import Failed, Loaded
from .services import (
    AppConfig, CatFeedService, IImageService, ILogger, ServiceContainer,
    configure_services, load_app_config,
)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="catfeed", description="Headless browser for the random cat feed")
    ap.add_argument("--config", type=Path, default=None, help="JSON or YAML config file")
    ap.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    browse = sub.add_parser("browse", help="load pages and print the list rows")
    browse.add_argument("--pages", type=int, default=1, help="number of pages to load")
    browse.add_argument("--page-size", type=int, default=None, help="override paging.page_size")
    browse.add_argument("--images", action="store_true", help="resolve every image through the cache")
    browse.add_argument("--json", action="store_true", help="print each cat as indented JSON")
    browse.add_argument("--timeout", type=float, default=60.0, help="seconds to wait per page")
    return ap


def setup_services(args: argparse.Namespace) -> ServiceContainer:
    """Load configuration and build the service container."""
    data = load_app_config(args.config).model_dump()
    if args.verbose:
        data["logging"]["level"] = "DEBUG"
    if getattr(args, "page_size", None) is not None:
        data["paging"]["page_size"] = args.page_size
    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid command line override: {e}") from e
    return configure_services(config)


def _wait(dispatcher: Dispatcher, timeout: float) -> bool:
    if isinstance(dispatcher, QueueDispatcher):
        return dispatcher.wait_idle(timeout)
    return True


def browse(container: ServiceContainer, pages: int, with_images: bool, as_json: bool,
           timeout: float, out: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    logger = container.get(ILogger)
    dispatcher = container.get(Dispatcher)
    feed = container.get(CatFeedService)

    feed.start()
    if not _wait(dispatcher, timeout):
        logger.warning("Timed out waiting for page 0")

    # Scroll: the first slot of each page becoming visible pulls in the next one.
    for page in range(1, max(pages, 1)):
        boundary = (page - 1) * feed.page_size
        if not isinstance(feed.slots[boundary], Loaded):
            logger.warning(f"Stopping at page {page}: slot {boundary} is not loaded")
            break
        feed.notify_visible(boundary)
        if not _wait(dispatcher, timeout):
            logger.warning(f"Timed out waiting for page {page}")

    for index, slot in enumerate(feed.slots):
        if isinstance(slot, Loaded):
            cat = slot.item
            if as_json:
                out.write(cat.to_pretty_json() + "\n")
            else:
                out.write(f"{index:5d}  {cat.id:<12}  {cat.dimensions_label:>11}  {cat.url}\n")
        elif isinstance(slot, Failed):
            out.write(f"{index:5d}  <failed: {slot.reason}>\n")

    if with_images:
        _load_images(container, feed, timeout, out)
    return 0


def _load_images(container: ServiceContainer, feed: CatFeedService, timeout: float, out: TextIO) -> None:
    images = container.get(IImageService)
    dispatcher = container.get(Dispatcher)
    failures: List[str] = []

    # Second pass must be answered from the cache.
    for _ in range(2):
        for cat in feed.cats():
            images.load_image(cat.url, lambda image: None, lambda exc, url=cat.url: failures.append(url))
        _wait(dispatcher, timeout)

    stats = images.get_cache_stats()
    out.write(
        f"images: {stats['entries']} cached, {stats['fetches']} fetched, "
        f"{stats['hits']} hits, {len(failures)} failed\n"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    try:
        container = setup_services(args)
    except CatFeedError as e:
        print(f"catfeed: {e}", file=sys.stderr)
        return 1

    logger = container.get(ILogger)
    try:
        if args.command == "browse":
            return browse(container, args.pages, args.images, args.json, args.timeout)
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    finally:
        container.shutdown()


if __name__ == "__main__":
    sys.exit(main())
