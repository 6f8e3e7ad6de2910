"""
Dexfeed - Main Application
Browse the PokeAPI catalog from a terminal:
    Command → LoadController → Pagination Source → Item Cache → ConsoleRenderer

Usage:
    python main.py                    # Full listing
    python main.py --type fire        # Start filtered by type
    python main.py --search char      # Start with a name/id search
    python main.py --debug            # Verbose logging

Commands at the prompt:
    <Enter> | more      load the next batch
    type <name>         filter by type (bare "type" clears it)
    search <text>       filter by name or exact id (bare "search" clears it)
    types               list available types
    quit                exit
"""

import sys
import os
import asyncio
import logging
import argparse

# Add src to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import LOG_FILE, LOG_LEVEL
from catalog_api import CatalogError
from console_view import ConsoleRenderer
from load_controller import CatalogSession, LoadController

logger = logging.getLogger("dexfeed")


async def run_console(category: str = "", search: str = "", client=None):
    renderer = ConsoleRenderer()
    controller = LoadController(renderer, session=CatalogSession.create(client))
    loop = asyncio.get_running_loop()

    try:
        if category or search:
            # Apply initial filters before the first batch
            controller.filters.set_category(category)
            controller.filters.set_search(search)
            controller.session.source = controller.session.new_source()
        await controller.start()
    except CatalogError:
        return 1

    while True:
        try:
            line = await loop.run_in_executor(None, input, "> ")
        except EOFError:
            break
        command, _, arg = line.strip().partition(" ")
        command = command.lower()

        if command in ("", "more"):
            await controller.request_load()
        elif command == "type":
            await controller.set_category(arg)
        elif command == "search":
            await controller.submit_search(arg)
        elif command == "types":
            renderer.set_categories(await controller.session.client.list_categories())
        elif command in ("quit", "exit", "q"):
            break
        else:
            renderer.set_status(f"Unknown command: {command}")
    return 0


# ─── Entry Point ─────────────────────────────────────

def setup_logging(debug: bool = False):
    """Configure logging.

    Console shows INFO and above (batch sizes, retries, failures).
    File gets DEBUG when --debug is used (every request URL, cache fetches).
    """
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter("%(asctime)s %(message)s", datefmt="%H:%M:%S"))

    file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG if debug else LOG_LEVEL)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else LOG_LEVEL)
    root_logger.addHandler(console)
    root_logger.addHandler(file_handler)


def main():
    parser = argparse.ArgumentParser(
        description="Dexfeed - incremental PokeAPI browser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                          # Browse everything
  python main.py --type fire --debug      # Fire types, debug log
        """
    )
    parser.add_argument(
        "--type", "-t",
        default="",
        help="Start filtered to this type"
    )
    parser.add_argument(
        "--search", "-s",
        default="",
        help="Start with this name/id search"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    setup_logging(debug=args.debug)

    try:
        sys.exit(asyncio.run(run_console(category=args.type, search=args.search)))
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
