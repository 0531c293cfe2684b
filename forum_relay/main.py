"""Command line entry point for the forum relay.

The relay is normally embedded by an HTTP layer that calls
``DiscourseClient`` directly. This module wires up configuration and
logging the same way and offers two operational commands:

  check            - fetch the system user to verify URL and API key
  user <username>  - print a forum user's record
"""

import asyncio
import json
import sys

from dotenv import load_dotenv

from .config import app_name, load_config
from .errors import ForumError
from .forums.discourse import DiscourseClient
from .models import AppConfig
from .utils.logger import get_logger, setup_logging

logger = get_logger("main")

USAGE = "Usage: python -m forum_relay.main [check|user <username>] [config.yaml]"


def bootstrap(config_path: str = "config.yaml") -> tuple[AppConfig, DiscourseClient]:
    """Load configuration, set up logging and build the forum client."""
    load_dotenv()
    config = load_config(config_path)
    name = app_name(config.name)
    setup_logging(
        level=config.logging.level,
        json_output=config.logging.json_output,
        app=name,
        capture=config.logging.capture_logs,
    )
    logger.info(
        "relay_configured",
        app=name,
        forum=config.forum.url,
        system_username=config.forum.system_username,
        admins=len(config.forum.admin_usernames),
        port=config.server.port,
        capture_logs=config.logging.capture_logs,
        log_shipping=config.logging.logentries_token is not None,
    )
    return config, DiscourseClient.from_config(config.forum)


async def run_check(config_path: str = "config.yaml") -> bool:
    """Verify the forum is reachable with the configured credentials."""
    config, client = bootstrap(config_path)
    try:
        await client.get_user(config.forum.system_username)
        logger.info("forum_check_passed", forum=config.forum.url)
        return True
    except ForumError as e:
        logger.error("forum_check_failed", forum=config.forum.url, error=str(e))
        return False
    finally:
        await client.close()


async def show_user(username: str, config_path: str = "config.yaml") -> dict:
    """Fetch one user record."""
    _, client = bootstrap(config_path)
    try:
        return await client.get_user(username)
    finally:
        await client.close()


def main():
    """CLI entry point."""
    args = sys.argv[1:]
    mode = args[0] if args else "check"

    if mode == "check":
        config_path = args[1] if len(args) > 1 else "config.yaml"
        ok = asyncio.run(run_check(config_path))
        sys.exit(0 if ok else 1)
    elif mode == "user" and len(args) > 1:
        config_path = args[2] if len(args) > 2 else "config.yaml"
        user = asyncio.run(show_user(args[1], config_path))
        print(json.dumps(user, indent=2))
    else:
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
