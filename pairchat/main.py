import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from pairchat.config import load_settings
from pairchat.ui.cli import PairChatCLI


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="pairchat", description="Matchmaking chat client")
    parser.add_argument("--server", dest="server_uri", help="websocket endpoint, e.g. ws://localhost:3010")
    parser.add_argument("--nickname", help="nickname offered at the prompt")
    parser.add_argument("--log-level", dest="log_level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    try:
        settings = load_settings(**vars(args))
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    cli = PairChatCLI(settings)
    try:
        asyncio.run(cli.run())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.getLogger(__name__).exception("Fatal error")
        print(f"Fatal Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
