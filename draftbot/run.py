"""
Draft Bot launcher
Loads .env and starts the bot.
"""

import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger("draftbot")


def run() -> None:
    # .env in the working directory wins over one next to the package
    load_dotenv(dotenv_path=Path.cwd() / ".env", encoding="utf-8")
    load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env", encoding="utf-8")

    from draftbot.bot import main

    try:
        asyncio.run(main())
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("[yellow]Bot stopped manually[/yellow]")
    except Exception as e:
        logger.error(f"[bold red]Bot crashed:[/bold red] {e}", exc_info=e)


if __name__ == "__main__":
    run()
