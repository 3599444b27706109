"""groupbot — Main entry point."""

import asyncio
import logging
import os
from typing import Optional

from .channels.base import Transport
from .config import BotSettings, load_settings
from .dispatcher import CommandDispatcher

_log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("groupbot")


def setup_logging(settings: BotSettings, level: int = logging.INFO, console_level: Optional[int] = None):
    """Console + optional file logging, configured once per process.

    console_level only raises the threshold of the stderr handler; the
    log file still receives everything at `level`.
    """
    stream = logging.StreamHandler()   # stderr (console)
    if console_level is not None:
        stream.setLevel(console_level)
    handlers: list[logging.Handler] = [stream]
    if settings.log_file:
        log_dir = os.path.dirname(os.path.abspath(settings.log_file))
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=_log_format, handlers=handlers)


def _log_task_result(task: asyncio.Task):
    """Done-callback for dispatch tasks: surface anything that escaped."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Dispatch task failed: {type(exc).__name__}: {exc}", exc_info=exc)


async def serve(settings: BotSettings, transport: Transport, dispatcher: Optional[CommandDispatcher] = None):
    """Consume inbound events until the transport stops.

    Each event runs in its own task, so a slow sticker never blocks the
    next command; tasks only interleave at await points.
    """
    dispatcher = dispatcher or CommandDispatcher(settings, transport)
    pending: set[asyncio.Task] = set()

    await transport.start()
    try:
        async for message in transport.listen():
            task = asyncio.create_task(dispatcher.handle(message))
            pending.add(task)
            task.add_done_callback(pending.discard)
            task.add_done_callback(_log_task_result)
    finally:
        if pending:
            logger.info(f"Waiting for {len(pending)} in-flight command(s)...")
            await asyncio.gather(*pending, return_exceptions=True)
        await transport.stop()


async def run(settings: Optional[BotSettings] = None, transport: Optional[Transport] = None):
    """Main run loop."""
    settings = settings or load_settings()
    if transport is None:
        from .channels.console import ConsoleTransport
        transport = ConsoleTransport(settings)

    logger.info(f"{settings.display_name} starting on {transport.name} (prefix '{settings.command_prefix}')")
    try:
        await serve(settings, transport)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.critical(f"Fatal error: {type(e).__name__}: {e}", exc_info=True)
    logger.info("Stopped.")


def main():
    """Entry point."""
    settings = load_settings()
    setup_logging(settings)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
