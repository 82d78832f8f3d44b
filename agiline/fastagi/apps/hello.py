"""FastAGI 'Hello World' application."""

import logging

from agiline.agi import AGISession

logger = logging.getLogger(__name__)


async def run(agi: AGISession) -> None:
    """Print a message on the Asterisk console and hang up."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("AGI environment vars:")
        for key, value in agi.env.items():
            logger.debug(f"{key:<15}: {value}")

    reply = await agi.verbose("Hello World", 1)
    logger.debug(f"AGI command returned: {reply.result}")

    await agi.hangup()
