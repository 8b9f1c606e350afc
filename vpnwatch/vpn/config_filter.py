"""Remote filtering for OpenVPN config scripts.

Some config scripts list many remotes and the native side probes each of
them in turn, which can stall the client. randomize_remotes keeps a single
remote picked at random.
"""

import random
from typing import List, Optional

from .exceptions import InvalidConfigError
from ..logging_utility import logger


REMOTE_DIRECTIVE = "remote "
_PLACEHOLDER = object()


def is_remote_line(line: str) -> bool:
    return line.strip().lower().startswith(REMOTE_DIRECTIVE)


def randomize_remotes(config: Optional[str], rng: Optional[random.Random] = None) -> Optional[str]:
    """
    Keep one randomly chosen remote directive in a config script.

    The chosen remote takes the position of the first remote line, every
    other line keeps its original order.

    Args:
        config: Config script contents
        rng: Random generator, module level random if omitted

    Returns:
        str: Filtered config, or None if config is None

    Raises:
        InvalidConfigError: If the config has no remote directive
    """
    if config is None:
        return None

    remotes: List[str] = []
    output: list = []
    for line in config.split("\n"):
        if is_remote_line(line):
            if not remotes:
                output.append(_PLACEHOLDER)
            remotes.append(line)
        else:
            output.append(line)

    if not remotes:
        raise InvalidConfigError("Config has no remote directive to choose from")

    chosen = (rng or random).choice(remotes)
    logger.info(f"Selected remote '{chosen.strip()}' out of {len(remotes)}")
    return "\n".join(chosen if line is _PLACEHOLDER else line for line in output)
