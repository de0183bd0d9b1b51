"""All-or-nothing execution across several stateful participants."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from .interfaces.transactional import Transactional

logger = logging.getLogger(__name__)


@contextmanager
def atomic(*participants: Transactional) -> Iterator[None]:
    """Run the enclosed block as one unit of work.

    Every participant's state is captured on entry. If the block raises,
    each participant is restored to its captured state and the exception
    propagates unchanged.
    """
    saved = [(p, p.state()) for p in participants]
    try:
        yield
    except BaseException:
        for participant, state in reversed(saved):
            participant.restore(state)
        logger.debug("Rolled back %d participants", len(saved))
        raise
