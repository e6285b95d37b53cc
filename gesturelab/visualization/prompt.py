"""Blocking label prompt used when a record window fills."""

import logging

logger = logging.getLogger(__name__)


class ConsoleLabelPrompt:
    """Reads a label from stdin. The capture loop waits until it returns.

    Returns None when the prompt is cancelled (EOF / Ctrl-D).
    """

    def __init__(self, input_func=input):
        self._input = input_func

    def __call__(self, message: str):
        try:
            return self._input(f"{message} ")
        except EOFError:
            logger.info("Label prompt cancelled")
            return None
