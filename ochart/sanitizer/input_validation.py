"""
Input Validation Module

Gate in front of the pipeline: rejects anything that is not a sequence of
points and short-circuits on empty input.
"""

from typing import Any
import logging

from ochart.sanitizer.schemas import IssueType, SanitizationContext

LOG = logging.getLogger(__name__)


class InputValidator:
    """
    Checks the top-level shape of the raw input.

    Rules:
        - list / tuple accepted
        - anything else (dict, str, None, DataFrame...) → missing_required error
        - empty sequence → empty_input warning, nothing to process
    """

    def validate(self, raw: Any, ctx: SanitizationContext) -> bool:
        """
        Returns:
            True if the pipeline should continue
        """
        if not isinstance(raw, (list, tuple)):
            ctx.error(
                IssueType.MISSING_REQUIRED,
                f"Input must be a list of points, got {type(raw).__name__}",
            )
            LOG.error(f"Rejected input of type {type(raw).__name__}")
            return False

        if len(raw) == 0:
            ctx.warning(IssueType.EMPTY_INPUT, "Input list is empty")
            LOG.debug("Empty input, nothing to sanitize")
            return False

        return True
