"""Validators for debate messages."""
import logging
import re

from api.features.debate.models import DebateFormatResult

logger = logging.getLogger("debate.validators")

DEBATE_FORMAT = "Debate: [topic]. Take side: [stance]"
DEBATE_EXAMPLE = (
    "Debate: Artificial intelligence will replace all human jobs. Take side: you agree"
)

MISSING_KEYWORDS_ERROR = f'Invalid format. Please use: "{DEBATE_FORMAT}"'
EMPTY_FIELD_ERROR = "Topic and stance cannot be empty. Please provide both."

# Topic stops at the optional period before "Take side:"; stance runs to end of line.
TOPIC_PATTERN = re.compile(r"Debate:\s*(.*?)\.?\s*Take side:", re.IGNORECASE)
STANCE_PATTERN = re.compile(r"Take side:\s*(.*)", re.IGNORECASE)


def validate_debate_format(message: str) -> DebateFormatResult:
    """Parse ``Debate: <topic>. Take side: <stance>`` into topic and stance.

    Never raises. A failed result carries the error text together with an
    example and the expected format so the caller can relay them as is.
    """
    topic_match = TOPIC_PATTERN.search(message)
    stance_match = STANCE_PATTERN.search(message)

    if not topic_match or not stance_match:
        logger.debug("Debate format rejected: missing keywords")
        return DebateFormatResult(
            is_valid=False,
            error=MISSING_KEYWORDS_ERROR,
            error_kind="missing_keywords",
            example=DEBATE_EXAMPLE,
            format=DEBATE_FORMAT,
        )

    topic = topic_match.group(1).strip()
    stance = stance_match.group(1).strip()

    if not topic or not stance:
        logger.debug("Debate format rejected: empty topic or stance")
        return DebateFormatResult(
            is_valid=False,
            error=EMPTY_FIELD_ERROR,
            error_kind="empty_field",
            example=DEBATE_EXAMPLE,
            format=DEBATE_FORMAT,
        )

    return DebateFormatResult(is_valid=True, topic=topic, stance=stance)
