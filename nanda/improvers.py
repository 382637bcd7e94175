"""Message improver registry.

Improvers are named text transforms: (message, context) -> str, either
plain functions or coroutines. One name is "active" at a time and
"default" always exists. Running an improver never raises: a missing or
failing improver yields an improvement_type="none" result carrying the
untouched text and the error in metadata.
"""

from __future__ import annotations

import inspect
import logging
import random

from nanda.schemas import ImprovementContext, Improver, MessageImprovementResult
from nanda.utils import capitalize_first, ensure_terminal_punctuation, replace_words

logger = logging.getLogger(__name__)

DEFAULT_IMPROVER = "default"

PROFESSIONAL_REPLACEMENTS: dict[str, str] = {
    "hi": "Hello",
    "hey": "Hello",
    "thanks": "Thank you",
    "thx": "Thank you",
    "u": "you",
    "ur": "your",
    "r": "are",
    "btw": "by the way",
    "asap": "as soon as possible",
    "fyi": "for your information",
}

CREATIVE_STARTERS: tuple[str, ...] = (
    "Exciting news: ",
    "Here's something interesting: ",
    "You won't believe this: ",
    "Get ready for: ",
    "Amazing discovery: ",
)

_EXCITING_WORDS = ("amazing", "exciting", "incredible")


class MessageImprover:
    """Registry of named improvers with an active selection.

    Each agent owns its own instance; there is no module-level registry.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._improvers: dict[str, Improver] = {}
        self._active = DEFAULT_IMPROVER
        self._rng = rng or random.Random()
        self._register_defaults()

    def register(self, name: str, improver: Improver) -> None:
        """Register an improver, replacing any existing one with the same name."""
        if name in self._improvers:
            logger.warning("Overwriting existing improver: %s", name)
        self._improvers[name] = improver
        logger.info("Message improver registered: %s", name)

    def remove(self, name: str) -> bool:
        """Remove an improver. 'default' is protected.

        Removing the active improver falls back to 'default'.
        """
        if name == DEFAULT_IMPROVER:
            logger.warning("Cannot remove default improver")
            return False
        if name not in self._improvers:
            logger.warning("Cannot remove unknown improver: %s", name)
            return False

        del self._improvers[name]
        if self._active == name:
            self._active = DEFAULT_IMPROVER
            logger.info("Active improver reset to: %s", DEFAULT_IMPROVER)
        logger.info("Improver removed: %s", name)
        return True

    unregister = remove

    def set_active(self, name: str) -> bool:
        if name not in self._improvers:
            logger.error("Improver not found: %s", name)
            return False
        self._active = name
        logger.info("Active improver set to: %s", name)
        return True

    def get_active(self) -> str:
        return self._active

    def list(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._improvers)

    def exists(self, name: str) -> bool:
        return name in self._improvers

    async def improve(
        self, message: str, context: ImprovementContext | None = None
    ) -> MessageImprovementResult:
        """Improve a message with the active improver."""
        # Read the active name once so a concurrent set_active can't split the call
        name = self._active
        return await self.improve_with(name, message, context)

    async def improve_with(
        self, name: str, message: str, context: ImprovementContext | None = None
    ) -> MessageImprovementResult:
        """Improve a message with a specific improver. Does not touch the active name."""
        improver = self._improvers.get(name)
        if improver is None:
            logger.error("Improver not found: %s", name)
            return _unchanged(message, "Improver not found")

        try:
            improved = improver(message, context)
            if inspect.isawaitable(improved):
                improved = await improved
            if not isinstance(improved, str):
                raise TypeError(f"improver returned {type(improved).__name__}, expected str")
        except Exception as e:
            logger.exception("Error in message improvement with %s", name)
            return _unchanged(message, str(e) or type(e).__name__)

        return MessageImprovementResult(
            original_message=message,
            improved_message=improved,
            improvement_type="default" if name == DEFAULT_IMPROVER else "custom",
            metadata={"improver": name, "context": context},
        )

    # ------------------------------------------------------------------
    # Built-in improvers
    # ------------------------------------------------------------------

    def _register_defaults(self) -> None:
        self.register(DEFAULT_IMPROVER, default_improver)
        self.register("professional", professional_improver)
        self.register("creative", self._creative)
        logger.info("Default message improvers registered")

    def _creative(self, message: str, context: ImprovementContext | None = None) -> str:
        return creative_improver(message, context, rng=self._rng)


def _unchanged(message: str, error: str) -> MessageImprovementResult:
    return MessageImprovementResult(
        original_message=message,
        improved_message=message,
        improvement_type="none",
        metadata={"error": error},
    )


def default_improver(message: str, context: ImprovementContext | None = None) -> str:
    """Trim, capitalize the first letter and add a period if punctuation is missing."""
    improved = message.strip()
    if not improved:
        return improved
    return ensure_terminal_punctuation(capitalize_first(improved))


def professional_improver(message: str, context: ImprovementContext | None = None) -> str:
    """Swap informal shorthand for business phrasing."""
    improved = message.strip()
    if not improved:
        return improved
    improved = replace_words(capitalize_first(improved), PROFESSIONAL_REPLACEMENTS)
    return ensure_terminal_punctuation(improved)


def creative_improver(
    message: str,
    context: ImprovementContext | None = None,
    *,
    rng: random.Random | None = None,
) -> str:
    """Prefix short messages with an engaging starter and liven up the ending."""
    improved = message.strip()
    if not improved:
        return improved
    improved = capitalize_first(improved)

    if len(improved) < 100 and ":" not in improved:
        improved = (rng or random).choice(CREATIVE_STARTERS) + improved

    lowered = improved.lower()
    if any(word in lowered for word in _EXCITING_WORDS) and improved.endswith("."):
        improved = improved[:-1] + "!"

    return ensure_terminal_punctuation(improved)
