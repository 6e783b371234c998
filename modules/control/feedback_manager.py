"""
Player-facing feedback phrases for the gesture game.

Builds the prompt, praise, timeout and failure messages. Delivering them
(speech, UI) is left to whoever listens on the event bus.
"""

import random
import logging
from typing import Optional

from core.types import GestureLabel

logger = logging.getLogger(__name__)

GET_READY = "Ready?...Set?..."
TIMEOUT = "Sorry, but time's run out!"
ERROR = "An error has occurred."
PLAYED_TOO_LONG = ("Ok, nice job. But seriously, you've played this for way "
                   "too long. It was just a demo!")

PRAISE = ("Great!", "Super!", "Nice!", "Awesome!", "Sweet!", "That's it!")


class FeedbackManager:
    """Phrase tables and message builders for each game event."""

    def __init__(self, config: Optional[dict] = None, rng: Optional[random.Random] = None):
        config = config or {}
        self._rng = rng or random.Random(config.get("seed"))

        self._prompts = {
            GestureLabel.CHOP_IT: "Chop it!",
            GestureLabel.DRIVE_IT: "Drive it!",
            GestureLabel.SHAKE_IT: "Shake it!",
        }
        # What the player did (simple past)
        self._did = {
            GestureLabel.CHOP_IT: "chopped it",
            GestureLabel.DRIVE_IT: "drove it",
            GestureLabel.SHAKE_IT: "shook it",
        }
        # What the player should have done (past participle)
        self._wanted = {
            GestureLabel.CHOP_IT: "chopped it",
            GestureLabel.DRIVE_IT: "driven it",
            GestureLabel.SHAKE_IT: "shaken it",
        }

    def prompt(self, gesture: GestureLabel) -> str:
        return self._prompts.get(gesture, ERROR)

    def praise(self) -> str:
        return self._rng.choice(PRAISE)

    def mismatch(self, expected: Optional[GestureLabel], predicted: Optional[GestureLabel]) -> str:
        did = self._did.get(predicted, "did something I didn't recognize")
        wanted = self._wanted.get(expected, "done something I did recognize")
        return f"Oops. Sorry, it seems you {did} when you should have {wanted}."

    def timeout(self) -> str:
        return TIMEOUT

    def get_ready(self) -> str:
        return GET_READY

    def played_too_long(self) -> str:
        return PLAYED_TOO_LONG
