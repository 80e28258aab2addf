"""Repetition detector - the child keeps saying the same thing."""

from parentgate.domain.models.intent import IntentLabel
from parentgate.signals.intent_base import IntentDetector
from parentgate.signals.text_similarity import create_similarity_calculator


class RepetitionDetector(IntentDetector):
    """Compare the latest user turn with earlier user turns in the window.

    Namespaced detector: session.repetition

    Confidence by number of earlier near-duplicates:
    - 0: 0.0
    - 1: 0.75
    - 2+: 1.0
    """

    detector_name = "session.repetition"
    intent = IntentLabel.REPETITION
    description = "Latest user turn closely repeats earlier user turns in the window."

    def __init__(self, config=None):
        super().__init__(config)
        self.similarity = create_similarity_calculator(self.config.repetition_similarity)

    async def detect(self, turns):
        users = self.user_turns(turns)
        if len(users) < 2:
            return 0.0

        repeats, _ = self.similarity.similar_count(
            users[-1].text, [t.text for t in users[:-1]]
        )
        if repeats == 0:
            return 0.0
        return min(0.5 + 0.25 * repeats, 1.0)
