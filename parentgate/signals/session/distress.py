"""Distress detector - the child sounds sad, scared or hurt."""

from parentgate.domain.models.intent import IntentLabel
from parentgate.signals.intent_base import IntentDetector
from parentgate.signals.keywords import keyword_score


class DistressDetector(IntentDetector):
    """Score distress vocabulary in the latest user turn.

    Namespaced detector: session.distress

    Distress scores are weighted up (distress_weight, default 1.2) so a
    single clear phrase outranks incidental play or topic words.
    """

    detector_name = "session.distress"
    intent = IntentLabel.DISTRESS
    description = "Latest user turn contains sadness, fear or pain vocabulary."

    async def detect(self, turns):
        users = self.user_turns(turns)
        if not users:
            return 0.0
        score = keyword_score(users[-1].text, self.config.distress_keywords)
        return min(score * self.config.distress_weight, 1.0)
