"""Disengagement detector - short, flat or "I'm bored" replies."""

from parentgate.domain.models.intent import IntentLabel
from parentgate.signals.intent_base import IntentDetector
from parentgate.signals.keywords import keyword_score, words

RECENT_USER_TURNS = 4


class DisengagementDetector(IntentDetector):
    """Track how many recent user replies are disengaged.

    Namespaced detector: session.disengagement

    A reply counts as disengaged when it has at most `short_reply_words`
    words or contains disengagement vocabulary. Confidence is the larger of:
    - share of the last 4 user turns that are disengaged (fixed denominator,
      so one curt "ok" early in a session stays below min_confidence)
    - the keyword score of the latest user turn
    """

    detector_name = "session.disengagement"
    intent = IntentLabel.DISENGAGEMENT
    description = "Recent user replies are curt or express boredom or wanting to stop."

    async def detect(self, turns):
        users = self.user_turns(turns)[-RECENT_USER_TURNS:]
        if not users:
            return 0.0

        disengaged = sum(1 for t in users if self._is_disengaged(t.text))
        share = disengaged / RECENT_USER_TURNS
        latest = keyword_score(users[-1].text, self.config.disengagement_keywords)
        return min(max(share, latest), 1.0)

    def _is_disengaged(self, text: str) -> bool:
        if len(words(text)) <= self.config.short_reply_words:
            return True
        return keyword_score(text, self.config.disengagement_keywords) > 0
