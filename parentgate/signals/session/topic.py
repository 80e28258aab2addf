"""Topic detectors - is the conversation following the current activity?

Both detectors stay silent (0.0) unless topic_keywords or
off_topic_keywords are configured for the session.
"""

from parentgate.domain.models.intent import IntentLabel
from parentgate.signals.intent_base import IntentDetector
from parentgate.signals.keywords import keyword_score

OFF_TOPIC_STEP = 0.3
OFF_TOPIC_CAP = 0.9


class OnTopicDetector(IntentDetector):
    """Score activity vocabulary in the latest user turn.

    Namespaced detector: session.on_topic
    """

    detector_name = "session.on_topic"
    intent = IntentLabel.ON_TOPIC
    description = "Latest user turn uses the current activity's vocabulary."

    async def detect(self, turns):
        users = self.user_turns(turns)
        if not users or not self.config.topic_keywords:
            return 0.0
        return min(keyword_score(users[-1].text, self.config.topic_keywords), 1.0)


class OffTopicDetector(IntentDetector):
    """Detect drift away from the current activity.

    Namespaced detector: session.off_topic

    Confidence is the larger of:
    - 0.3 per consecutive latest user turn without any topic keyword
      (capped at 0.9), when topic_keywords are configured
    - the keyword score of the latest turn against off_topic_keywords
    """

    detector_name = "session.off_topic"
    intent = IntentLabel.OFF_TOPIC
    description = "Recent user turns ignore the activity or name excluded subjects."

    async def detect(self, turns):
        users = self.user_turns(turns)
        if not users:
            return 0.0

        drift = 0.0
        if self.config.topic_keywords:
            streak = 0
            for turn in reversed(users):
                if keyword_score(turn.text, self.config.topic_keywords) > 0:
                    break
                streak += 1
            drift = min(OFF_TOPIC_STEP * streak, OFF_TOPIC_CAP)

        flagged = keyword_score(users[-1].text, self.config.off_topic_keywords)
        return min(max(drift, flagged), 1.0)
