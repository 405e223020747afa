"""
Mood Check-in Support

Short validation and motivation messages for an emoji mood check-in, with
adjustments based on the user's last few check-ins.
"""

import logging
import random
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

RECENT_MOOD_WINDOW = 7
PATTERN_THRESHOLD = 4

NEGATIVE_MOODS = {"😰", "😢", "😠", "😓"}
POSITIVE_MOODS = {"😊", "😌", "🙂"}

GUEST_NAME = "Guest User"

# emoji -> (mood label, [(validation, motivation), ...])
MOOD_RESPONSES: Dict[str, Tuple[str, List[Tuple[str, str]]]] = {
    "😊": ("happy", [
        ("It's wonderful that you're feeling happy today!",
         "Your positive energy can be a powerful force for good - share it with others."),
        ("I'm so glad you're experiencing joy right now.",
         "Take a moment to really savor this feeling and remember what contributed to it."),
        ("Your happiness is radiating through!",
         "Consider writing down what's making you happy to revisit on harder days."),
    ]),
    "😌": ("calm", [
        ("Finding calm is such a valuable skill.",
         "This peaceful state you've cultivated is something to be proud of."),
        ("Your sense of calm is beautiful.",
         "You're creating space for clarity and wisdom to emerge."),
        ("What a gift to feel centered and peaceful.",
         "Your calm energy can be a source of strength for others too."),
    ]),
    "🙂": ("content", [
        ("Contentment is one of life's greatest treasures.",
         "You're practicing gratitude for the present moment - that's powerful."),
        ("There's such strength in feeling content with where you are.",
         "This balanced state you've found is worth celebrating."),
        ("Your sense of contentment shows real inner wisdom.",
         "You're showing that happiness doesn't always need to be loud to be meaningful."),
    ]),
    "😐": ("neutral", [
        ("It's perfectly okay to feel neutral - not every day needs to be exceptional.",
         "You're still here and still trying, and that's what matters most."),
        ("Neutral feelings are valid and important too.",
         "Sometimes the most growth happens in these quiet, steady moments."),
        ("You're taking time to check in with yourself - that's self-care.",
         "Even neutral days are part of your journey toward wellness."),
    ]),
    "🤔": ("thoughtful", [
        ("Your thoughtfulness shows how much you care about understanding yourself.",
         "The fact that you're reflecting means you're growing and learning."),
        ("Taking time to think things through is a sign of wisdom.",
         "Your self-awareness is a superpower that will guide you well."),
        ("Contemplation is how we make sense of our experiences.",
         "Trust the process - your insights will come when you're ready."),
    ]),
    "😴": ("tired", [
        ("Being tired is your body and mind asking for what they need.",
         "Rest isn't giving up - it's preparing for what comes next."),
        ("Acknowledging your tiredness shows you're listening to yourself.",
         "Every small step counts, even when energy is low."),
        ("Tiredness is a sign you've been putting in effort.",
         "Be gentle with yourself - recovery is part of the process."),
    ]),
    "😰": ("anxious", [
        ("Your anxiety makes sense - you're human and you care deeply.",
         "You've managed anxious feelings before, and you have the strength to navigate this too."),
        ("Feeling anxious doesn't mean you're weak - it means you're aware.",
         "Each time you notice anxiety, you're building your emotional intelligence."),
        ("Your anxiety is trying to protect you - acknowledge it with kindness.",
         "You have tools and support to work through this feeling."),
    ]),
    "😢": ("sad", [
        ("Your sadness is valid and deserves to be honored.",
         "Feeling deeply is a sign of your compassion and humanity."),
        ("It takes courage to acknowledge when you're struggling.",
         "This difficult moment is temporary, but your resilience is permanent."),
        ("Sadness can be a teacher, showing us what matters most.",
         "You don't have to carry this alone - support is always available."),
    ]),
    "😠": ("frustrated", [
        ("Your frustration shows you have standards and you care about outcomes.",
         "This energy can be channeled into positive change when you're ready."),
        ("Frustration often means you're pushing against limitations - that takes courage.",
         "You have the wisdom to find constructive ways to address what's bothering you."),
        ("It's healthy to feel frustrated when things aren't going as hoped.",
         "Your determination will help you find solutions, one step at a time."),
    ]),
    "😓": ("overwhelmed", [
        ("Feeling overwhelmed means you're facing a lot - that's genuinely difficult.",
         "You don't have to tackle everything at once - focus on just the next small step."),
        ("Overwhelm is your mind's way of saying 'this is a lot to handle'.",
         "Break things down, ask for help, and remember: you've overcome challenges before."),
        ("Recognizing overwhelm is the first step toward managing it.",
         "You have more strength and resources than this moment might reveal."),
    ]),
}

DEFAULT_SUPPORT = (
    "Thank you for sharing how you're feeling.",
    "Every emotion is valid and tells us something important about our experience.",
)

_LEADING_YOU = re.compile(r"^(You're|Your|You)\b", re.IGNORECASE)


@dataclass
class MoodSupport:
    validation: str
    motivation: str
    quick_tip: Optional[str] = None


def mood_label(mood_emoji: str) -> Optional[str]:
    entry = MOOD_RESPONSES.get(mood_emoji)
    return entry[0] if entry else None


def get_mood_support(mood_emoji: str) -> MoodSupport:
    """One of the emoji's canned responses, or the generic one for unmapped emoji."""
    entry = MOOD_RESPONSES.get(mood_emoji)
    if entry is None:
        return MoodSupport(*DEFAULT_SUPPORT)
    validation, motivation = random.choice(entry[1])
    return MoodSupport(validation=validation, motivation=motivation)


def _personalize(validation: str, user_name: str) -> str:
    def _swap(match: re.Match) -> str:
        lead = match.group(1)
        return f"{user_name}, {lead[0].lower()}{lead[1:]}"
    return _LEADING_YOU.sub(_swap, validation, count=1)


def get_mood_support_with_context(
    mood_emoji: str,
    recent_moods: Sequence[str],
    user_name: Optional[str] = None,
) -> MoodSupport:
    """
    Mood support adjusted for the recent pattern.

    `recent_moods` are emoji in chronological order; only the last seven
    are considered. Four or more negative (or positive) check-ins in that
    window add contextual text.
    """
    support = get_mood_support(mood_emoji)
    window = list(recent_moods)[-RECENT_MOOD_WINDOW:]
    negative_count = sum(1 for m in window if m in NEGATIVE_MOODS)
    positive_count = sum(1 for m in window if m in POSITIVE_MOODS)

    if negative_count >= PATTERN_THRESHOLD:
        if mood_emoji in POSITIVE_MOODS:
            support.motivation += " It's especially meaningful to see you finding moments of light."
        elif mood_emoji in NEGATIVE_MOODS:
            support.quick_tip = "Consider reaching out to someone you trust or trying a grounding exercise."
    elif positive_count >= PATTERN_THRESHOLD:
        if mood_emoji in POSITIVE_MOODS:
            support.motivation += " You're building a beautiful pattern of wellbeing."
        elif mood_emoji in NEGATIVE_MOODS:
            support.validation += " It's normal to have ups and downs even during generally good periods."

    if user_name and user_name != GUEST_NAME:
        support.validation = _personalize(support.validation, user_name)

    return support
