"""
Cognitive Distortion Analysis

Rule-based analysis of CBT thought-journal entries: keyword matching against
ten common cognitive distortions, a severity grade, reframing prompts and
observed strengths. Also produces the multi-entry pattern report and the
journey summary used when generative insights are unavailable.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Distortion:
    name: str
    description: str
    keywords: tuple
    examples: tuple


DISTORTIONS: List[Distortion] = [
    Distortion(
        "All-or-Nothing Thinking",
        "Seeing things in black and white categories",
        ("always", "never", "completely", "totally", "perfect", "failure", "ruined", "disaster"),
        ("I'm a complete failure", "I never do anything right", "This is totally ruined"),
    ),
    Distortion(
        "Overgeneralization",
        "Making broad conclusions from single events",
        ("always", "never", "everyone", "no one", "everything", "nothing", "typical"),
        ("This always happens to me", "I never get it right", "Everyone thinks I'm weird"),
    ),
    Distortion(
        "Mental Filter",
        "Focusing only on negative details",
        ("only", "just", "but", "except", "however", "still", "worst"),
        ("I only made one mistake", "But what if", "The worst part was"),
    ),
    Distortion(
        "Mind Reading",
        "Assuming you know what others think",
        ("thinks", "believes", "knows", "realizes", "sees", "notices", "judges"),
        ("They think I'm stupid", "He knows I'm lying", "She can see I'm nervous"),
    ),
    Distortion(
        "Fortune Telling",
        "Predicting negative outcomes",
        ("will", "going to", "bound to", "definitely", "certainly", "probably", "won't work"),
        ("I'm going to fail", "This won't work out", "I'll definitely mess up"),
    ),
    Distortion(
        "Catastrophizing",
        "Expecting the worst possible outcome",
        ("terrible", "awful", "horrible", "disaster", "catastrophe", "worst", "end of the world"),
        ("This is a disaster", "It's the end of the world", "This is terrible"),
    ),
    Distortion(
        "Emotional Reasoning",
        "Believing feelings reflect reality",
        ("feel", "seems", "appears", "looks like", "must be true"),
        ("I feel stupid so I must be", "It feels wrong so it is", "I seem incompetent"),
    ),
    Distortion(
        "Should Statements",
        "Using 'should', 'must', 'ought' statements",
        ("should", "shouldn't", "must", "mustn't", "ought", "have to", "need to"),
        ("I should be better", "I must be perfect", "I have to succeed"),
    ),
    Distortion(
        "Labeling",
        "Attaching negative labels to yourself or others",
        ("am", "is", "are", "loser", "idiot", "stupid", "worthless", "failure"),
        ("I'm a loser", "I'm stupid", "I'm worthless", "I'm a failure"),
    ),
    Distortion(
        "Personalization",
        "Taking responsibility for things outside your control",
        ("my fault", "because of me", "I caused", "I'm responsible", "I should have"),
        ("It's my fault", "I caused this", "I'm responsible for their feelings"),
    ),
]

POSITIVE_KEYWORDS = (
    "grateful", "thankful", "accomplished", "proud", "succeeded", "learned",
    "grew", "improved", "handled", "managed", "coped", "resilient", "strong",
)

REFRAMING_TEMPLATES = {
    "All-or-Nothing Thinking": [
        "Instead of seeing this as completely good or bad, what's a more balanced view?",
        "What evidence exists for both sides of this situation?",
        "How might someone else see this more realistically?",
    ],
    "Overgeneralization": [
        "What evidence contradicts this generalization?",
        "When has this NOT been true in your experience?",
        "How might you describe this specific situation without generalizing?",
    ],
    "Mental Filter": [
        "What positive aspects of this situation am I overlooking?",
        "What would a balanced view of this situation include?",
        "What would I tell a friend in this same situation?",
    ],
    "Mind Reading": [
        "What evidence do I have that they're actually thinking this?",
        "What other explanations might there be for their behavior?",
        "How could I find out what they're actually thinking?",
    ],
    "Fortune Telling": [
        "What evidence supports this prediction?",
        "What other outcomes are possible?",
        "How have similar situations worked out in the past?",
    ],
    "Catastrophizing": [
        "What's the most realistic outcome here?",
        "How might I cope if this difficult situation actually happened?",
        "What's the difference between possible and probable?",
    ],
    "Emotional Reasoning": [
        "What facts support or contradict this feeling?",
        "How might my emotions be affecting my thinking right now?",
        "What would the evidence suggest if I weren't feeling this way?",
    ],
    "Should Statements": [
        "What would be a more realistic expectation?",
        "Where did this 'should' come from? Is it truly necessary?",
        "How might I reframe this as a preference rather than a demand?",
    ],
    "Labeling": [
        "What specific behaviors or actions am I referring to?",
        "How might I describe this situation without using labels?",
        "What would be a more compassionate way to view this?",
    ],
    "Personalization": [
        "What factors outside my control contributed to this situation?",
        "What percentage of responsibility realistically belongs to me?",
        "How might I separate my actions from the outcomes?",
    ],
}

BALANCED_SUGGESTIONS = [
    "Your thinking appears balanced. Consider what you learned from this experience.",
    "Focus on the coping strategies that helped you through this situation.",
    "Notice any growth or resilience you demonstrated.",
]

SEVERITY_SUGGESTIONS = {
    "high": [
        "Consider discussing these thoughts with a mental health professional.",
        "Practice grounding techniques like deep breathing or the 5-4-3-2-1 method.",
        "Challenge these thoughts by looking for concrete evidence.",
    ],
    "moderate": [
        "Try examining the evidence for and against these thoughts.",
        "Consider what you'd tell a friend in this situation.",
        "Practice self-compassion - treat yourself as kindly as you would a good friend.",
    ],
    "low": [
        "Continue practicing awareness of your thought patterns.",
        "Notice what's working well in your coping strategies.",
        "Acknowledge your efforts in self-reflection.",
    ],
}

ACTIVE_WORK_STRENGTH = "You're actively working on understanding your thoughts and feelings"

CATASTROPHIC_WORDS = ("always", "never", "worst", "terrible")

RECENT_WINDOW = 10


@dataclass
class ThoughtAnalysis:
    cognitive_distortions: List[str]
    severity: str
    suggestions: List[str]
    reframing_examples: List[str]
    strengths: List[str]


@dataclass
class DetailedAnalysis:
    patterns: List[str] = field(default_factory=list)
    progress: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    overall_trend: str = "stable"


def detect_distortions(text: str) -> List[str]:
    """Names of every distortion with at least one keyword in `text` (substring match)."""
    lowered = text.lower()
    return [
        d.name for d in DISTORTIONS
        if any(keyword.lower() in lowered for keyword in d.keywords)
    ]


def grade_severity(emotion_intensity: int, distortion_count: int) -> str:
    if emotion_intensity >= 8 or distortion_count >= 3:
        return "high"
    if emotion_intensity >= 5 or distortion_count >= 2:
        return "moderate"
    return "low"


def analyze_cbt_entry(
    situation: str,
    negative_thought: str,
    emotion: str,
    emotion_intensity: int,
) -> ThoughtAnalysis:
    """
    Analyze a single thought-journal entry.

    Pure function: the same inputs always produce the same analysis.
    """
    combined = f"{situation} {negative_thought} {emotion}".lower()
    detected = detect_distortions(combined)
    severity = grade_severity(emotion_intensity, len(detected))

    suggestions: List[str] = []
    reframing_examples: List[str] = []
    if not detected:
        suggestions.extend(BALANCED_SUGGESTIONS)
    else:
        for name in detected:
            templates = REFRAMING_TEMPLATES.get(name)
            if templates:
                reframing_examples.append(templates[0])
        suggestions.extend(SEVERITY_SUGGESTIONS[severity])

    strengths: List[str] = []
    if any(word in combined for word in POSITIVE_KEYWORDS):
        strengths.append("You're recognizing positive aspects of your experience")
    if emotion_intensity <= 3:
        strengths.append("You're managing your emotions effectively")
    if len(situation) > 20:
        strengths.append("You're providing detailed context, which shows good self-awareness")
    if len(detected) <= 1:
        strengths.append("Your thinking appears relatively balanced")
    strengths.append(ACTIVE_WORK_STRENGTH)

    return ThoughtAnalysis(
        cognitive_distortions=detected,
        severity=severity,
        suggestions=suggestions,
        reframing_examples=reframing_examples,
        strengths=strengths,
    )


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _common_emotions(journals) -> List[str]:
    counts = Counter(j.emotion.lower() for j in journals)
    return [emotion for emotion, _ in counts.most_common(3)]


def get_detailed_analysis(journals) -> DetailedAnalysis:
    """
    Pattern, progress and trend report over the most recent entries.

    `journals` must be in chronological order (oldest first); only the last
    ten are considered, split into an older and a newer half.
    """
    if not journals:
        return DetailedAnalysis(
            patterns=["Not enough data to identify patterns"],
            progress=["Start journaling to track your progress"],
            recommendations=[
                "Begin with daily thought tracking",
                "Practice identifying emotions",
                "Try reframing exercises",
            ],
            overall_trend="stable",
        )

    recent = list(journals)[-RECENT_WINDOW:]
    n = len(recent)
    average_intensity = _mean([j.emotion_intensity for j in recent])
    common_emotions = _common_emotions(recent)
    reframing_rate = sum(1 for j in recent if j.reframed_thought) / n

    split = n // 2
    second_half_avg = _mean([j.emotion_intensity for j in recent[split:]])
    # A single entry has no older half; compare it against itself.
    first_half_avg = _mean([j.emotion_intensity for j in recent[:split]]) if split else second_half_avg

    result = DetailedAnalysis()

    if common_emotions:
        result.patterns.append(f"Most frequent emotions: {', '.join(common_emotions)}")

    if average_intensity >= 7:
        result.patterns.append("High emotional intensity episodes are common")
    elif average_intensity <= 3:
        result.patterns.append("Generally low emotional intensity - good emotional regulation")

    catastrophic = [
        j for j in recent
        if any(word in j.negative_thought.lower() for word in CATASTROPHIC_WORDS)
    ]
    if len(catastrophic) > n * 0.4:
        result.patterns.append("Tendency towards catastrophic thinking patterns")

    if second_half_avg < first_half_avg - 1:
        result.progress.append("Emotional intensity has decreased over time - great progress!")
    elif second_half_avg > first_half_avg + 1:
        result.progress.append("Emotional intensity has increased recently - consider additional support")
    else:
        result.progress.append("Emotional intensity has remained stable")

    if reframing_rate > 0.7:
        result.progress.append("Excellent use of thought reframing techniques")
    elif reframing_rate > 0.3:
        result.progress.append("Good progress with thought reframing")
    else:
        result.progress.append("More practice needed with thought reframing")

    if reframing_rate < 0.5:
        result.recommendations.append("Practice reframing negative thoughts more consistently")
    if average_intensity > 6:
        result.recommendations.append("Consider stress reduction techniques like deep breathing")
        result.recommendations.append("Try progressive muscle relaxation exercises")
    if "anxious" in common_emotions or "worried" in common_emotions:
        result.recommendations.append("Explore grounding techniques like 5-4-3-2-1 method")
    if len(journals) < 5:
        result.recommendations.append("Continue daily journaling to build better awareness")

    if second_half_avg < first_half_avg - 0.5 and reframing_rate > 0.5:
        result.overall_trend = "improving"
    elif second_half_avg > first_half_avg + 1 or average_intensity > 7:
        result.overall_trend = "concerning"
    else:
        result.overall_trend = "stable"

    return result


def _most_frequent(items: List[str]) -> Optional[str]:
    """Most frequent item (first to reach the top count); None unless it occurs more than once."""
    counts: dict = {}
    best, best_count = None, 0
    for item in items:
        counts[item] = counts.get(item, 0) + 1
        if counts[item] > best_count:
            best, best_count = item, counts[item]
    return best if best_count > 1 else None


def build_rule_based_summary(entries) -> str:
    """
    Plain-language summary of the most recent entries.

    `entries` are newest first; the first ten are summarized.
    """
    if not entries:
        return "Start journaling to see insights about your thought patterns."

    recent = list(entries)[:RECENT_WINDOW]
    all_distortions: List[str] = []
    total_intensity = 0
    for entry in recent:
        intensity = entry.emotion_intensity or 5
        analysis = analyze_cbt_entry(
            entry.situation or "",
            entry.negative_thought or "",
            entry.emotion or "",
            intensity,
        )
        all_distortions.extend(analysis.cognitive_distortions)
        total_intensity += intensity

    avg = total_intensity / len(recent)
    summary = f"Over your last {len(recent)} entries, "
    if avg <= 4:
        summary += f"you've been managing your emotions well with an average intensity of {avg:.1f}. "
    elif avg <= 7:
        summary += f"your emotional intensity has been moderate (avg: {avg:.1f}). "
    else:
        summary += f"you've experienced higher emotional intensity (avg: {avg:.1f}). "

    top = _most_frequent(all_distortions)
    if top:
        summary += f"The most common thought pattern to watch for is {top}. "

    summary += "Keep practicing self-awareness and self-compassion."
    return summary


def get_insight_summary(entries, gemini=None) -> str:
    """
    Journey insights for the newest-first `entries`.

    Uses generative insights when a configured Gemini service is supplied,
    otherwise the rule-based summary.
    """
    if gemini is not None and gemini.is_available:
        return gemini.generate_journey_insights(entries)
    return build_rule_based_summary(entries)
