"""
CBT Exercise Guidance

Step-by-step guidance for the guided CBT exercises, personalized by the
user's current anxiety and mood, their practice history for the same
exercise over the last week, and the tone of their recent journal entries.
Also produces the feedback shown after an exercise is completed.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

HISTORY_WINDOW = timedelta(days=7)

EXERCISE_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "box-breathing": {
        "name": "Box Breathing",
        "pre": [
            "Find a comfortable position where you won't be disturbed",
            "Place one hand on your chest and one on your stomach",
            "Close your eyes or soften your gaze downward",
        ],
        "during": [
            "Breathe in slowly through your nose for 4 counts",
            "Hold your breath gently for 4 counts",
            "Exhale slowly through your mouth for 4 counts",
            "Hold empty for 4 counts, then repeat",
        ],
        "post": [
            "Notice how your body feels now compared to when you started",
            "Take a moment to appreciate the time you've given yourself",
            "Consider when you might use this technique again today",
        ],
    },
    "grounding-5-4-3-2-1": {
        "name": "5-4-3-2-1 Grounding",
        "pre": [
            "Sit or stand comfortably and take three deep breaths",
            "Remind yourself that you are safe in this moment",
            "This exercise will help bring you back to the present",
        ],
        "during": [
            "Name 5 things you can see around you",
            "Name 4 things you can touch or feel",
            "Name 3 things you can hear",
            "Name 2 things you can smell",
            "Name 1 thing you can taste",
        ],
        "post": [
            "Notice if you feel more present and grounded",
            "Acknowledge that you successfully used a coping skill",
            "Remember this technique is always available to you",
        ],
    },
    "thought-challenging": {
        "name": "Thought Challenging",
        "pre": [
            "Think of a specific situation that's causing you distress",
            "Identify the automatic thought that came up",
            "Rate how much you believe this thought (1-10)",
        ],
        "during": [
            "What evidence supports this thought?",
            "What evidence contradicts this thought?",
            "What would you tell a friend in this situation?",
            "What's a more balanced way to think about this?",
        ],
        "post": [
            "Rate how much you believe the original thought now",
            "Notice any shift in your emotional intensity",
            "Practice using this balanced thought throughout your day",
        ],
    },
    "progressive-muscle-relaxation": {
        "name": "Progressive Muscle Relaxation",
        "pre": [
            "Lie down or sit in a comfortable chair",
            "Loosen any tight clothing",
            "Take a few deep breaths to settle in",
        ],
        "during": [
            "Tense each muscle group for 5 seconds, then release",
            "Start with your toes and work up to your face",
            "Notice the contrast between tension and relaxation",
            "Breathe naturally throughout the exercise",
        ],
        "post": [
            "Scan your body and notice areas of relaxation",
            "Take a few moments to enjoy this peaceful state",
            "Remember how relaxation feels in your body",
        ],
    },
}

# Exercise-specific next steps once the user rated the session 6+.
NEXT_STEPS_BY_EXERCISE = {
    "box-breathing": [
        "Try using box breathing during moments of stress throughout your day",
        "Consider practicing at the same time daily to build a habit",
    ],
    "grounding-5-4-3-2-1": [
        "Remember this technique is available anywhere when you feel disconnected",
        "Try teaching this grounding technique to someone else",
    ],
    "thought-challenging": [
        "Practice applying these questioning techniques to daily situations",
        "Consider writing down the balanced thoughts you discover",
    ],
    "progressive-muscle-relaxation": [
        "Notice throughout the day when your muscles are tense",
        "Try doing brief muscle releases even when you can't do the full exercise",
    ],
}


@dataclass
class ExerciseGuidance:
    pre_exercise: List[str]
    during_exercise: List[str]
    post_exercise: List[str]
    personalized_tips: List[str] = field(default_factory=list)
    difficulty_adjustments: List[str] = field(default_factory=list)


@dataclass
class ExerciseFeedback:
    encouragement: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)


@dataclass
class UserState:
    """
    Inputs for personalization.

    `exercise_history` items need `exercise_type`, `effectiveness` and
    `created_at`; `recent_thought_journals` items need `emotion` and
    `emotion_intensity`.
    """
    current_mood: str = "neutral"
    anxiety_level: int = 5
    exercise_history: List[Any] = field(default_factory=list)
    recent_thought_journals: List[Any] = field(default_factory=list)


def get_default_guidance() -> ExerciseGuidance:
    return ExerciseGuidance(
        pre_exercise=[
            "Find a quiet, comfortable space",
            "Take a moment to check in with how you're feeling",
            "Set an intention for this practice",
        ],
        during_exercise=[
            "Follow the guided instructions",
            "Be patient and kind with yourself",
            "Notice without judgment what comes up",
        ],
        post_exercise=[
            "Take a moment to notice any changes",
            "Appreciate the time you've dedicated to self-care",
            "Consider how you might apply what you've learned",
        ],
        personalized_tips=[
            "Regular practice builds resilience over time",
            "It's normal for experiences to vary each time you practice",
        ],
        difficulty_adjustments=[],
    )


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _common_emotions(journals) -> List[str]:
    emotions = [(j.emotion or "").lower() for j in journals]
    counts = Counter(e for e in emotions if e)
    return [emotion for emotion, _ in counts.most_common(3)]


def get_personalized_guidance(
    exercise_type: str,
    user_state: UserState,
    now: Optional[datetime] = None,
) -> ExerciseGuidance:
    """Guidance for one exercise; unknown exercise types get the generic guidance."""
    template = EXERCISE_TEMPLATES.get(exercise_type)
    if template is None:
        return get_default_guidance()

    now = now or datetime.now(timezone.utc)
    guidance = ExerciseGuidance(
        pre_exercise=list(template["pre"]),
        during_exercise=list(template["during"]),
        post_exercise=list(template["post"]),
    )
    tips = guidance.personalized_tips

    if user_state.anxiety_level >= 8:
        tips.extend([
            "Your anxiety is quite high right now. Start with shorter durations.",
            "It's normal for your mind to wander when anxious - gently return focus.",
            "Remember: the goal isn't to eliminate anxiety, but to manage it.",
        ])
        guidance.difficulty_adjustments.extend([
            "Consider reducing the duration by half to start",
            "If breathing exercises feel difficult, just focus on natural breathing",
            "It's okay to keep your eyes open if closing them increases anxiety",
        ])
    elif user_state.anxiety_level >= 5:
        tips.extend([
            "You're experiencing moderate anxiety - this exercise can help.",
            "Take your time and don't rush through the steps.",
            "Notice any small changes in how you feel.",
        ])
    else:
        tips.extend([
            "Great time to practice! Building skills when calm makes them more available during stress.",
            "You might try extending the duration or adding complexity.",
            "Focus on really noticing the subtle effects of the exercise.",
        ])

    mood = (user_state.current_mood or "").lower()
    if "overwhelmed" in mood:
        guidance.pre_exercise.insert(
            0, "You're feeling overwhelmed right now. This exercise will help you find some calm."
        )
        tips.extend([
            "When overwhelmed, any amount of practice is beneficial",
            "Focus on just getting through the exercise, don't worry about doing it perfectly",
        ])
    if "sad" in mood or "depressed" in mood:
        tips.extend([
            "When feeling low, these exercises can help lift your energy slightly",
            "Be especially kind to yourself during and after the practice",
            "Even if you don't feel much different, you're taking positive action",
        ])

    cutoff = now - HISTORY_WINDOW
    recent = [
        ex for ex in user_state.exercise_history
        if ex.exercise_type == exercise_type and _as_utc(ex.created_at) > cutoff
    ]
    if not recent:
        tips.extend([
            "This is your first time trying this exercise recently - be patient with yourself",
            "It's normal for new techniques to feel awkward at first",
        ])
    elif len(recent) >= 3:
        avg_effectiveness = sum(ex.effectiveness for ex in recent) / len(recent)
        if avg_effectiveness >= 7:
            tips.extend([
                "You've been finding this exercise quite helpful - great consistency!",
                "Consider trying a longer duration or teaching this technique to someone else",
            ])
        elif avg_effectiveness >= 4:
            tips.extend([
                "You're building skill with this exercise. Keep practicing!",
                "Try paying attention to different aspects of the technique today",
            ])
        else:
            tips.extend([
                "This exercise hasn't been feeling very effective lately - that's okay",
                "Consider trying a different variation or checking if something is distracting you",
                "Sometimes techniques work better at different times of day",
            ])

    journals = user_state.recent_thought_journals
    if journals:
        avg_intensity = sum(j.emotion_intensity or 5 for j in journals) / len(journals)
        if avg_intensity >= 7:
            tips.extend([
                "Your recent journal entries show high emotional intensity - this practice can help",
                "Consider doing this exercise when you notice intense thoughts arising",
            ])

        common = _common_emotions(journals)
        if "anxious" in common and exercise_type == "box-breathing":
            tips.append(
                "Breathing exercises are particularly helpful for anxiety patterns you've been experiencing"
            )
        if "overwhelmed" in common and exercise_type == "grounding-5-4-3-2-1":
            tips.append(
                "Grounding techniques can be especially helpful when feeling overwhelmed, as noted in your recent entries"
            )

    return guidance


def get_post_exercise_feedback(
    exercise_type: str,
    duration_minutes: int,
    effectiveness: int,
) -> ExerciseFeedback:
    feedback = ExerciseFeedback()

    if effectiveness >= 8:
        feedback.encouragement.extend([
            "Excellent! You found this exercise very helpful.",
            "Your commitment to practice is paying off.",
        ])
    elif effectiveness >= 5:
        feedback.encouragement.extend([
            "Good work completing the exercise.",
            "Building these skills takes time and practice.",
        ])
    else:
        feedback.encouragement.extend([
            "Thank you for giving this exercise a try.",
            "Not every practice will feel amazing, and that's completely normal.",
            "The act of practicing itself is beneficial, regardless of how it feels.",
        ])

    if effectiveness < 4:
        feedback.suggestions.extend([
            "Consider trying this exercise at a different time of day",
            "You might experiment with a shorter or longer duration",
            "Sometimes changing your environment can help",
            "Try a different exercise type if this one isn't resonating",
        ])
    elif effectiveness >= 7:
        feedback.suggestions.extend([
            "This exercise seems to work well for you - consider making it a regular part of your routine",
            "You might try extending the duration or adding complexity",
            "Consider practicing this exercise preventively, not just during difficult moments",
        ])

    feedback.next_steps.append("Consider logging this experience in your thought journal")
    if effectiveness >= 6:
        feedback.next_steps.extend(NEXT_STEPS_BY_EXERCISE.get(exercise_type, []))

    if duration_minutes < 3:
        feedback.next_steps.append("When you're ready, try gradually increasing the duration")
    elif duration_minutes > 15:
        feedback.next_steps.append("You dedicated significant time to this practice - excellent commitment")

    return feedback
