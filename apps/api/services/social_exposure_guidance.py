"""
Social Exposure Guidance

Encouragement before a social exposure, reflection after it, and a daily
nudge based on how many exposures the user completed today and this week.
Free-text exposure types are mapped onto six known categories by keyword.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

GUEST_NAME = "Guest User"

EXPOSURE_TYPES: Dict[str, Dict] = {
    "conversation": {
        "name": "Starting Conversations",
        "encouragement": [
            "Every conversation you start is a victory over anxiety.",
            "Your voice and thoughts matter - people want to hear from you.",
            "Small talk leads to meaningful connections over time.",
        ],
        "tips": [
            "Start with a genuine compliment or observation about your surroundings",
            "Ask open-ended questions to keep the conversation flowing",
            "Remember: most people appreciate friendly interaction",
        ],
        "affirmations": [
            "I am worthy of connection and friendship",
            "People generally respond positively to genuine interest",
            "Each conversation makes the next one easier",
        ],
    },
    "public_speaking": {
        "name": "Public Speaking",
        "encouragement": [
            "Your message deserves to be heard by others.",
            "Nervousness shows you care about doing well - channel that energy positively.",
            "Every great speaker started with their first nervous speech.",
        ],
        "tips": [
            "Focus on your message rather than your anxiety",
            "Make eye contact with friendly faces in the audience",
            "Remember: people want you to succeed, not fail",
        ],
        "affirmations": [
            "I have valuable insights to share with others",
            "My nervousness will transform into excitement as I speak",
            "I am becoming more confident with each speaking opportunity",
        ],
    },
    "group_activities": {
        "name": "Group Activities",
        "encouragement": [
            "Joining groups is how we find our tribe and community.",
            "Your unique perspective adds value to any group you join.",
            "Group activities become more enjoyable as you settle in.",
        ],
        "tips": [
            "Arrive a few minutes early to have smaller conversations before the crowd",
            "Look for others who seem quiet or new - they often appreciate friendly approaches",
            "Focus on the activity itself rather than social performance",
        ],
        "affirmations": [
            "I belong in social groups and have something to contribute",
            "Others are often feeling as nervous as I am",
            "I can find common ground with almost anyone",
        ],
    },
    "social_events": {
        "name": "Social Events",
        "encouragement": [
            "Showing up is already a huge step toward overcoming social anxiety.",
            "Social events are practice grounds for building lasting friendships.",
            "Your comfort zone expands every time you attend social gatherings.",
        ],
        "tips": [
            "Have a few conversation starters ready about current events or shared interests",
            "Give yourself permission to leave early if you feel overwhelmed",
            "Look for one person to have a meaningful conversation with rather than trying to work the room",
        ],
        "affirmations": [
            "I am interesting and people enjoy my company",
            "Social events are opportunities, not tests I can fail",
            "I can handle any social situation that comes my way",
        ],
    },
    "phone_calls": {
        "name": "Phone Calls",
        "encouragement": [
            "Phone calls build confidence in your voice and communication skills.",
            "Making calls gets easier with practice - you're building a valuable life skill.",
            "Phone anxiety is common, but you're taking action to overcome it.",
        ],
        "tips": [
            "Write down key points you want to cover before calling",
            "Smile while talking - it changes the tone of your voice",
            "Practice the opening lines beforehand to feel more confident",
        ],
        "affirmations": [
            "My voice is clear and my communication is effective",
            "Phone calls are just conversations without visual distractions",
            "I am becoming more comfortable with phone communication",
        ],
    },
    "asking_for_help": {
        "name": "Asking for Help",
        "encouragement": [
            "Asking for help shows strength and wisdom, not weakness.",
            "Most people feel good when they can help others - you're giving them a gift.",
            "Learning to ask for help builds stronger relationships and community.",
        ],
        "tips": [
            "Be specific about what kind of help you need",
            "Express genuine gratitude for people's time and assistance",
            "Remember: the worst they can say is no, and that's okay",
        ],
        "affirmations": [
            "It's natural and healthy to need help from others sometimes",
            "People respect those who are honest about their needs",
            "Asking for help connects me more deeply with my community",
        ],
    },
}

# Checked in order; first match wins.
TYPE_KEYWORDS = [
    ("conversation", ("conversation", "talk")),
    ("public_speaking", ("speaking", "present")),
    ("group_activities", ("group", "activity", "class")),
    ("social_events", ("event", "party", "gathering")),
    ("phone_calls", ("call", "phone")),
    ("asking_for_help", ("help", "ask")),
]

# Extra learnings/next steps for completed exposures, keyed by the exact type sent.
COMPLETED_TYPE_EXTRAS = {
    "conversation": (
        "You practiced the fundamental skill of human connection",
        "Try initiating conversations in different settings to generalize this skill",
    ),
    "public_speaking": (
        "You overcame one of the most common fears and shared your voice",
        "Consider joining a speaking group like Toastmasters for regular practice",
    ),
    "group_activities": (
        "You practiced being part of a community, which is essential for wellbeing",
        "Look for regular group activities to build ongoing social connections",
    ),
}


@dataclass
class ExposureContext:
    exposure_type: str
    anxiety_level: int
    description: str = ""
    is_first_time: bool = False
    recent_attempts: int = 0
    success_rate: float = 0.0


@dataclass
class ExposureMotivation:
    encouragement: str
    confidence_booster: str
    practical_tip: str
    affirmation: str


@dataclass
class ExposureFeedback:
    celebration: str
    reflection: List[str] = field(default_factory=list)
    learnings: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)


def resolve_exposure_type(exposure_type: str) -> str:
    """Map a free-text exposure type onto a known category; defaults to conversation."""
    lowered = (exposure_type or "").lower()
    for key, keywords in TYPE_KEYWORDS:
        if any(word in lowered for word in keywords):
            return key
    return "conversation"


def get_pre_exposure_motivation(context: ExposureContext) -> ExposureMotivation:
    data = EXPOSURE_TYPES[resolve_exposure_type(context.exposure_type)]

    encouragement = random.choice(data["encouragement"])
    practical_tip = random.choice(data["tips"])
    affirmation = random.choice(data["affirmations"])
    booster = "You've got this! Trust in your ability to navigate this social situation."

    if context.anxiety_level >= 8:
        encouragement = "It's okay to feel anxious - that means you're pushing your comfort zone. " + encouragement
        booster = "High anxiety shows you're being brave. Start small and be proud of any progress."
        practical_tip = "Take deep breaths and remember you can always excuse yourself if needed. " + practical_tip
    elif context.anxiety_level >= 6:
        encouragement = "Some nervousness is normal and shows you care about the outcome. " + encouragement
        booster = "You're building courage with each social step you take."
    elif context.anxiety_level <= 3:
        encouragement = "You're feeling confident today - that's wonderful! " + encouragement
        booster = "Your calm energy will help others feel comfortable around you too."
        practical_tip = "Since you're feeling good, consider challenging yourself a bit more. " + practical_tip

    if context.is_first_time:
        encouragement = "First times are always the hardest - you're being incredibly brave. " + encouragement
        booster = "Every expert was once a beginner. You're taking the most important step."
    elif context.recent_attempts >= 3:
        if context.success_rate >= 0.7:
            encouragement = "You're building a great track record with these exposures! " + encouragement
            booster = "Your consistency is paying off - you're becoming naturally more confident."
        else:
            encouragement = "Practice makes progress, and you're showing real commitment. " + encouragement
            booster = "Each attempt teaches you something valuable, regardless of the outcome."

    return ExposureMotivation(
        encouragement=encouragement,
        confidence_booster=booster,
        practical_tip=practical_tip,
        affirmation=affirmation,
    )


def get_post_exposure_support(
    context: ExposureContext,
    completed: bool,
    before_anxiety: int,
    after_anxiety: int,
    notes: Optional[str] = None,
) -> ExposureFeedback:
    """
    Reflection after an exposure, graded by completion and anxiety change
    (before minus after). The user's own notes are echoed back as a reflection.
    """
    reduction = before_anxiety - after_anxiety

    if completed:
        if reduction >= 3:
            feedback = ExposureFeedback(
                celebration="Wow! You not only completed the exposure but felt much better afterward. That's amazing progress!",
                reflection=["Notice how your anxiety decreased significantly during this experience"],
                learnings=["Your body and mind learned that this social situation was manageable"],
                next_steps=["Consider trying a similar exposure again to reinforce this positive experience"],
            )
        elif reduction >= 1:
            feedback = ExposureFeedback(
                celebration="Great job! You completed the exposure and your anxiety improved somewhat.",
                reflection=["You experienced some anxiety relief, which shows your coping skills are working"],
                learnings=["Even small reductions in anxiety are meaningful victories"],
                next_steps=["Build on this success with regular practice of similar exposures"],
            )
        elif reduction <= -1:
            feedback = ExposureFeedback(
                celebration="You completed the exposure despite feeling more anxious - that shows real courage!",
                reflection=["Sometimes anxiety increases during exposures, and that's completely normal"],
                learnings=["Completing something despite increased anxiety builds tremendous resilience"],
                next_steps=["Consider what made this more challenging and how to adjust for next time"],
            )
        else:
            feedback = ExposureFeedback(
                celebration="You followed through with your commitment - that's what matters most!",
                reflection=["Maintaining steady anxiety levels during new social situations shows you're managing well"],
                learnings=["Consistency in your anxiety response indicates growing emotional regulation"],
                next_steps=["Continue with regular exposures to build lasting confidence"],
            )

        extra = COMPLETED_TYPE_EXTRAS.get(context.exposure_type)
        if extra:
            feedback.learnings.append(extra[0])
            feedback.next_steps.append(extra[1])

        if context.is_first_time:
            feedback.learnings.append("You've proven to yourself that you can try new social challenges")
            feedback.next_steps.append("First successes often make subsequent attempts much easier")
    else:
        feedback = ExposureFeedback(
            celebration="You attempted the exposure, and that courage deserves recognition.",
            reflection=[
                "Not completing an exposure doesn't erase the bravery it took to try",
                "Sometimes stepping back is the right choice for your wellbeing",
            ],
            learnings=[
                "You learned something about your current comfort zone and limits",
                "Incomplete exposures still contribute to your overall growth journey",
            ],
            next_steps=[
                "Consider what adjustments might make this exposure more manageable",
                "Try a slightly easier version of this exposure when you're ready",
            ],
        )

    if notes and notes.strip():
        feedback.reflection.append(f"You noted: \"{notes.strip()}\". Keep that observation in mind for next time.")

    return feedback


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


def get_daily_exposure_motivation(
    recent_exposures: Sequence,
    user_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Daily nudge from completed exposures today (UTC) and over the last 7 days.

    `recent_exposures` items need `completed` and `created_at`.
    """
    now = now or datetime.now(timezone.utc)
    today = now.date()
    week_ago = now - timedelta(days=7)

    completed_today = sum(
        1 for e in recent_exposures
        if e.completed and _as_utc(e.created_at).date() == today
    )
    completed_week = sum(
        1 for e in recent_exposures
        if e.completed and _as_utc(e.created_at) > week_ago
    )

    prefix = f"{user_name}, " if user_name and user_name != GUEST_NAME else ""

    if completed_today >= 2:
        return f"{prefix}you're on fire today! Two social exposures completed shows real dedication to growth."
    if completed_today == 1:
        return f"{prefix}great job completing a social exposure today! Your confidence is building."
    if completed_week >= 3:
        return f"{prefix}you've been consistently working on social exposures this week. That persistence will pay off!"
    if completed_week >= 1:
        return f"{prefix}you made progress this week with social exposures. Keep that momentum going!"
    return (
        f"{prefix}social exposures are one of the most effective ways to build confidence. "
        "When you're ready, even small steps make a big difference."
    )
