"""
Gemini Support Text Service

Optional generative text for the counsellor chat, journal analysis, exercise
coaching, mood support and social-exposure support.

Every public method returns usable text: when no API key is configured or
the call fails, a static supportive message is returned instead and the
failure is logged.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types as genai_types

from core.config import settings

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 0.7
GENERATION_MAX_TOKENS = 400

COUNSELLOR_SYSTEM_PROMPT = """You are a warm, empathetic AI wellness counsellor specializing in anxiety support and mental health. You provide:
- Compassionate, non-judgmental responses
- Evidence-based cognitive behavioral therapy techniques
- Motivational support and encouragement
- Practical coping strategies
- Active listening and validation

Guidelines:
- Keep responses supportive and under 150 words
- Ask thoughtful follow-up questions
- Validate emotions while gently challenging negative thought patterns
- Suggest practical techniques when appropriate
- Maintain professional boundaries"""

FALLBACK_COUNSELLOR = (
    "I understand you're reaching out, and I want you to know that's a brave step. "
    "While I'm having technical difficulties right now, please remember that your feelings "
    "are valid and you're not alone in this journey."
)
FALLBACK_ANALYSIS = (
    "Your thoughts and feelings are valid. Take a moment to acknowledge your experience with kindness."
)
EMPTY_JOURNEY = (
    "Start journaling to receive personalized insights about your thought patterns and emotional journey."
)
FALLBACK_JOURNEY = (
    "Your commitment to self-reflection shows strength. Each journal entry is a step toward greater self-awareness."
)
FALLBACK_CBT_PRE = (
    "You're taking a wonderful step for your well-being. Find a comfortable space and give yourself "
    "this gift of mindfulness."
)
FALLBACK_CBT_POST = (
    "Well done! You've just invested in your mental wellness. Every moment of mindfulness builds resilience."
)
FALLBACK_MOOD_VALIDATION = "Your feelings are completely valid and it's okay to experience them."
FALLBACK_MOOD_ENCOURAGEMENT = "Be gentle with yourself today. You're doing the best you can."
FALLBACK_SOCIAL_PRE = (
    "You're showing incredible courage by taking this step. It's normal to feel anxious - you've got this!"
)
FALLBACK_SOCIAL_POST = (
    "Amazing work! Every step you take builds your confidence. You should be proud of your courage today."
)
FALLBACK_DAILY = (
    "You're doing great work taking care of your mental wellness. Every small step matters. "
    "Be kind to yourself today."
)

EXERCISE_DESCRIPTIONS = {
    "box-breathing": "box breathing",
    "deep-breathing": "deep breathing and mindfulness",
    "progressive-muscle-relaxation": "progressive muscle relaxation",
    "grounding-5-4-3-2-1": "5-4-3-2-1 grounding technique",
    "thought-challenging": "thought challenging",
    "loving-kindness": "loving-kindness meditation",
}

_VALIDATION_PREFIX = re.compile(r"^(Validation:\s*|1\.\s*)", re.IGNORECASE)
_ENCOURAGEMENT_PREFIX = re.compile(r"^(Encouragement:\s*|2\.\s*)", re.IGNORECASE)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class GeminiService:
    """
    Thin wrapper over a google-genai client.

    The client is created lazily from GEMINI_API_KEY; tests inject one.
    """

    def __init__(self, client: Any = None, api_key: Optional[str] = None, model: Optional[str] = None):
        self._client = client
        self._api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL

    @property
    def is_available(self) -> bool:
        return self._client is not None or bool(self._api_key)

    @property
    def client(self):
        if self._client is None and self._api_key:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def _generate(self, prompt: str, system_instruction: Optional[str] = None) -> Optional[str]:
        """Single generation call. Returns None when unavailable or on any failure."""
        if not self.is_available:
            return None

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=[
                    genai_types.Content(role="user", parts=[genai_types.Part(text=prompt)]),
                ],
                config=genai_types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    max_output_tokens=GENERATION_MAX_TOKENS,
                    temperature=GENERATION_TEMPERATURE,
                ),
            )
        except Exception as e:
            logger.warning(f"Gemini generation failed: {e}")
            return None

        text = ""
        if response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                text = candidate.content.parts[0].text or ""

        text = text.strip()
        if not text:
            logger.warning("Gemini returned an empty response")
            return None
        return text

    # ------------------------------------------------------------------
    # Counsellor chat
    # ------------------------------------------------------------------

    def generate_counsellor_response(
        self,
        message: str,
        journal_entry: Any = None,
        conversation_history: Optional[List[Any]] = None,
    ) -> str:
        prompt = "Current conversation context:"

        if conversation_history:
            prompt += "\n\nPrevious conversation:\n"
            for turn in conversation_history:
                speaker = "User" if _field(turn, "role") == "user" else "Counsellor"
                prompt += f"{speaker}: {_field(turn, 'content', '')}\n"

        if journal_entry is not None:
            prompt += (
                "\n\nUser's journal entry context:\n"
                f"- Situation: {_field(journal_entry, 'situation')}\n"
                f"- Negative thought: {_field(journal_entry, 'negative_thought')}\n"
                f"- Emotion: {_field(journal_entry, 'emotion')} "
                f"(intensity: {_field(journal_entry, 'emotion_intensity')}/10)\n"
                f"- Reframing attempt: {_field(journal_entry, 'reframing') or 'Not yet attempted'}"
            )

        prompt += f'\n\nUser\'s current message: "{message}"\n\nRespond as a supportive counsellor:'

        return self._generate(prompt, system_instruction=COUNSELLOR_SYSTEM_PROMPT) or FALLBACK_COUNSELLOR

    # ------------------------------------------------------------------
    # Thought journal
    # ------------------------------------------------------------------

    def analyze_thought_entry(self, journal: Any) -> str:
        reframe = _field(journal, "reframed_thought")
        prompt = (
            "As a mental wellness AI assistant specializing in CBT (Cognitive Behavioral Therapy), "
            "analyze this thought journal entry and provide supportive insights:\n\n"
            f"Situation: {_field(journal, 'situation')}\n"
            f"Automatic Thoughts: {_field(journal, 'negative_thought')}\n"
            f"Emotions: {_field(journal, 'emotion')} (intensity {_field(journal, 'emotion_intensity')}/10)\n"
            f"Evidence for: {_field(journal, 'evidence_for') or 'Not provided'}\n"
            f"Evidence against: {_field(journal, 'evidence_against') or 'Not provided'}\n"
        )
        if reframe:
            prompt += f"Reframed Thoughts: {reframe}\n"
        prompt += (
            "\nPlease provide:\n"
            "1. A brief validation of their feelings\n"
            "2. One cognitive pattern observation (if any)\n"
            "3. A gentle, encouraging insight\n"
            "4. A practical suggestion for moving forward\n\n"
            "Keep the response supportive, non-judgmental, and under 200 words. "
            "Focus on self-compassion and progress."
        )
        return self._generate(prompt) or FALLBACK_ANALYSIS

    def generate_journey_insights(self, entries: List[Any]) -> str:
        """Insights over the five most recent entries (`entries` newest first)."""
        if not entries:
            return EMPTY_JOURNEY

        lines = [
            f"Entry {i + 1}: Situation: {_field(e, 'situation')}, "
            f"Emotions: {_field(e, 'emotion')}, Thoughts: {_field(e, 'negative_thought')}"
            for i, e in enumerate(list(entries)[:5])
        ]
        prompt = (
            "As a mental wellness AI, analyze these recent thought journal entries and provide "
            "encouraging insights about patterns and progress:\n\n"
            + "\n".join(lines)
            + "\n\nPlease provide:\n"
            "1. One positive pattern or growth you notice\n"
            "2. A gentle observation about emotional awareness\n"
            "3. An encouraging note about their self-reflection journey\n"
            "4. One suggestion for continued growth\n\n"
            "Keep the response hopeful, validating, and under 150 words. "
            "Focus on progress and self-compassion."
        )
        return self._generate(prompt) or FALLBACK_JOURNEY

    # ------------------------------------------------------------------
    # CBT exercises
    # ------------------------------------------------------------------

    def generate_cbt_guidance(self, exercise_type: str, stage: str, user_context: Optional[str] = None) -> str:
        """Coaching text before (`stage="pre"`) or after (`stage="post"`) an exercise."""
        exercise_name = EXERCISE_DESCRIPTIONS.get(exercise_type, exercise_type)
        context_line = f"Context: {user_context}\n\n" if user_context else ""

        if stage == "pre":
            prompt = (
                "As a supportive mental wellness coach, provide encouraging pre-exercise guidance "
                f"for someone about to do {exercise_name}.\n\n{context_line}"
                "Please provide:\n"
                "1. A warm, encouraging opening\n"
                "2. Brief reminder of the exercise benefits\n"
                "3. A gentle motivation to begin\n"
                "4. Simple preparation tip\n\n"
                "Keep the response supportive, concise (under 100 words), and motivating."
            )
            return self._generate(prompt) or FALLBACK_CBT_PRE

        prompt = (
            "As a supportive mental wellness coach, provide encouraging post-completion feedback "
            f"for someone who just finished {exercise_name}.\n\n{context_line}"
            "Please provide:\n"
            "1. Celebration of their self-care effort\n"
            "2. Brief acknowledgment of the exercise benefits\n"
            "3. Encouraging note about building healthy habits\n"
            "4. Gentle suggestion for future practice\n\n"
            "Keep the response warm, validating (under 100 words), and encouraging."
        )
        return self._generate(prompt) or FALLBACK_CBT_POST

    # ------------------------------------------------------------------
    # Mood
    # ------------------------------------------------------------------

    def generate_mood_support(self, mood: str, intensity: int, user_context: Optional[str] = None) -> Dict[str, str]:
        """Returns `{"validation": ..., "encouragement": ...}`."""
        prompt = (
            "As an empathetic mental wellness AI, provide supportive validation and encouragement "
            f"for someone experiencing:\nMood: {mood}\nIntensity: {intensity}/10\n"
        )
        if user_context:
            prompt += f"Context: {user_context}\n"
        prompt += (
            "\nPlease provide:\n"
            "1. Validation: A brief, empathetic acknowledgment of their current emotional state\n"
            "2. Encouragement: A gentle, hopeful message that promotes self-compassion\n\n"
            "Each response should be 1-2 sentences. Keep the tone warm, non-judgmental, and supportive."
        )

        text = self._generate(prompt)
        if text is None:
            return {"validation": FALLBACK_MOOD_VALIDATION, "encouragement": FALLBACK_MOOD_ENCOURAGEMENT}

        lines = [line for line in text.split("\n") if line.strip()]
        if len(lines) >= 2:
            return {
                "validation": _VALIDATION_PREFIX.sub("", lines[0].strip()).strip(),
                "encouragement": _ENCOURAGEMENT_PREFIX.sub("", lines[1].strip()).strip(),
            }
        return {"validation": FALLBACK_MOOD_VALIDATION, "encouragement": text}

    # ------------------------------------------------------------------
    # Social exposure
    # ------------------------------------------------------------------

    def generate_social_support(
        self,
        exposure_type: str,
        stage: str,
        anxiety_level: Optional[int] = None,
        completed: Optional[bool] = None,
    ) -> str:
        anxiety_line = ""
        if stage == "pre":
            if anxiety_level:
                anxiety_line = f"Current anxiety level: {anxiety_level}/10\n"
            prompt = (
                "As a supportive anxiety coach, provide encouraging pre-exposure motivation for someone "
                f"about to attempt: {exposure_type}\n{anxiety_line}\n"
                "Please provide:\n"
                "1. Validation of their courage for trying\n"
                "2. Brief reminder that anxiety is normal\n"
                "3. Encouraging motivation to take this step\n"
                "4. Simple grounding reminder\n\n"
                "Keep the response supportive, brief (under 80 words), and empowering."
            )
            return self._generate(prompt) or FALLBACK_SOCIAL_PRE

        if anxiety_level:
            anxiety_line = f"Final anxiety level: {anxiety_level}/10\n"
        outcome = "They completed the exposure!" if completed else "They attempted the exposure."
        prompt = (
            "As a supportive anxiety coach, provide encouraging post-exposure feedback for someone "
            f"who attempted: {exposure_type}\n{outcome}\n{anxiety_line}\n"
            "Please provide:\n"
            "1. Celebration of their effort and courage\n"
            "2. Acknowledgment of their growth\n"
            "3. Encouragement about building confidence\n"
            "4. Positive note about progress\n\n"
            "Keep the response celebratory, warm (under 80 words), and encouraging."
        )
        return self._generate(prompt) or FALLBACK_SOCIAL_POST

    def generate_daily_encouragement(self, user_progress: Optional[Dict[str, Any]] = None) -> str:
        prompt = (
            "As a supportive mental wellness AI, provide a brief daily encouragement message for "
            "someone working on their anxiety and mental wellness.\n\n"
        )
        if user_progress:
            prompt += f"Their recent progress: {json.dumps(user_progress, default=str)}\n\n"
        prompt += (
            "Please provide a warm, motivating message (under 60 words) that:\n"
            "1. Encourages continued self-care\n"
            "2. Acknowledges their efforts\n"
            "3. Promotes self-compassion\n"
            "4. Inspires hope\n\n"
            "Keep the tone uplifting and supportive."
        )
        return self._generate(prompt) or FALLBACK_DAILY


_gemini_service: Optional[GeminiService] = None


def get_gemini_service() -> GeminiService:
    """Process-wide service instance (FastAPI dependency)."""
    global _gemini_service
    if _gemini_service is None:
        _gemini_service = GeminiService()
    return _gemini_service
