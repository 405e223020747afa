"""
Tests for GeminiService: prompt plumbing, response parsing and fallbacks.

The google-genai client is replaced with a MagicMock; no network calls.
"""
from types import SimpleNamespace
from unittest.mock import MagicMock

from services.gemini_service import (
    EMPTY_JOURNEY,
    FALLBACK_ANALYSIS,
    FALLBACK_CBT_POST,
    FALLBACK_CBT_PRE,
    FALLBACK_COUNSELLOR,
    FALLBACK_DAILY,
    FALLBACK_JOURNEY,
    FALLBACK_MOOD_ENCOURAGEMENT,
    FALLBACK_MOOD_VALIDATION,
    FALLBACK_SOCIAL_POST,
    FALLBACK_SOCIAL_PRE,
    GeminiService,
)


def gemini_response(text):
    part = SimpleNamespace(text=text)
    content = SimpleNamespace(parts=[part])
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


def service_returning(text):
    client = MagicMock()
    client.models.generate_content.return_value = gemini_response(text)
    return GeminiService(client=client, model="test-model"), client


def sent_prompt(client) -> str:
    contents = client.models.generate_content.call_args.kwargs["contents"]
    return contents[0].parts[0].text


JOURNAL = {
    "situation": "Team meeting",
    "negative_thought": "Everyone thinks I'm slow",
    "emotion": "embarrassed",
    "emotion_intensity": 7,
}


class TestUnavailable:

    def test_no_key_means_unavailable(self):
        assert GeminiService(api_key="").is_available is False

    def test_every_method_falls_back(self):
        gemini = GeminiService(api_key="")

        assert gemini.generate_counsellor_response("hi") == FALLBACK_COUNSELLOR
        assert gemini.analyze_thought_entry(JOURNAL) == FALLBACK_ANALYSIS
        assert gemini.generate_journey_insights([JOURNAL]) == FALLBACK_JOURNEY
        assert gemini.generate_cbt_guidance("box-breathing", "pre") == FALLBACK_CBT_PRE
        assert gemini.generate_cbt_guidance("box-breathing", "post") == FALLBACK_CBT_POST
        assert gemini.generate_social_support("party", "pre") == FALLBACK_SOCIAL_PRE
        assert gemini.generate_social_support("party", "post", completed=True) == FALLBACK_SOCIAL_POST
        assert gemini.generate_daily_encouragement() == FALLBACK_DAILY
        assert gemini.generate_mood_support("sad", 7) == {
            "validation": FALLBACK_MOOD_VALIDATION,
            "encouragement": FALLBACK_MOOD_ENCOURAGEMENT,
        }

    def test_empty_journey_has_its_own_message(self):
        assert GeminiService(api_key="").generate_journey_insights([]) == EMPTY_JOURNEY


class TestGeneration:

    def test_returns_stripped_text(self):
        gemini, client = service_returning("  You are doing well.  ")

        assert gemini.generate_counsellor_response("hello") == "You are doing well."
        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["config"].system_instruction.startswith("You are a warm, empathetic AI wellness counsellor")

    def test_counsellor_prompt_includes_history_and_journal(self):
        gemini, client = service_returning("ok")
        history = [{"role": "user", "content": "I feel tense"}, {"role": "counsellor", "content": "Tell me more"}]

        gemini.generate_counsellor_response("still tense", journal_entry=JOURNAL, conversation_history=history)
        prompt = sent_prompt(client)

        assert "User: I feel tense" in prompt
        assert "Counsellor: Tell me more" in prompt
        assert "- Situation: Team meeting" in prompt
        assert "(intensity: 7/10)" in prompt
        assert "- Reframing attempt: Not yet attempted" in prompt
        assert 'User\'s current message: "still tense"' in prompt

    def test_client_error_falls_back(self):
        client = MagicMock()
        client.models.generate_content.side_effect = RuntimeError("quota")
        gemini = GeminiService(client=client)

        assert gemini.analyze_thought_entry(JOURNAL) == FALLBACK_ANALYSIS

    def test_empty_text_falls_back(self):
        gemini, _ = service_returning("   ")
        assert gemini.generate_daily_encouragement({"streak": 3}) == FALLBACK_DAILY

    def test_no_candidates_falls_back(self):
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(candidates=[])
        assert GeminiService(client=client).generate_cbt_guidance("box-breathing", "post") == FALLBACK_CBT_POST

    def test_journey_prompt_uses_five_newest_entries(self):
        gemini, client = service_returning("insight")
        entries = [dict(JOURNAL, situation=f"s{i}") for i in range(7)]

        gemini.generate_journey_insights(entries)
        prompt = sent_prompt(client)

        assert "Entry 5: Situation: s4" in prompt
        assert "Entry 6" not in prompt

    def test_cbt_prompt_names_the_exercise(self):
        gemini, client = service_returning("breathe")
        gemini.generate_cbt_guidance("box-breathing", "pre", user_context="anxiety 8/10")
        prompt = sent_prompt(client)

        assert "about to do box breathing" in prompt
        assert "Context: anxiety 8/10" in prompt


class TestMoodSupportParsing:

    def test_two_lines_are_split_and_prefixes_removed(self):
        gemini, _ = service_returning("Validation: That sounds hard.\n\nEncouragement: Be gentle with yourself.")

        assert gemini.generate_mood_support("sad", 7) == {
            "validation": "That sounds hard.",
            "encouragement": "Be gentle with yourself.",
        }

    def test_numbered_lines(self):
        gemini, _ = service_returning("1. It makes sense.\n2. You can do this.")

        result = gemini.generate_mood_support("anxious", 6)

        assert result == {"validation": "It makes sense.", "encouragement": "You can do this."}

    def test_single_line_becomes_encouragement(self):
        gemini, _ = service_returning("Take a breath.")

        assert gemini.generate_mood_support("tired", 5) == {
            "validation": FALLBACK_MOOD_VALIDATION,
            "encouragement": "Take a breath.",
        }
