from __future__ import annotations
from typing import List, Sequence

from convocue.models import ChatMessage, SuggestionContext, SummaryStats, TranscriptEntry


def build_suggestion_prompt(
    messages: Sequence[ChatMessage],
    context: SuggestionContext,
    instruction: str,
) -> str:
    """Single prompt builder shared by all LLM providers."""
    lines: List[str] = [m.content for m in messages]
    convo = "\n".join(lines).strip()
    recent = f"Recent intents: {context.recent_intents_window}." if context.recent_intents_window else ""

    # Keep format tight so small local models behave
    return f"""Role: {context.persona_label}. Battery: {context.battery_percent}%. Detected intent: {context.intent_label}. {recent}
Goal: {instruction}

Conversation (most recent last):
{convo if convo else "[No transcript yet]"}

Task: Provide a relevant, concise suggestion for what to say next and classify the intent.

Rules:
- Output STRICT JSON: {{"intent": "social|professional|conflict|empathy|positive", "suggestion": "3-5 keywords", "speakerToggle": boolean}}
- speakerToggle is true ONLY if the last message was a direct question to the user.
- suggestion: no full sentences, no preamble.
- {"The user is exhausted: suggest an exit strategy." if context.is_exhausted else "Keep it short and actionable."}
- Output JSON only. No markdown. No extra keys.
"""


def build_summary_prompt(transcript: Sequence[TranscriptEntry], stats: SummaryStats) -> str:
    transcript_text = "\n".join(f"[{t.speaker.upper()}] {t.text}" for t in transcript)

    return f"""You are an expert social intelligence analyst. Provide brief, structured feedback.

Analyze this conversation transcript and stats to provide a concise social battery summary.
Stats:
- Total Messages: {stats.total_count}
- My Messages: {stats.me_count}
- Their Messages: {stats.them_count}
- Battery Drain: {stats.total_drain_percent}%

Transcript:
{transcript_text}

Output exactly 3 bullet points:
1. Reflection: a one-sentence insight into the conversation's tone.
2. Energy Drain: why it was taxing (one-sided, high conflict, long).
3. Tip: one specific social skill tip for next time.
Tone: supportive, clinical yet empathetic. Max 80 words total.
"""
