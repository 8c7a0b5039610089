"""Persona reference data, bridge phrases and silence breakers."""

from typing import Dict

from convocue.models import Persona


PERSONAS: Dict[str, Persona] = {
    "anxiety": Persona(
        id="anxiety",
        label="Anxiety Coach",
        drain_rate_multiplier=1.5,
        description="Gentle, low-pressure cues that bridge silence or offer easy exits.",
        prompt_template=(
            "You are a warm, supportive social coach. Suggest the smallest response "
            "that keeps the conversation comfortable. SOCIAL: a simple, warm follow-up. "
            "CONFLICT: soften and find one point of agreement. EXHAUSTED: a polite, "
            "guilt-free exit."
        ),
        silence_breakers=(
            "Ask what they've been enjoying lately.",
            "Mention something small you noticed today.",
            "It's okay to let the pause sit for a moment.",
        ),
    ),
    "professional": Persona(
        id="professional",
        label="Pro Exec",
        drain_rate_multiplier=1.0,
        description="Projects confidence, clarity and strategic alignment.",
        prompt_template=(
            "You are an executive coach. Focus on next steps and action items, under "
            "15 words. PROFESSIONAL: ask about blockers or deadlines. CONFLICT: "
            "acknowledge the tension, then pivot to solutions. EXHAUSTED: summarize "
            "and signal the end of the meeting."
        ),
        silence_breakers=(
            "Ask which item on the agenda matters most right now.",
            "Recap the last decision and confirm the owner.",
            "Ask what a good outcome looks like for them.",
        ),
    ),
    "relationship": Persona(
        id="relationship",
        label="EQ Coach",
        drain_rate_multiplier=0.8,
        description="Deepens connection through validation and emotional labeling.",
        prompt_template=(
            "You are an emotional intelligence coach. Label the emotion you hear and "
            "use reflective listening. EMPATHY: name the feeling and its cause. "
            "CONFLICT: validate the feeling before the facts. EXHAUSTED: exit warmly "
            "and offer to resume later."
        ),
        silence_breakers=(
            "Ask how they're feeling about what they just shared.",
            "Reflect back the last thing they said.",
            "Share how the conversation is landing for you.",
        ),
    ),
    "crosscultural": Persona(
        id="crosscultural",
        label="Culture Guide",
        drain_rate_multiplier=1.2,
        description="Navigates high/low context differences and helps save face.",
        prompt_template=(
            "You are a cross-cultural communication coach. Be diplomatic and indirect "
            "where appropriate; prefer 'it might be difficult' over 'no'. CONFLICT: "
            "use 'help me understand'. EXHAUSTED: use a time-bound, acceptable excuse."
        ),
        silence_breakers=(
            "Ask about a local food or custom they enjoy.",
            "Ask how things are usually done where they're from.",
            "Offer a light compliment about the setting.",
        ),
    ),
}

DEFAULT_PERSONA_ID = "anxiety"

BRIDGE_PHRASES: Dict[str, str] = {
    "social": "That's a good point, let me think...",
    "professional": "I see, let me consider the best way to approach that...",
    "conflict": "I hear you, let's find the right words here...",
    "empathy": "I understand how you feel, give me a moment...",
    "positive": "That's great! Let me think of a good follow-up...",
    "general": "Thinking of a good response...",
}

EXHAUSTED_INSTRUCTION = "URGENT: User is exhausted. Suggest a polite exit."

SILENCE_BREAKER_PREFIX = "[Silence Breaker] "


def get_persona(persona_id: str) -> Persona:
    """Look up a persona by id.

    Raises:
        ValueError: If persona_id is not a known persona
    """
    persona = PERSONAS.get(persona_id)
    if persona is None:
        raise ValueError(
            f"Unknown persona '{persona_id}'. Valid: {', '.join(PERSONAS.keys())}"
        )
    return persona


def bridge_phrase(intent: str) -> str:
    return BRIDGE_PHRASES.get(intent, BRIDGE_PHRASES["general"])
