import logging

from google import genai

import config
from emergency_engine import EMERGENCY_MARKER, detect_emergency, split_emergency_marker
from health_score_engine import InvalidInput

logger = logging.getLogger(__name__)

ALLOWED_ROLES = {"user", "assistant"}
MAX_MESSAGE_LENGTH = 4000

EMERGENCY_REPLY = (
    "Some of what you describe can be a sign of a medical emergency. "
    "Please call your local emergency number or go to the nearest emergency department now."
)


class ChatUnavailable(RuntimeError):
    pass


def _get_client():
    api_key = config.GEMINI_API_KEY
    if not api_key:
        return None
    return genai.Client(api_key=api_key)


def validate_messages(messages):
    if not isinstance(messages, list) or not messages:
        raise InvalidInput("messages", "must be a non-empty list")

    cleaned = []
    for index, message in enumerate(messages):
        if not isinstance(message, dict):
            raise InvalidInput(f"messages[{index}]", "must be an object")
        role = message.get("role")
        content = message.get("content")
        if role not in ALLOWED_ROLES:
            raise InvalidInput(f"messages[{index}].role", "must be 'user' or 'assistant'")
        if not isinstance(content, str) or not content.strip():
            raise InvalidInput(f"messages[{index}].content", "must be non-empty text")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise InvalidInput(f"messages[{index}].content", f"must be at most {MAX_MESSAGE_LENGTH} characters")
        cleaned.append({"role": role, "content": content.strip()})

    if cleaned[-1]["role"] != "user":
        raise InvalidInput("messages", "last message must come from the user")
    return cleaned


def _format_transcript(messages):
    lines = []
    for message in messages:
        speaker = "Patient" if message["role"] == "user" else "Assistant"
        lines.append(f"{speaker}: {message['content']}")
    return "\n".join(lines)


def build_prompt(messages):
    transcript = _format_transcript(messages)
    return f"""
You are a friendly health intake assistant for a patient portal.

Ask short follow-up questions about the patient's symptoms (onset, duration,
severity, associated symptoms) and give general, non-diagnostic guidance.
Never prescribe medication. Suggest seeing a doctor when symptoms persist.

If anything in the conversation suggests a medical emergency, begin your reply
with {EMERGENCY_MARKER} and tell the patient to contact emergency services.

Conversation so far:
{transcript}

Reply to the patient's last message in at most 5 sentences.
"""


def generate_chat_reply(messages):
    """
    Forward the conversation to Gemini and return {"message", "emergency"}.
    """
    cleaned = validate_messages(messages)
    window = cleaned[-config.CHAT_HISTORY_WINDOW:]
    emergency = detect_emergency(window[-1:])

    client = _get_client()
    if not client:
        raise ChatUnavailable("GEMINI_API_KEY is not configured")

    try:
        response = client.models.generate_content(
            model=config.GEMINI_MODEL,
            contents=build_prompt(window),
            config={"temperature": config.CHAT_TEMPERATURE},
        )
    except Exception as exc:
        logger.exception("Health chat request to Gemini failed")
        raise ChatUnavailable("chat provider request failed") from exc

    reply, flagged = split_emergency_marker(response.text)
    emergency = emergency or flagged
    if not reply:
        if not emergency:
            raise ChatUnavailable("chat provider returned an empty reply")
        reply = EMERGENCY_REPLY

    if emergency:
        logger.warning("Emergency indicators detected in health chat")
    return {"message": reply, "emergency": emergency}
