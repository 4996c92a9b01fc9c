import re

EMERGENCY_MARKER = "[EMERGENCY]"

RED_FLAG_PHRASES = [
    "chest pain",
    "crushing chest",
    "can't breathe",
    "cannot breathe",
    "difficulty breathing",
    "shortness of breath",
    "severe bleeding",
    "coughing blood",
    "vomiting blood",
    "unconscious",
    "passed out",
    "fainted",
    "seizure",
    "stroke",
    "face drooping",
    "slurred speech",
    "sudden numbness",
    "worst headache",
    "overdose",
    "suicide",
    "kill myself",
    "end my life",
    "severe allergic reaction",
    "throat swelling",
]


def _normalize(text):
    normalized = str(text or "").lower().replace("’", "'")
    return re.sub(r"\s+", " ", normalized)


def find_red_flags(text):
    normalized = _normalize(text)
    return [phrase for phrase in RED_FLAG_PHRASES if phrase in normalized]


def detect_emergency(messages):
    """
    True when any user message mentions a red-flag symptom.

    Assistant turns are ignored so earlier safety advice does not re-trigger.
    """
    for message in messages or []:
        if message.get("role") != "user":
            continue
        if find_red_flags(message.get("content")):
            return True
    return False


def split_emergency_marker(reply):
    """Strip the model's urgency marker and report whether it was present."""
    text = (reply or "").strip()
    if text.upper().startswith(EMERGENCY_MARKER):
        return text[len(EMERGENCY_MARKER):].strip(), True
    return text, False
