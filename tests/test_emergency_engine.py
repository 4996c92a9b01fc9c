from emergency_engine import detect_emergency, find_red_flags, split_emergency_marker


def test_detects_red_flag_in_user_message():
    messages = [
        {"role": "assistant", "content": "How are you feeling today?"},
        {"role": "user", "content": "I have crushing chest pain and feel dizzy"},
    ]
    assert detect_emergency(messages) is True


def test_ignores_assistant_messages():
    messages = [
        {"role": "assistant", "content": "If you get chest pain, call emergency services."},
        {"role": "user", "content": "Thanks, just a mild cough."},
    ]
    assert detect_emergency(messages) is False


def test_handles_typographic_apostrophe_and_spacing():
    assert find_red_flags("I  CAN’T   breathe properly") == ["can't breathe"]


def test_no_messages():
    assert detect_emergency([]) is False
    assert detect_emergency(None) is False


def test_split_marker():
    assert split_emergency_marker("[EMERGENCY] Call your local emergency number.") == (
        "Call your local emergency number.",
        True,
    )
    assert split_emergency_marker("[emergency] Go now.") == ("Go now.", True)
    assert split_emergency_marker("  Drink water and rest. ") == ("Drink water and rest.", False)
    assert split_emergency_marker(None) == ("", False)
