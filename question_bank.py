from health_score_engine import InvalidInput

MAX_CATEGORY_POINTS = 100

BASIC_INFO_QUESTIONS = [
    {"id": "age", "prompt": "What is your age?", "type": "number", "unit": "years", "min": 18, "max": 120},
    {"id": "weight", "prompt": "What is your weight?", "type": "number", "unit": "kg", "min": 30, "max": 300},
    {"id": "height", "prompt": "What is your height?", "type": "number", "unit": "cm", "min": 100, "max": 250},
    {
        "id": "exercise_days",
        "prompt": "How many days per week do you exercise?",
        "type": "number",
        "unit": "days",
        "min": 0,
        "max": 7,
    },
    {
        "id": "sleep_hours",
        "prompt": "How many hours do you sleep on average?",
        "type": "number",
        "unit": "hours",
        "min": 1,
        "max": 16,
    },
    {
        "id": "stress_level",
        "prompt": "On a scale of 1-10, how would you rate your stress level?",
        "type": "number",
        "unit": "",
        "min": 1,
        "max": 10,
    },
    {
        "id": "gender",
        "prompt": "What is your gender?",
        "type": "select",
        "options": ["Male", "Female", "Other", "Prefer not to say"],
    },
]


def _frequency_options(best, good, fair, poor):
    return [
        {"label": best, "points": 25},
        {"label": good, "points": 15},
        {"label": fair, "points": 5},
        {"label": poor, "points": 0},
    ]


CATEGORY_QUESTIONS = {
    "physical": [
        {
            "id": "physical_activity",
            "prompt": "How often do you do at least 30 minutes of physical activity?",
            "options": _frequency_options("Daily", "3-5 times a week", "1-2 times a week", "Rarely or never"),
        },
        {
            "id": "physical_stairs",
            "prompt": "How do you feel after climbing two flights of stairs?",
            "options": _frequency_options("Fine", "Slightly out of breath", "Very out of breath", "I avoid stairs"),
        },
        {
            "id": "physical_pain",
            "prompt": "How often do joint or muscle pains limit your daily activities?",
            "options": _frequency_options("Never", "Occasionally", "Often", "Every day"),
        },
        {
            "id": "physical_sitting",
            "prompt": "How many hours a day do you spend sitting?",
            "options": _frequency_options("Less than 4", "4-6", "7-9", "10 or more"),
        },
    ],
    "mental": [
        {
            "id": "mental_mood",
            "prompt": "How often have you felt down or hopeless in the last two weeks?",
            "options": _frequency_options("Not at all", "Several days", "More than half the days", "Nearly every day"),
        },
        {
            "id": "mental_anxiety",
            "prompt": "How often do you feel nervous, anxious or on edge?",
            "options": _frequency_options("Rarely", "Sometimes", "Often", "Almost always"),
        },
        {
            "id": "mental_focus",
            "prompt": "How easily can you concentrate on everyday tasks?",
            "options": _frequency_options("Very easily", "Mostly", "With difficulty", "Hardly at all"),
        },
        {
            "id": "mental_support",
            "prompt": "How often do you spend time with people you feel close to?",
            "options": _frequency_options("Several times a week", "Weekly", "Monthly", "Rarely"),
        },
    ],
    "nutrition": [
        {
            "id": "nutrition_produce",
            "prompt": "How many servings of fruit and vegetables do you eat per day?",
            "options": _frequency_options("5 or more", "3-4", "1-2", "None"),
        },
        {
            "id": "nutrition_water",
            "prompt": "How many glasses of water do you drink per day?",
            "options": _frequency_options("8 or more", "5-7", "2-4", "1 or fewer"),
        },
        {
            "id": "nutrition_processed",
            "prompt": "How often do you eat fast food or processed snacks?",
            "options": _frequency_options("Rarely", "Once a week", "Several times a week", "Daily"),
        },
        {
            "id": "nutrition_sugar",
            "prompt": "How many sugary drinks do you have per day?",
            "options": _frequency_options("None", "1", "2-3", "4 or more"),
        },
    ],
    "sleep": [
        {
            "id": "sleep_duration",
            "prompt": "How many hours of sleep do you usually get?",
            "options": _frequency_options("7-9 hours", "6-7 hours", "5-6 hours", "Less than 5 hours"),
        },
        {
            "id": "sleep_falling_asleep",
            "prompt": "How long does it usually take you to fall asleep?",
            "options": _frequency_options("Under 15 minutes", "15-30 minutes", "30-60 minutes", "Over an hour"),
        },
        {
            "id": "sleep_waking",
            "prompt": "How often do you wake up during the night?",
            "options": _frequency_options("Rarely", "Once", "2-3 times", "More than 3 times"),
        },
        {
            "id": "sleep_rested",
            "prompt": "How rested do you feel when you wake up?",
            "options": _frequency_options("Fully rested", "Mostly rested", "A little tired", "Exhausted"),
        },
    ],
}


def validate_question_bank(bank):
    """
    Reject banks the scoring engine cannot turn into a 0-100 category score.
    """
    seen_ids = set()
    for category, questions in bank.items():
        if not questions:
            raise InvalidInput(category, "category has no questions")

        max_total = 0
        for question in questions:
            question_id = question.get("id")
            if not question_id or question_id in seen_ids:
                raise InvalidInput(category, f"duplicate or missing question id {question_id!r}")
            seen_ids.add(question_id)

            options = question.get("options") or []
            if not options:
                raise InvalidInput(question_id, "question has no options")

            labels = [option["label"] for option in options]
            if len(set(labels)) != len(labels):
                raise InvalidInput(question_id, "option labels must be unique")

            points = [option["points"] for option in options]
            if any(isinstance(p, bool) or not isinstance(p, int) or p < 0 for p in points):
                raise InvalidInput(question_id, "option points must be non-negative integers")
            max_total += max(points)

        if max_total > MAX_CATEGORY_POINTS:
            raise InvalidInput(category, f"maximum score {max_total} exceeds {MAX_CATEGORY_POINTS}")
    return bank


def list_categories():
    return list(CATEGORY_QUESTIONS)


def get_category_questions(category):
    if category not in CATEGORY_QUESTIONS:
        raise InvalidInput(category, "unknown questionnaire category")
    return CATEGORY_QUESTIONS[category]


def resolve_responses(category, answers):
    """
    Convert {question_id: option label} into {question_id: points}.

    Every question in the category must be answered.
    """
    questions = get_category_questions(category)
    answers = answers or {}
    if not isinstance(answers, dict):
        raise InvalidInput(category, "answers must map question ids to option labels")

    known_ids = {q["id"] for q in questions}
    unknown = [question_id for question_id in answers if question_id not in known_ids]
    if unknown:
        raise InvalidInput(category, f"unknown question {unknown[0]!r}")

    resolved = {}
    for question in questions:
        label = answers.get(question["id"])
        if label is None:
            raise InvalidInput(question["id"], "question was not answered")

        points = None
        for option in question["options"]:
            if option["label"] == label:
                points = option["points"]
                break
        if points is None:
            raise InvalidInput(question["id"], f"unknown option {label!r}")
        resolved[question["id"]] = points
    return resolved


validate_question_bank(CATEGORY_QUESTIONS)
