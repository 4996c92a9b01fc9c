import math

from recommendation_engine import get_recommendations

BASE_SCORE = 70

BREAKDOWN_BASES = {
    "heart_health": 75,
    "respiratory": 70,
    "metabolic": 70,
    "skeletal": 70,
}

class InvalidInput(ValueError):
    def __init__(self, field, message):
        super().__init__(f"{field}: {message}")
        self.field = field


class InsufficientHistory(LookupError):
    pass


def _clamp_0_100(value):
    return max(0, min(100, int(round(value))))


def _require_number(data, field):
    if field not in data or data[field] is None:
        raise InvalidInput(field, "is required")
    value = data[field]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(field, "must be a number")
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        raise InvalidInput(field, "must be finite")
    return value


def _require_whole(data, field, low, high=None):
    value = _require_number(data, field)
    if value != int(value):
        raise InvalidInput(field, "must be a whole number")
    value = int(value)
    if value < low or (high is not None and value > high):
        bounds = f">= {low}" if high is None else f"between {low} and {high}"
        raise InvalidInput(field, f"must be {bounds}")
    return value


def validate_assessment_input(data):
    """
    Check the six core metrics and return a normalized copy.

    Extra keys (gender, questionnaire responses) are carried over untouched.
    """
    if not isinstance(data, dict):
        raise InvalidInput("data", "must be a mapping of metric values")

    cleaned = dict(data)
    cleaned["age"] = _require_whole(data, "age", 0)
    cleaned["exercise_days"] = _require_whole(data, "exercise_days", 0, 7)
    cleaned["stress_level"] = _require_whole(data, "stress_level", 1, 10)

    for field in ("weight", "height"):
        value = _require_number(data, field)
        if value <= 0:
            raise InvalidInput(field, "must be greater than 0")
        cleaned[field] = float(value)

    sleep_hours = _require_number(data, "sleep_hours")
    if sleep_hours < 0 or sleep_hours > 24:
        raise InvalidInput("sleep_hours", "must be between 0 and 24")
    cleaned["sleep_hours"] = float(sleep_hours)
    return cleaned


def _raw_bmi(weight_kg, height_cm):
    values = {"weight": weight_kg, "height": height_cm}
    for field in ("weight", "height"):
        if _require_number(values, field) <= 0:
            raise InvalidInput(field, "must be greater than 0")
    height_m = height_cm / 100.0
    return weight_kg / (height_m * height_m)


def bmi_category(bmi):
    if bmi < 18.5:
        return "Underweight"
    if bmi < 25:
        return "Normal"
    if bmi < 30:
        return "Overweight"
    return "Obese"


def compute_bmi(weight_kg, height_cm):
    """Return BMI rounded to one decimal plus its category."""
    bmi = _raw_bmi(weight_kg, height_cm)
    return {"value": round(bmi, 1), "category": bmi_category(bmi)}


def _bmi_adjustment(bmi):
    if 18.5 <= bmi <= 24.9:
        return 10
    if 17 <= bmi < 18.5 or 24.9 < bmi <= 29.9:
        return 5
    return -5


def _sleep_adjustment(sleep_hours):
    if 7 <= sleep_hours <= 9:
        return 10
    if 6 <= sleep_hours < 7 or 9 < sleep_hours <= 10:
        return 5
    return 0


def _age_penalty(age):
    if age > 60:
        return min((age - 60) // 5, 5)
    return 0


def compute_overall_score(data, include_age=True):
    """
    Composite score from self-reported metrics.

    score =
    70
    + BMI band (+10 / +5 / -5)
    + min(exercise_days * 2, 10)
    + sleep band (+10 / +5 / 0)
    - min(stress_level, 10)
    - age penalty (only when include_age)

    The result is clamped to [0, 100].
    """
    values = validate_assessment_input(data)
    bmi = _raw_bmi(values["weight"], values["height"])

    score = BASE_SCORE
    score += _bmi_adjustment(bmi)
    score += min(values["exercise_days"] * 2, 10)
    score += _sleep_adjustment(values["sleep_hours"])
    score -= min(values["stress_level"], 10)

    if include_age:
        score -= _age_penalty(values["age"])

    return _clamp_0_100(score)


def preview_score(data):
    """Optimistic score shown before the server confirms; no age penalty."""
    return compute_overall_score(data, include_age=False)


def final_score(data):
    """Authoritative score stored with the record; includes the age penalty."""
    return compute_overall_score(data, include_age=True)


def compute_category_score(responses):
    total = 0
    for question_id, points in (responses or {}).items():
        if isinstance(points, bool) or not isinstance(points, int):
            raise InvalidInput(str(question_id), "points must be an integer")
        total += points
    return total


def _record_data(record):
    if not record:
        raise InvalidInput("record", "a score record is required")
    data = record.get("data")
    if not isinstance(data, dict):
        raise InvalidInput("record", "score record has no input snapshot")
    return data


def _is_same_record(left, right):
    if left is right:
        return True
    left_id = left.get("id")
    return left_id is not None and left_id == right.get("id")


def preceding_record(latest_record, history):
    """
    Find the record immediately before latest_record in a newest-first history.

    The history may or may not contain latest_record itself.
    """
    for record in history or []:
        if _is_same_record(record, latest_record):
            continue
        return record
    raise InsufficientHistory("no earlier score record to compare against")


def _exercise_trend_bonus(latest_record, history, exercise_days):
    try:
        previous = preceding_record(latest_record, history)
    except InsufficientHistory:
        return 0

    previous_exercise = (previous.get("data") or {}).get("exercise_days") or 0
    return 5 if exercise_days > previous_exercise else 0


def compute_breakdown_metrics(latest_record, history):
    """
    Split the latest record into heart, respiratory, metabolic and skeletal sub-scores.

    history is ordered newest first. The heart score earns a +5 trend bonus
    when exercise days went up compared with the preceding record.
    """
    values = validate_assessment_input(_record_data(latest_record))
    exercise = values["exercise_days"]
    age = values["age"]
    stress = values["stress_level"]
    sleep = values["sleep_hours"]
    bmi = _raw_bmi(values["weight"], values["height"])

    heart = BREAKDOWN_BASES["heart_health"]
    heart += min(exercise * 3, 15)
    if age > 30:
        heart -= min((age - 30) // 10, 10)
    heart += _exercise_trend_bonus(latest_record, history, exercise)

    respiratory = BREAKDOWN_BASES["respiratory"]
    respiratory += min(exercise * 2, 10)
    respiratory -= min(stress, 10)
    if 7 <= sleep <= 9:
        respiratory += 10

    metabolic = BREAKDOWN_BASES["metabolic"]
    if 18.5 <= bmi <= 24.9:
        metabolic += 20
    elif 17 <= bmi < 18.5 or 24.9 < bmi <= 29.9:
        metabolic += 10
    elif bmi > 35:
        metabolic -= 10
    if exercise >= 3:
        metabolic += 5

    skeletal = BREAKDOWN_BASES["skeletal"]
    skeletal += min(exercise * 3, 15)
    if age > 50:
        skeletal -= min((age - 50) // 5, 10)
    if bmi < 18.5:
        skeletal -= 5
    elif bmi > 30:
        skeletal -= 5

    return {
        "heart_health": _clamp_0_100(heart),
        "respiratory": _clamp_0_100(respiratory),
        "metabolic": _clamp_0_100(metabolic),
        "skeletal": _clamp_0_100(skeletal),
    }


def evaluate_assessment(data, responses_by_category=None):
    values = validate_assessment_input(data)
    bmi = compute_bmi(values["weight"], values["height"])
    category_scores = {
        category: compute_category_score(responses)
        for category, responses in (responses_by_category or {}).items()
    }

    return {
        "overall_score": final_score(values),
        "preview_score": preview_score(values),
        "bmi": bmi,
        "category_scores": category_scores,
        "recommendations": get_recommendations(category_scores, bmi),
    }
