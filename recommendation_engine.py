LOW_SCORE_THRESHOLD = 60

RECOMMENDATIONS = {
    "physical": [
        "Aim for at least 150 minutes of moderate activity each week",
        "Add two short strength sessions to your weekly routine",
        "Take a 5 minute walking break for every hour of sitting",
    ],
    "mental": [
        "Set aside 10 minutes a day for breathing or mindfulness exercises",
        "Keep in touch with friends or family at least a few times a week",
        "Talk to a mental health professional if low mood persists",
    ],
    "nutrition": [
        "Fill half of each plate with vegetables and fruit",
        "Swap sugary drinks for water",
        "Limit processed and fried foods to occasional treats",
    ],
    "sleep": [
        "Keep the same bedtime and wake-up time every day",
        "Avoid screens for an hour before bed",
        "Cut back on caffeine after midday",
    ],
}

WEIGHT_RECOMMENDATIONS = {
    "Underweight": [
        "Add nutrient-dense snacks such as nuts, yogurt and whole grains",
        "Discuss healthy weight gain with your doctor",
    ],
    "Overweight": [
        "Reduce portion sizes and choose high-fibre foods",
        "Increase daily activity with brisk walks",
    ],
    "Obese": [
        "Book a check-up to discuss a weight management plan",
        "Set small, steady weekly activity goals",
        "Track meals to spot high-calorie habits",
    ],
}


def get_recommendations(category_scores, bmi):
    """
    Map each scored category to its advice list.

    Categories scoring under LOW_SCORE_THRESHOLD get the full list, the rest
    get an empty list. A "weight" entry is always present and is only
    populated when the BMI category is not Normal.
    """
    recommendations = {}
    for category, score in (category_scores or {}).items():
        if score < LOW_SCORE_THRESHOLD:
            recommendations[category] = list(RECOMMENDATIONS.get(category, []))
        else:
            recommendations[category] = []

    bmi_category = (bmi or {}).get("category")
    recommendations["weight"] = list(WEIGHT_RECOMMENDATIONS.get(bmi_category, []))
    return recommendations


def score_status(score):
    if score is None:
        return None
    if score >= 80:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 60:
        return "Average"
    return "Needs Improvement"
