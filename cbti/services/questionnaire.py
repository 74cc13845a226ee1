"""
Sleep Diary Questionnaire

Declarative definition of the nightly diary: the fixed ordered question list,
conditional visibility, per-answer validation and the clinical lookup tables
(awakening buckets, feeling scale).

Visibility is a pure function of the answers given so far. The step-by-step
diary form and the one-shot submission validator both call visible_questions()
on the same answer map, so they always agree on which questions apply.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from cbti.models.question import (
    AnswerCheck,
    AnswerRule,
    CategoryCheck,
    CategoryInfo,
    Comparison,
    Question,
    QuestionCategory,
    QuestionOption,
    QuestionType,
    VisibilityCondition,
)
from cbti.utils.clock import MINUTES_PER_DAY, to_minutes

logger = logging.getLogger(__name__)


# ============================================================================
# CLINICAL LOOKUP TABLES
# ============================================================================

AWAKENING_OPTIONS: List[QuestionOption] = [
    QuestionOption(value=0, label="0 times"),
    QuestionOption(value=1, label="1-2 times"),
    QuestionOption(value=2, label="3-4 times"),
    QuestionOption(value=3, label="5-6 times"),
    QuestionOption(value=4, label="7-8 times"),
    QuestionOption(value=5, label="9-10 times"),
    QuestionOption(value=6, label="11+ times"),
]

# Awakening bucket -> representative count stored with the night
AWAKENING_COUNT_MAP: Dict[int, int] = {
    0: 0,
    1: 2,
    2: 4,
    3: 6,
    4: 8,
    5: 10,
    6: 11,
}

FEELING_OPTIONS: List[QuestionOption] = [
    QuestionOption(value=1, label="Very Tired"),
    QuestionOption(value=2, label="Tired"),
    QuestionOption(value=3, label="Okay"),
    QuestionOption(value=4, label="Rested"),
    QuestionOption(value=5, label="Very Rested"),
]

CATEGORIES: List[CategoryInfo] = [
    CategoryInfo(
        id=QuestionCategory.GOING_TO_BED,
        title="Going to Bed",
        description="Tell us about when you went to bed last night",
    ),
    CategoryInfo(
        id=QuestionCategory.MIDDLE_OF_NIGHT,
        title="Middle of the Night",
        description="Tell us about any awakenings during the night",
    ),
    CategoryInfo(
        id=QuestionCategory.WAKING_UP,
        title="Waking Up",
        description="Tell us about your morning",
    ),
]

# Prefill values for the time pickers (24-hour "HH:MM")
DEFAULT_TIMES: Dict[str, str] = {
    "q1_ttb": "22:00",
    "q2_tts": "22:30",
    "q9_tfa": "06:30",
    "q13_tob": "07:00",
}

_OUT_OF_BED_HELP = "Time spent out of bed practicing stimulus control"


# ============================================================================
# QUESTIONS
# ============================================================================

QUESTIONS: List[Question] = [
    # Going to bed
    Question(
        id="q1_ttb",
        category=QuestionCategory.GOING_TO_BED,
        text="What time did you go to bed?",
        input_type=QuestionType.TIME,
        rule=AnswerRule(required=True),
        helper_text="The time you got into bed",
    ),
    Question(
        id="q2_tts",
        category=QuestionCategory.GOING_TO_BED,
        text="What time did you try to go to sleep?",
        input_type=QuestionType.TIME,
        rule=AnswerRule(required=True),
        helper_text="The time you turned off the lights and tried to sleep",
    ),
    Question(
        id="q3_fell_asleep_quickly",
        category=QuestionCategory.GOING_TO_BED,
        text="Did you fall asleep within 5 minutes?",
        input_type=QuestionType.YES_NO,
        rule=AnswerRule(required=True),
    ),
    Question(
        id="q4_sol",
        category=QuestionCategory.GOING_TO_BED,
        text="How long did it take you to fall asleep?",
        input_type=QuestionType.DURATION,
        condition=VisibilityCondition(depends_on="q3_fell_asleep_quickly", show_when=False),
        rule=AnswerRule(required=True, min_value=5),
        helper_text="Sleep onset latency (SOL)",
    ),
    Question(
        id="q5_sol_out",
        category=QuestionCategory.GOING_TO_BED,
        text="Of that time, how long were you out of bed?",
        input_type=QuestionType.DURATION,
        condition=VisibilityCondition(depends_on="q3_fell_asleep_quickly", show_when=False),
        rule=AnswerRule(required=True, min_value=0),
        helper_text=_OUT_OF_BED_HELP,
    ),

    # Middle of the night
    Question(
        id="q6_awakenings",
        category=QuestionCategory.MIDDLE_OF_NIGHT,
        text="How many times did you wake up during the night?",
        input_type=QuestionType.MCQ,
        options=AWAKENING_OPTIONS,
        rule=AnswerRule(required=True),
    ),
    Question(
        id="q7_waso",
        category=QuestionCategory.MIDDLE_OF_NIGHT,
        text="In total, how long were you awake during those {awakenings} times?",
        input_type=QuestionType.DURATION,
        # Any bucket above "0 times" makes the awakening follow-ups apply
        condition=VisibilityCondition(
            depends_on="q6_awakenings", show_when=1, comparison=Comparison.AT_LEAST
        ),
        rule=AnswerRule(required=True, min_value=0),
        helper_text="Wake after sleep onset (WASO)",
    ),
    Question(
        id="q8_waso_out",
        category=QuestionCategory.MIDDLE_OF_NIGHT,
        text="Of that time, how long were you out of bed?",
        input_type=QuestionType.DURATION,
        condition=VisibilityCondition(
            depends_on="q6_awakenings", show_when=1, comparison=Comparison.AT_LEAST
        ),
        rule=AnswerRule(required=True, min_value=0),
        helper_text=_OUT_OF_BED_HELP,
    ),

    # Waking up
    Question(
        id="q9_tfa",
        category=QuestionCategory.WAKING_UP,
        text="At what time did you wake up this morning?",
        input_type=QuestionType.TIME,
        rule=AnswerRule(required=True),
        helper_text="Your final awakening time",
    ),
    Question(
        id="q10_woke_early",
        category=QuestionCategory.WAKING_UP,
        text="Did you wake up earlier than you wanted?",
        input_type=QuestionType.YES_NO,
        rule=AnswerRule(required=True),
    ),
    Question(
        id="q11_ema",
        category=QuestionCategory.WAKING_UP,
        text="How much earlier did you wake up?",
        input_type=QuestionType.DURATION,
        condition=VisibilityCondition(depends_on="q10_woke_early", show_when=True),
        rule=AnswerRule(required=True, min_value=5),
        helper_text="Early morning awakening (EMA)",
    ),
    Question(
        id="q12_ema_out",
        category=QuestionCategory.WAKING_UP,
        text="Of that time, how long were you out of bed?",
        input_type=QuestionType.DURATION,
        condition=VisibilityCondition(depends_on="q10_woke_early", show_when=True),
        rule=AnswerRule(required=True, min_value=0),
        helper_text=_OUT_OF_BED_HELP,
    ),
    Question(
        id="q13_tob",
        category=QuestionCategory.WAKING_UP,
        text="What time did you get out of bed?",
        input_type=QuestionType.TIME,
        rule=AnswerRule(required=True),
        helper_text="The time you got out of bed for the day",
    ),
    Question(
        id="q14_quality",
        category=QuestionCategory.WAKING_UP,
        text="How do you feel this morning?",
        input_type=QuestionType.FEELING,
        options=FEELING_OPTIONS,
        rule=AnswerRule(required=True),
    ),
]

_QUESTIONS_BY_ID: Dict[str, Question] = {q.id: q for q in QUESTIONS}


# ============================================================================
# LOOKUP AND VISIBILITY
# ============================================================================

def get_question(question_id: str) -> Question:
    """
    Look up a question by id

    Raises:
        KeyError: If no question has that id
    """
    try:
        return _QUESTIONS_BY_ID[question_id]
    except KeyError:
        raise KeyError(f"Unknown diary question: {question_id}")


def get_questions_by_category(category: QuestionCategory) -> List[Question]:
    return [q for q in QUESTIONS if q.category == category]


def is_visible(question: Question, answers: Mapping[str, Any]) -> bool:
    """
    Whether a question applies given the answers so far

    Questions without a condition always apply. Otherwise the declared
    comparison is evaluated against the governing answer; a missing governing
    answer hides the question.
    """
    if question.condition is None:
        return True
    return question.condition.holds(answers)


def visible_questions(answers: Mapping[str, Any]) -> List[Question]:
    """Ordered questions that apply to this answer map"""
    return [q for q in QUESTIONS if is_visible(q, answers)]


# ============================================================================
# ANSWER VALIDATION
# ============================================================================

def validate_answer(question: Question, value: Any) -> AnswerCheck:
    """
    Validate one answer against its question's rule

    Args:
        question: The question being answered
        value: The raw answer (None or "" count as missing)

    Returns:
        AnswerCheck with valid flag and a human-readable error
    """
    rule = question.rule

    if rule.required and (value is None or value == ""):
        return AnswerCheck(valid=False, error="This field is required")

    if question.options and value is not None and value != "":
        # bool is an int subclass and would match the option with value 1
        if isinstance(value, bool) or question.option_label(value) is None:
            return AnswerCheck(valid=False, error="Please choose one of the listed options")

    is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
    if question.input_type == QuestionType.DURATION and is_number:
        if rule.min_value is not None and value < rule.min_value:
            return AnswerCheck(valid=False, error=f"Minimum value is {rule.min_value} minutes")
        if rule.max_value is not None and value > rule.max_value:
            return AnswerCheck(valid=False, error=f"Maximum value is {rule.max_value} minutes")

    return AnswerCheck(valid=True)


def validate_category(category: QuestionCategory, answers: Mapping[str, Any]) -> CategoryCheck:
    """Validate every visible answer in one category"""
    errors: Dict[str, str] = {}

    for question in get_questions_by_category(category):
        if not is_visible(question, answers):
            continue

        result = validate_answer(question, answers.get(question.id))
        if not result.valid and result.error:
            errors[question.id] = result.error

    return CategoryCheck(valid=not errors, errors=errors)


def validate_answers(answers: Mapping[str, Any]) -> CategoryCheck:
    """Validate every visible answer in the whole diary"""
    errors: Dict[str, str] = {}
    for info in CATEGORIES:
        errors.update(validate_category(info.id, answers).errors)

    if errors:
        logger.debug(f"Diary answers failed validation: {sorted(errors)}")
    return CategoryCheck(valid=not errors, errors=errors)


# ============================================================================
# DISPLAY HELPERS
# ============================================================================

def question_text(question: Question, answers: Mapping[str, Any]) -> str:
    """
    Question text with the {awakenings} placeholder filled in

    Example:
        >>> question_text(get_question("q7_waso"), {"q6_awakenings": 1})
        'In total, how long were you awake during those 1-2 times?'
    """
    text = question.text
    if "{awakenings}" in text:
        bucket = answers.get("q6_awakenings")
        label = get_question("q6_awakenings").option_label(bucket)
        if label is not None:
            text = text.replace("{awakenings}", label.replace(" times", ""))
    return text


def time_entry_warning(question_id: str, value: str, answers: Mapping[str, Any]) -> Optional[str]:
    """
    Soft warning shown while a time is being entered

    These never block submission; the entry validator decides acceptance.

    Returns:
        Warning text, or None when the value looks plausible

    Raises:
        TimeFormatError: If value or the earlier time it is compared with is malformed
    """
    if not value:
        return None

    current = to_minutes(value, field=question_id)

    if question_id == "q2_tts" and answers.get("q1_ttb"):
        diff = (current - to_minutes(answers["q1_ttb"])) % MINUTES_PER_DAY
        if diff > 120:
            return "This is more than 2 hours after getting into bed"

    elif question_id == "q9_tfa" and answers.get("q2_tts"):
        diff = (current - to_minutes(answers["q2_tts"])) % MINUTES_PER_DAY
        if diff < 60:
            return "This seems very soon after trying to sleep"

    elif question_id == "q13_tob" and answers.get("q9_tfa"):
        diff = current - to_minutes(answers["q9_tfa"])
        if -60 < diff < 0:
            return "Out of bed time appears to be before wake time"

    return None
