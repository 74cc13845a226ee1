"""Pydantic models for the sleep diary questionnaire"""
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class QuestionType(str, Enum):
    TIME = "time"
    YES_NO = "yes_no"
    DURATION = "duration"
    MCQ = "mcq"
    FEELING = "feeling"


class QuestionCategory(str, Enum):
    GOING_TO_BED = "going_to_bed"
    MIDDLE_OF_NIGHT = "middle_of_night"
    WAKING_UP = "waking_up"


class Comparison(str, Enum):
    EQUALS = "equals"
    AT_LEAST = "at_least"


class VisibilityCondition(BaseModel):
    """Show a question only when an earlier answer matches"""

    model_config = ConfigDict(frozen=True)

    depends_on: str
    show_when: Union[bool, int, str]
    comparison: Comparison = Comparison.EQUALS

    def holds(self, answers: Mapping[str, Any]) -> bool:
        answer = answers.get(self.depends_on)
        if self.comparison == Comparison.AT_LEAST:
            # bool is an int subclass; a yes/no answer never satisfies a count threshold
            if isinstance(answer, bool) or not isinstance(answer, (int, float)):
                return False
            return answer >= self.show_when
        # Compare type as well so False never equals 0
        return type(answer) is type(self.show_when) and answer == self.show_when


class AnswerRule(BaseModel):
    """Required-ness and inclusive bounds (minutes) for an answer"""

    model_config = ConfigDict(frozen=True)

    required: bool = False
    min_value: Optional[int] = None
    max_value: Optional[int] = None


class QuestionOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Union[int, str]
    label: str


class Question(BaseModel):
    """One diary question"""

    model_config = ConfigDict(frozen=True)

    id: str
    category: QuestionCategory
    text: str
    input_type: QuestionType
    condition: Optional[VisibilityCondition] = None
    options: List[QuestionOption] = Field(default_factory=list)
    rule: AnswerRule = Field(default_factory=AnswerRule)
    helper_text: Optional[str] = None

    def option_label(self, value: Any) -> Optional[str]:
        for option in self.options:
            if option.value == value:
                return option.label
        return None


class CategoryInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: QuestionCategory
    title: str
    description: str


class AnswerCheck(BaseModel):
    """Outcome of validating a single answer"""

    valid: bool
    error: Optional[str] = None


class CategoryCheck(BaseModel):
    """Outcome of validating every visible answer in a category, keyed by question id"""

    valid: bool
    errors: Dict[str, str] = Field(default_factory=dict)
