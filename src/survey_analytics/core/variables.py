"""
Survey variable dictionary: question classification and choice normalization.

Each VariableKey member owns exactly one question fragment and one
normalization rule, so the classifier and the normalizer always agree on the
key set. Adding a survey variable means adding one member here.

Key functions:
- classify: Map free-text question to a VariableKey (substring match)
- normalize: Map a raw choice to the presentation category for a key
- lookup_variable: Resolve a user/LLM supplied string to a VariableKey
"""

from collections.abc import Iterable
from enum import Enum

import structlog

from survey_analytics.core.errors import UnknownVariableError

logger = structlog.get_logger()

YES = "yes"


class VariableKey(str, Enum):
    """
    Closed set of semantic survey variables.

    Member order is the classification order: when a question text contains
    more than one fragment, the first member declared wins.

    Attributes (per member):
        fragment: Lowercase phrase whose presence in a question selects this key
        positive_label: Category for a "yes" answer (None = pass choice through)
        negative_label: Category for any other answer
    """

    GENDER = ("gender", "male or female")
    AGE = ("age", "older than 35", "Above 35", "Below 35")
    SEASON = ("season", "rainy season", "Rainy Season", "Dry Season")
    FAMILY_SIZE = ("familySize", "more than four", "More than four", "Four or less")
    CLIMATE_CHANGE_AWARENESS = ("climateChangeAwareness", "climate change", "Yes", "No")
    LOCATION = ("location", "health facility", "Bariga, Lagos", "Other location")
    MALARIA_TREATMENT_LAST_YEAR = ("malariaTreatmentLastYear", "treated for malaria last year", "Yes", "No")
    MALARIA_INCREASE = ("malariaIncrease", "more last year than previous", "Yes", "No")
    WEATHER_IMPACT = ("weatherImpact", "weather conditions are affecting", "Yes", "No")
    PREVENTION_TIPS_INTEREST = ("preventionTipsInterest", "malaria prevention tips", "Yes", "No")

    def __new__(
        cls,
        key: str,
        fragment: str,
        positive_label: str | None = None,
        negative_label: str | None = None,
    ) -> "VariableKey":
        obj = str.__new__(cls, key)
        obj._value_ = key
        obj.fragment = fragment
        obj.positive_label = positive_label
        obj.negative_label = negative_label
        return obj

    def __str__(self) -> str:
        return self.value

    @property
    def is_yes_no(self) -> bool:
        """True when the raw choice is a yes/no answer mapped to two labels."""
        return self.positive_label is not None

    def matches(self, question_text: str) -> bool:
        """Substring test against an already-lowercased question."""
        return self.fragment in question_text

    def categorize(self, raw_choice: str) -> str:
        """Apply this key's normalization rule to a raw choice string."""
        if not self.is_yes_no:
            return raw_choice
        if raw_choice.lower() == YES:
            return self.positive_label
        return self.negative_label


def classify(question_text: str) -> VariableKey | None:
    """
    Classify a survey question into a VariableKey.

    Matching is case-insensitive substring containment against each key's
    fragment, in declaration order. The first match wins.

    Args:
        question_text: Free-text survey question

    Returns:
        Matching VariableKey, or None if no fragment is present

    Examples:
        >>> classify("Are You OLDER THAN 35?")
        <VariableKey.AGE: 'age'>
        >>> classify("Unrelated question") is None
        True
    """
    lowered = question_text.lower()
    for key in VariableKey:
        if key.matches(lowered):
            return key
    return None


def normalize(variable_key: VariableKey | str, raw_choice: str) -> str:
    """
    Normalize a raw choice into the presentation category for a variable.

    Args:
        variable_key: VariableKey member or its exact string value
        raw_choice: Raw choice text from the survey (e.g. "Yes", "Male")

    Returns:
        Category label (e.g. "Above 35", "Dry Season", "Male")

    Raises:
        UnknownVariableError: If variable_key is not part of the closed set
    """
    if isinstance(variable_key, VariableKey):
        key = variable_key
    else:
        try:
            key = VariableKey(variable_key)
        except ValueError as e:
            raise UnknownVariableError(variable_key) from e
    return key.categorize(raw_choice)


def lookup_variable(value: str) -> VariableKey | None:
    """
    Resolve a loosely formatted variable name to a VariableKey.

    Accepts the exact key ("familySize") or any casing of it ("familysize").
    Returns None for anything outside the closed set.
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    try:
        return VariableKey(candidate)
    except ValueError:
        pass
    lowered = candidate.lower()
    for key in VariableKey:
        if key.value.lower() == lowered:
            return key
    return None


def coerce_variable_filter(values: Iterable[str] | None) -> set[VariableKey]:
    """
    Validate requested variable names against the closed key set.

    Unknown names are dropped (logged at debug), never treated as errors.
    """
    if not values:
        return set()

    result: set[VariableKey] = set()
    for value in values:
        key = lookup_variable(value)
        if key is None:
            logger.debug("variable_filter_unknown_value_ignored", value=value)
            continue
        result.add(key)
    return result

