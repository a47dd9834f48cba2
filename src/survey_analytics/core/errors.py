"""
Domain exceptions for the survey analytics pipeline.

Skippable data problems (malformed rows, unclassified questions) are logged
and counted, never raised. Everything here signals a request-level failure.
"""


class SurveyAnalyticsError(Exception):
    """Base class for all survey analytics errors."""


class UnknownVariableError(SurveyAnalyticsError, KeyError):
    """A variable key outside the closed VariableKey set reached the normalizer."""

    def __init__(self, variable_key: object):
        self.variable_key = variable_key
        super().__init__(f"Unknown survey variable: {variable_key!r}")

    def __str__(self) -> str:
        # KeyError.__str__ wraps the message in quotes
        return str(self.args[0])


class AggregationInputError(SurveyAnalyticsError, TypeError):
    """The aggregator was handed something that is not a sequence of rows."""


class LLMUnavailableError(SurveyAnalyticsError):
    """The language model service could not be reached or timed out."""


class LLMResponseError(SurveyAnalyticsError):
    """The language model returned a response that could not be used."""
