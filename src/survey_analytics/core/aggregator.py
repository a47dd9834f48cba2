"""
Survey response aggregation - Polars-first, returns serializable dicts.

Turns pre-counted (disease, question, choice, count) rows into the nested
count structure consumed by the chart layer:

    {disease (lowercase): {variable key: {category label: count}}}

Malformed, unclassified and filtered-out rows are skipped and counted, never
raised. Handing the aggregator something that is not a sequence of rows is a
precondition violation and raises AggregationInputError.
"""

import copy
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

import polars as pl
import structlog

from survey_analytics.core.errors import AggregationInputError
from survey_analytics.core.variables import VariableKey, classify, coerce_variable_filter, normalize

logger = structlog.get_logger()

# Bucket sums are computed in an Int64 column
MAX_COUNT = 2**63 - 1

REQUIRED_FIELDS = ("disease_name", "question_text", "choice_text", "response_count")

_BUCKET_SCHEMA = {
    "disease": pl.Utf8,
    "variable": pl.Utf8,
    "category": pl.Utf8,
    "count": pl.Int64,
}

AggregationData = dict[str, dict[str, dict[str, int]]]


@dataclass(frozen=True)
class RawResponseRow:
    """One grouped survey response, already summed by (disease, question, choice)."""

    disease_name: str
    question_text: str
    choice_text: str
    response_count: int


@dataclass
class AggregationStats:
    """Row accounting for one aggregate() call."""

    rows_seen: int = 0
    rows_aggregated: int = 0
    skipped_malformed: int = 0
    skipped_unclassified: int = 0
    skipped_filtered: int = 0

    @property
    def rows_skipped(self) -> int:
        return self.skipped_malformed + self.skipped_unclassified + self.skipped_filtered

    def to_dict(self) -> dict[str, int]:
        result = asdict(self)
        result["rows_skipped"] = self.rows_skipped
        return result


@dataclass(frozen=True)
class AggregationResult:
    """Nested counts plus skip accounting. Built fresh per call."""

    data: AggregationData = field(default_factory=dict)
    stats: AggregationStats = field(default_factory=AggregationStats)

    def to_dict(self) -> AggregationData:
        """Return an independent copy of the nested count mapping."""
        return copy.deepcopy(self.data)


def parse_csv_param(value: str | None, lowercase: bool = False) -> list[str]:
    """
    Split a comma-separated query parameter.

    Values are trimmed and empties dropped; duplicates keep their first position.

    Examples:
        >>> parse_csv_param(" Malaria, cholera,,", lowercase=True)
        ['malaria', 'cholera']
        >>> parse_csv_param(None)
        []
    """
    if not value:
        return []
    items: list[str] = []
    for part in value.split(","):
        item = part.strip()
        if lowercase:
            item = item.lower()
        if item and item not in items:
            items.append(item)
    return items


def _malformed_reason(row: Mapping[str, Any]) -> str | None:
    for name in REQUIRED_FIELDS[:3]:
        value = row.get(name)
        if not isinstance(value, str) or not value:
            return f"missing_{name}"

    count = row.get("response_count")
    if count is None:
        return "missing_response_count"
    # bool is an int subclass but never a valid count
    if isinstance(count, bool) or not isinstance(count, int):
        return "invalid_response_count"
    if count < 0:
        return "negative_response_count"
    if count > MAX_COUNT:
        return "response_count_out_of_range"
    return None


def _as_mapping(row: Any, index: int) -> Mapping[str, Any]:
    if isinstance(row, RawResponseRow):
        return asdict(row)
    if isinstance(row, Mapping):
        return row
    raise AggregationInputError(
        f"Row {index} is {type(row).__name__}, expected a mapping or RawResponseRow"
    )


def _check_rows(rows: Any) -> Iterable[Any]:
    # A string, bytes or single mapping is iterable but is not a row sequence
    if isinstance(rows, (str, bytes, Mapping)) or not isinstance(rows, Iterable):
        raise AggregationInputError(
            f"Expected a sequence of response rows, got {type(rows).__name__}"
        )
    return rows


def _normalize_disease_filter(diseases: Iterable[str] | None) -> list[str]:
    if not diseases:
        return []
    if isinstance(diseases, str):
        raise AggregationInputError("disease_filter must be a collection of names, not a string")
    ordered: list[str] = []
    for disease in diseases:
        if not isinstance(disease, str):
            raise AggregationInputError(f"disease_filter entries must be strings, got {type(disease).__name__}")
        name = disease.strip().lower()
        if name and name not in ordered:
            ordered.append(name)
    return ordered


def _normalize_variable_filter(variables: Iterable[VariableKey | str] | None) -> set[VariableKey]:
    if not variables:
        return set()
    if isinstance(variables, str):
        raise AggregationInputError("variable_filter must be a collection of keys, not a string")
    names: list[str] = []
    for variable in variables:
        if not isinstance(variable, str):
            raise AggregationInputError(f"variable_filter entries must be strings, got {type(variable).__name__}")
        names.append(variable.value if isinstance(variable, VariableKey) else variable)
    return coerce_variable_filter(names)


def aggregate(
    rows: Iterable[RawResponseRow | Mapping[str, Any]],
    disease_filter: Iterable[str] | None = None,
    variable_filter: Iterable[VariableKey | str] | None = None,
) -> AggregationResult:
    """
    Aggregate survey rows into disease -> variable -> category counts.

    Steps per row:
    1. Skip (warn) if a required field is missing or the count is invalid
    2. Lowercase the disease name (bucket key)
    3. Classify the question; skip if unclassified
    4. Skip if a variable filter is given and excludes the key
    5. Normalize the choice into a category label
    6. Sum the count into the bucket

    Every disease in disease_filter is present in the result, with an empty
    mapping when no rows matched. Rows with a zero count register their
    disease but create no variable or category entry.

    Args:
        rows: Pre-counted rows (RawResponseRow or mappings with the same keys)
        disease_filter: Disease names to keep (case-insensitive); empty keeps all
        variable_filter: Variable keys to keep; empty keeps all. Unknown names are ignored.

    Returns:
        AggregationResult with nested counts and skip statistics

    Raises:
        AggregationInputError: If rows is not a sequence of row objects, a filter
            holds non-string entries, or the counts sum beyond the 64-bit range
        UnknownVariableError: If the classifier yields a key the normalizer rejects
    """
    rows = _check_rows(rows)
    diseases_requested = _normalize_disease_filter(disease_filter)
    disease_set = set(diseases_requested)
    variables = _normalize_variable_filter(variable_filter)

    stats = AggregationStats()
    diseases_seen: dict[str, None] = {}
    buckets: list[tuple[str, str, str, int]] = []

    for index, raw in enumerate(rows):
        row = _as_mapping(raw, index)
        stats.rows_seen += 1

        reason = _malformed_reason(row)
        if reason is not None:
            stats.skipped_malformed += 1
            logger.warning("aggregate_row_skipped", reason=reason, row_index=index)
            continue

        disease = row["disease_name"].lower()
        if disease_set and disease not in disease_set:
            stats.skipped_filtered += 1
            continue
        diseases_seen.setdefault(disease, None)

        key = classify(row["question_text"])
        if key is None:
            stats.skipped_unclassified += 1
            logger.debug(
                "aggregate_row_unclassified",
                disease=disease,
                question=row["question_text"][:100],
            )
            continue

        if variables and key not in variables:
            stats.skipped_filtered += 1
            continue

        category = normalize(key, row["choice_text"])
        stats.rows_aggregated += 1
        if row["response_count"] > 0:
            buckets.append((disease, key.value, category, row["response_count"]))

    data: AggregationData = {disease: {} for disease in diseases_seen}

    # Every count is non-negative, so a total within range bounds every bucket sum
    if sum(bucket[3] for bucket in buckets) > MAX_COUNT:
        raise AggregationInputError("Response counts sum beyond the 64-bit count range")

    if buckets:
        frame = pl.DataFrame(buckets, schema=_BUCKET_SCHEMA, orient="row")
        summed = frame.group_by(["disease", "variable", "category"], maintain_order=True).agg(pl.col("count").sum())
        for disease, variable, category, count in summed.iter_rows():
            data[disease].setdefault(variable, {})[category] = int(count)

    for disease in diseases_requested:
        data.setdefault(disease, {})

    if stats.rows_skipped:
        logger.info("aggregate_rows_skipped", **stats.to_dict())

    logger.debug(
        "aggregate_complete",
        diseases=list(data.keys()),
        rows_aggregated=stats.rows_aggregated,
    )

    return AggregationResult(data=data, stats=stats)
