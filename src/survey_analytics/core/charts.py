"""
Chart payloads built from aggregation results.

Pure functions: aggregation data + a DataRequest in, serializable series out.
Bar/line charts get one point per category with a value per disease; pie
charts get one series per (disease, variable) pair.
"""

from dataclasses import dataclass, field
from typing import Any

from survey_analytics.core.aggregator import AggregationData
from survey_analytics.core.intent import ChartType, DataRequest
from survey_analytics.core.variables import VariableKey


@dataclass
class ChartPayload:
    """Everything the chart renderer needs for one request."""

    chart_types: list[ChartType]
    title: str
    data: AggregationData
    diseases: list[str]
    variables: list[str]
    series: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    pie_series: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    has_data: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "chartTypes": [c.value for c in self.chart_types],
            "title": self.title,
            "data": self.data,
            "diseases": self.diseases,
            "variables": self.variables,
            "series": self.series,
            "pieSeries": self.pie_series,
            "hasData": self.has_data,
        }


def build_category_series(
    data: AggregationData,
    diseases: list[str],
    variables: list[str],
) -> dict[str, list[dict[str, Any]]]:
    """
    Per variable, one point per category: {"name": category, disease: count, ...}.

    Categories keep first-seen order across diseases. Missing counts are 0,
    and categories that are zero for every disease are dropped.
    """
    result: dict[str, list[dict[str, Any]]] = {}

    for variable in variables:
        categories: list[str] = []
        for disease in diseases:
            for category in data.get(disease, {}).get(variable, {}):
                if category not in categories:
                    categories.append(category)

        points: list[dict[str, Any]] = []
        for category in categories:
            point: dict[str, Any] = {"name": category}
            for disease in diseases:
                point[disease] = data.get(disease, {}).get(variable, {}).get(category, 0)
            if any(point[disease] != 0 for disease in diseases):
                points.append(point)

        result[variable] = points

    return result


def build_pie_series(
    data: AggregationData,
    diseases: list[str],
    variables: list[str],
) -> dict[str, list[dict[str, Any]]]:
    """Key "{disease}-{variable}" -> [{"name", "value"}] with positive values only."""
    result: dict[str, list[dict[str, Any]]] = {}

    for variable in variables:
        for disease in diseases:
            counts = data.get(disease, {}).get(variable)
            if not counts:
                continue
            entries = [{"name": category, "value": value} for category, value in counts.items() if value and value > 0]
            if entries:
                result[f"{disease}-{variable}"] = entries

    return result


def has_data(data: AggregationData, diseases: list[str], variables: list[str]) -> bool:
    """True if any requested (disease, variable) has a positive count."""
    return any(
        any(value > 0 for value in data.get(disease, {}).get(variable, {}).values())
        for variable in variables
        for disease in diseases
    )


def default_title(diseases: list[str], variables: list[str]) -> str:
    """Readable title, e.g. "Malaria and Cholera by Age and Family Size"."""
    disease_part = " and ".join(d.title() for d in diseases) or "All diseases"
    variable_part = " and ".join(humanize_variable(v) for v in variables)
    if not variable_part:
        return f"{disease_part} survey responses"
    return f"{disease_part} by {variable_part}"


def humanize_variable(variable: str) -> str:
    """camelCase key to a label: "climateChangeAwareness" -> "Climate Change Awareness"."""
    words: list[str] = []
    current = ""
    for char in variable:
        if char.isupper() and current:
            words.append(current)
            current = char
        else:
            current += char
    if current:
        words.append(current)
    return " ".join(word[:1].upper() + word[1:] for word in words)


def build_chart(request: DataRequest, data: AggregationData) -> ChartPayload:
    """
    Build the chart payload for one request.

    When the request names no variables, every variable present in the data
    for the requested diseases is charted, in VariableKey order.
    """
    diseases = request.diseases or list(data.keys())

    if request.variables:
        variables = [v.value for v in request.variables]
    else:
        present = {variable for disease in diseases for variable in data.get(disease, {})}
        variables = [key.value for key in VariableKey if key.value in present]

    return ChartPayload(
        chart_types=list(request.chart_types),
        title=request.title or default_title(diseases, variables),
        data=data,
        diseases=diseases,
        variables=variables,
        series=build_category_series(data, diseases, variables),
        pie_series=build_pie_series(data, diseases, variables),
        has_data=has_data(data, diseases, variables),
    )
