"""
Markdown export for selected observations.

Produces a paste-ready summary, grouped by project when every observation
has one.
"""

from collections.abc import Sequence

from .database.models import Observation

EXPORT_TITLE = "## Compound Eye - Engineering Observations"


def format_date(iso: str) -> str:
    """Reduce an ISO-8601 timestamp to its YYYY-MM-DD date."""
    return iso[:10]


def format_observation_line(obs: Observation) -> str:
    return (
        f"- [{obs.disposition}] {obs.text} "
        f"(first observed: {format_date(obs.created_at)}, "
        f"updated: {format_date(obs.updated_at)})"
    )


def build_export_markdown(observations: Sequence[Observation]) -> str:
    """
    Render observations as a markdown section.

    Args:
        observations: Observations in display order

    Returns:
        Markdown text. Projects appear in first-seen order; if any
        observation lacks a project, a single flat list is used instead.
    """
    lines = [EXPORT_TITLE, ""]

    if all(obs.project is not None for obs in observations):
        groups: dict[str, list[Observation]] = {}
        for obs in observations:
            groups.setdefault(obs.project, []).append(obs)
        for project, items in groups.items():
            lines.append(f"### {project}")
            lines.extend(format_observation_line(obs) for obs in items)
            lines.append("")
    else:
        lines.append("### Observations")
        lines.extend(format_observation_line(obs) for obs in observations)
        lines.append("")

    return "\n".join(lines)
