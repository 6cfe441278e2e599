"""Plain-text rendering of a Timeline for terminal output."""

from wiwo.services.activity.timeline import Timeline

TIMESTAMP_WIDTH = 19
MIN_COLUMN_WIDTH = 10
URL_RULE_WIDTH = 20

EMPTY_MESSAGE = "No recent events found."


def render_preamble(timeline: Timeline) -> str:
    cutoff = timeline.cutoff.strftime("%Y-%m-%d %H:%M:%S UTC")
    return f"Fetching GitHub events for {timeline.user} (since {cutoff})"


def render_notes(timeline: Timeline) -> list[str]:
    """Footnotes about coverage: skipped sources and history fallback results."""
    notes: list[str] = []
    if timeline.sources_skipped:
        skipped = ", ".join(kind.value for kind in timeline.sources_skipped)
        notes.append(f"Skipped event sources (not authorized): {skipped}")
    report = timeline.fallback
    if report is not None and timeline.horizon_boundary is not None:
        boundary = timeline.horizon_boundary.strftime("%Y-%m-%d")
        notes.append(
            f"Activity before {boundary} reconstructed from git history of "
            f"{len(report.repositories_scanned)} repositories"
        )
        for failure in report.failures:
            notes.append(f"  could not scan {failure.message}")
    return notes


def render_table(timeline: Timeline) -> list[str]:
    """
    Render entries as an aligned table.

    Columns: TIMESTAMP | EVENT | REPOSITORY | VISIBILITY | URL
    """
    if not timeline.entries:
        return [EMPTY_MESSAGE]

    kind_width = max(MIN_COLUMN_WIDTH, *(len(e.kind) for e in timeline.entries))
    repo_width = max(MIN_COLUMN_WIDTH, *(len(e.repo) for e in timeline.entries))

    lines = [
        " | ".join(
            [
                "TIMESTAMP".ljust(TIMESTAMP_WIDTH),
                "EVENT".ljust(kind_width),
                "REPOSITORY".ljust(repo_width),
                "VISIBILITY".ljust(MIN_COLUMN_WIDTH),
                "URL",
            ]
        ),
        "-+-".join(
            [
                "-" * TIMESTAMP_WIDTH,
                "-" * kind_width,
                "-" * repo_width,
                "-" * MIN_COLUMN_WIDTH,
                "-" * URL_RULE_WIDTH,
            ]
        ),
    ]
    for entry in timeline.entries:
        lines.append(
            " | ".join(
                [
                    entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                    entry.kind.ljust(kind_width),
                    entry.repo.ljust(repo_width),
                    entry.visibility.capitalize().ljust(MIN_COLUMN_WIDTH),
                    entry.url,
                ]
            )
        )
    return lines


def render(timeline: Timeline) -> str:
    lines = ["", render_preamble(timeline), "", *render_table(timeline)]
    notes = render_notes(timeline)
    if notes:
        lines.extend(["", *notes])
    return "\n".join(lines)
