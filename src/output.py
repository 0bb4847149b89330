"""Rich console output and markdown file save for debate sessions."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from src.models import AgentResponse, ConsensusResult, ExitCheckResult, RoundResult, Session, SynthesisResult

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _position_preview(response: AgentResponse, words: int = 50) -> str:
    """Return first N words of a response's position."""
    all_words = response.position.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def _percent(value: float) -> str:
    return f"{value * 100:.0f}%"


def print_round_summary(result: RoundResult) -> None:
    """Print one panel per agent plus the round's consensus line."""
    console.print(Rule(f"[bold cyan]Round {result.round_number} Summary[/bold cyan]"))
    for resp in result.responses:
        subtitle = f"confidence {_percent(resp.confidence)}"
        if resp.stance:
            subtitle += f" | {resp.stance}"
        border = "red" if resp.role_violation is not None else "dim"
        console.print(
            Panel(
                _position_preview(resp),
                title=f"[bold]{resp.agent_name}[/bold] ({resp.agent_id})",
                subtitle=subtitle,
                border_style=border,
            )
        )
    console.print(
        Text(
            f"Agreement: {_percent(result.consensus.agreement_level)} | {result.consensus.summary}",
            style="dim",
        )
    )
    if result.context_requests:
        for req in result.context_requests:
            console.print(Text(f"Context requested by {req.agent_id}: {req.query}", style="yellow"))


def print_consensus(consensus: ConsensusResult, title: str = "Consensus") -> None:
    console.print(Rule(f"[bold magenta]{title}[/bold magenta]"))
    table = Table(show_header=False, box=None)
    table.add_row("Agreement", _percent(consensus.agreement_level))
    table.add_row("Summary", consensus.summary)
    for point in consensus.common_ground:
        table.add_row("Common ground", point)
    for point in consensus.disagreement_points:
        table.add_row("Disagreement", point)
    if consensus.groupthink_warning and consensus.groupthink_warning.get("detected"):
        table.add_row("[yellow]Groupthink[/yellow]", str(consensus.groupthink_warning.get("recommendation") or ""))
    console.print(table)


def print_exit(check: ExitCheckResult) -> None:
    console.print(Text(f"Stopping early ({check.reason}): {check.details}", style="bold yellow"))


def print_synthesis(result: SynthesisResult) -> None:
    """Print the synthesis to the console using Rich markdown."""
    console.print(Rule("[bold green]Roundtable Synthesis[/bold green]"))
    console.print(
        Text(
            f"Synthesized by: {result.synthesizer_id} | Confidence: {_percent(result.confidence)}",
            style="dim",
        )
    )
    console.print(Markdown(_synthesis_markdown(result)))


def _synthesis_markdown(result: SynthesisResult) -> str:
    lines: list[str] = []
    if result.conclusion:
        lines += ["**Conclusion:** " + result.conclusion, ""]
    if result.common_ground:
        lines += ["**Common ground:**", *(f"- {p}" for p in result.common_ground), ""]
    if result.key_differences:
        lines += ["**Key differences:**", *(f"- {p}" for p in result.key_differences), ""]
    if result.evolution_summary:
        lines += ["**Evolution:** " + result.evolution_summary, ""]
    if result.recommendation:
        lines += ["**Recommendation:** " + result.recommendation, ""]
    return "\n".join(lines).rstrip()


def _response_markdown(resp: AgentResponse) -> list[str]:
    lines = [f"### {resp.agent_name} ({resp.agent_id})", ""]
    lines += [f"**Position:** {resp.position}", "", resp.reasoning, ""]
    meta = f"*Confidence: {_percent(resp.confidence)}"
    if resp.stance:
        meta += f" | Stance: {resp.stance}"
    if resp.role_violation is not None:
        meta += f" | Role violation: expected {resp.role_violation.expected}"
    lines += [meta + "*", ""]
    if resp.citations:
        lines.append("Sources:")
        lines += [f"- [{c.title}]({c.url})" for c in resp.citations]
        lines.append("")
    return lines


def save_to_file(
    session: Session,
    rounds: list[RoundResult],
    output_dir: Path,
    synthesis: SynthesisResult | None = None,
    final_consensus: ConsensusResult | None = None,
) -> Path:
    """Save the full debate transcript as a markdown file.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{_slug(session.topic)}.md"

    lines: list[str] = [
        f"# Roundtable Debate: {session.topic[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Session:** {session.id}",
        f"**Mode:** {session.mode}",
        f"**Participants:** {', '.join(session.agent_ids)}",
        f"**Rounds:** {session.current_round} of {session.total_rounds}",
        "",
        "---",
        "",
    ]

    for rnd in rounds:
        lines += [f"## Round {rnd.round_number}", ""]
        for resp in rnd.responses:
            lines += _response_markdown(resp)
        lines += [
            f"*Round agreement: {_percent(rnd.consensus.agreement_level)} | {rnd.consensus.summary}*",
            "",
        ]

    if final_consensus is not None:
        lines += ["## Consensus", "", f"**Agreement:** {_percent(final_consensus.agreement_level)}", ""]
        lines += [final_consensus.summary, ""]
        lines += [f"- {p}" for p in final_consensus.common_ground]
        if final_consensus.disagreement_points:
            lines += ["", "Disagreements:"]
            lines += [f"- {p}" for p in final_consensus.disagreement_points]
        lines.append("")

    if synthesis is not None:
        lines += [f"## Synthesis (by {synthesis.synthesizer_id})", "", _synthesis_markdown(synthesis), ""]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Debate saved to: %s", filepath)
    return filepath
