"""Click CLI: orchestrates config loading, agent setup, debate rounds, and output."""

import asyncio
import logging
import sys
import uuid
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from config.config_loader import AppConfig, load_config
from src.agents import AgentRegistry, DebateAgent
from src.ai_consensus import AIConsensusAnalyzer
from src.engine import DebateEngine
from src.errors import RoundtableError
from src.exit_criteria import check_exit_criteria, validate_exit_criteria
from src.healthcheck import run_health_checks
from src.models import AgentResponse, ConsensusResult, ExitCriteria, RoundResult, Session
from src.modes.registry import ModeRegistry
from src.output import print_consensus, print_exit, print_round_summary, print_synthesis, save_to_file
from src.providers.anthropic import AnthropicProvider
from src.providers.base import AIProvider
from src.providers.gemini import GeminiProvider
from src.providers.openai_provider import OpenAIProvider
from src.providers.xai import XAIProvider
from src.synthesis import synthesize
from src.toolkit import AgentToolkit

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
    "xai": XAIProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_registry(config: AppConfig, agents_arg: str | None) -> AgentRegistry:
    """Instantiate agents with an API key. --agents restricts and orders the panel."""
    if agents_arg:
        wanted = [a.strip() for a in agents_arg.split(",") if a.strip()]
        unknown = [a for a in wanted if a not in config.agents]
        if unknown:
            logger.warning("Unknown agent(s) ignored: %s", ", ".join(unknown))
        selected = [a for a in wanted if a in config.available_agents]
    else:
        selected = list(config.available_agents)

    registry = AgentRegistry()
    for agent_id in selected:
        agent_cfg = config.agents[agent_id]
        model_cfg = config.models[agent_cfg.model]
        provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
        if provider_cls is None:
            logger.warning("Agent %s uses unknown sdk '%s', skipping", agent_id, model_cfg.sdk)
            continue
        try:
            provider = provider_cls(model_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate provider for agent '%s': %s", agent_id, exc)
            continue
        registry.register(DebateAgent(agent_id, agent_cfg.name, provider, agent_cfg.system_prompt))
    return registry


def _check_and_filter_agents(registry: AgentRegistry) -> None:
    """Run health checks, print results, and ask user what to do on failures.

    Failed agents are deactivated in the registry. Exits if the user
    declines to continue or no agents pass.
    """
    console.print("\n[bold]Checking agents...[/bold]")
    results = asyncio.run(run_health_checks(registry.get_active_agents()))

    failed: list[str] = []
    for agent_id in sorted(results):
        ok, err = results[agent_id]
        if ok:
            console.print(f"  [green]OK  [/green] {agent_id}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {agent_id}: {short_err}")
            failed.append(agent_id)

    if not failed:
        console.print()
        return

    for agent_id in failed:
        registry.set_active(agent_id, False)

    working = registry.get_active_agent_ids()
    if not working:
        console.print("\n[bold red]Error:[/bold red] No agents passed the health check.")
        sys.exit(1)

    console.print(f"\n[yellow]{len(failed)} agent(s) failed:[/yellow] {', '.join(failed)}")
    console.print(f"Working agents: {', '.join(working)}")

    if not click.confirm("Continue with working agents only?", default=True):
        sys.exit(0)
    console.print()


def _print_modes() -> None:
    table = Table(title="Debate modes")
    table.add_column("Mode")
    table.add_column("Execution")
    for name, mode in ModeRegistry().items():
        table.add_row(name, getattr(mode, "pattern", "custom"))
    console.print(table)


async def _run_debate(
    engine: DebateEngine,
    agents: list[DebateAgent],
    session: Session,
    criteria: ExitCriteria | None,
    focus: str | None,
) -> list[RoundResult]:
    """Run rounds one at a time, stopping early when exit criteria are met."""
    results: list[RoundResult] = []
    history: list[list[AgentResponse]] = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Running debate rounds...", total=None)

        while session.current_round < session.total_rounds:
            progress.update(task, description=f"Running round {session.current_round + 1}...")
            (result,) = await engine.execute_rounds(agents, session, 1, focus_question=focus)
            if not result.responses:
                raise RoundtableError(f"All agents failed in round {result.round_number}", code="ROUND_FAILED")
            results.append(result)
            progress.print(
                f"[green]OK[/green] Round {result.round_number} complete ({len(result.responses)} responses)"
            )

            if criteria is not None:
                check = check_exit_criteria(
                    result.responses, history, criteria, result.round_number, result.consensus
                )
                if check.should_exit and check.reason != "max_rounds":
                    print_exit(check)
                    break
            history.append(result.responses)

    return results


async def _run_single(
    topic: str,
    config: AppConfig,
    registry: AgentRegistry,
    mode: str,
    rounds: int,
    focus: str | None,
    use_ai_consensus: bool,
    run_synthesis: bool,
    output_dir: Path,
) -> Path:
    """Run one debate session and return the saved output path."""
    agents = registry.get_active_agents()
    session = Session(
        id=uuid.uuid4().hex[:12],
        topic=topic,
        mode=mode,
        agent_ids=[a.id for a in agents],
        total_rounds=rounds,
    )

    analyzer = None
    if use_ai_consensus:
        analyzer = AIConsensusAnalyzer(registry, preferred_agent_id=config.defaults.consensus_agent)
    engine = DebateEngine(AgentToolkit(), ai_consensus_analyzer=analyzer)

    criteria = None
    if config.exit_criteria.enabled:
        criteria = ExitCriteria(
            max_rounds=rounds,
            consensus_threshold=config.exit_criteria.consensus_threshold,
            convergence_rounds=config.exit_criteria.convergence_rounds,
            confidence_threshold=config.exit_criteria.confidence_threshold,
        )
        for problem in validate_exit_criteria(criteria):
            logger.warning("Exit criteria: %s", problem)

    console.print(f"\n[bold cyan]Roundtable[/bold cyan] {len(agents)} agents, up to {rounds} rounds [{mode}]")
    console.print(f"Panel: {', '.join(session.agent_ids)}")
    console.print(f"Topic: [italic]{topic[:80]}{'...' if len(topic) > 80 else ''}[/italic]\n")

    results = await _run_debate(engine, agents, session, criteria, focus)
    for result in results:
        print_round_summary(result)

    final_consensus: ConsensusResult = results[-1].consensus
    if use_ai_consensus:
        final_consensus = await engine.analyze_consensus_with_ai(results[-1].responses, topic)
    print_consensus(final_consensus, title="AI Consensus" if use_ai_consensus else "Consensus")

    synthesis = None
    if run_synthesis:
        synthesizer_id = config.defaults.synthesizer
        if synthesizer_id and registry.get_agent(synthesizer_id) is None:
            synthesizer_id = None
        synthesis = await synthesize(session, session.responses, registry, synthesizer_id)
        print_synthesis(synthesis)

    session.status = "completed"
    saved_path = save_to_file(session, results, output_dir, synthesis=synthesis, final_consensus=final_consensus)
    console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    return saved_path


@click.command()
@click.argument("topic", required=False)
@click.option("--mode", default=None, help="Debate mode (default: from config). See --list-modes.")
@click.option("--rounds", default=None, type=int, help="Number of debate rounds (default: from config)")
@click.option("--agents", "agents_arg", default=None, help="Comma-separated agent ids, overrides the panel")
@click.option("--focus", default=None, help="Focus question for every round")
@click.option("--ai-consensus", is_flag=True, default=False, help="Score the final round with an AI delegate")
@click.option("--no-synthesis", is_flag=True, default=False, help="Skip the final synthesis step")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
@click.option("--list-modes", is_flag=True, default=False, help="List the available debate modes and exit")
def main(
    topic: str | None,
    mode: str | None,
    rounds: int | None,
    agents_arg: str | None,
    focus: str | None,
    ai_consensus: bool,
    no_synthesis: bool,
    output_path: str | None,
    verbose: bool,
    skip_health_check: bool,
    list_modes: bool,
) -> None:
    """Roundtable -- structured multi-agent AI debates.

    \b
    Examples:
      roundtable "Should we use REST or GraphQL?" --rounds 2
      roundtable "Is remote work better?" --mode devils-advocate
      roundtable "Adopt Rust?" --mode expert-panel --agents claude,chatgpt --ai-consensus
      roundtable --list-modes
    """
    if list_modes:
        _print_modes()
        return

    load_dotenv()
    _setup_logging(verbose)

    if not topic:
        console.print("[bold red]Error:[/bold red] Provide a TOPIC argument.")
        sys.exit(1)

    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    effective_mode = mode or config.defaults.mode
    if not ModeRegistry().has_mode(effective_mode):
        console.print(f"[bold red]Error:[/bold red] Unknown mode '{effective_mode}'. Use --list-modes.")
        sys.exit(1)

    effective_rounds = rounds if rounds is not None else config.defaults.rounds
    if not 1 <= effective_rounds <= config.defaults.max_rounds:
        console.print(f"[bold red]Error:[/bold red] --rounds must be between 1 and {config.defaults.max_rounds}.")
        sys.exit(1)
    effective_output = Path(output_path) if output_path else config.defaults.output_dir

    registry = _build_registry(config, agents_arg)
    if len(registry) < 2:
        console.print(
            f"[bold red]Error:[/bold red] Need at least 2 agents, got {len(registry)}. "
            "Check API keys in .env or adjust --agents."
        )
        sys.exit(1)

    if not skip_health_check:
        _check_and_filter_agents(registry)

    try:
        asyncio.run(
            _run_single(
                topic=topic,
                config=config,
                registry=registry,
                mode=effective_mode,
                rounds=effective_rounds,
                focus=focus,
                use_ai_consensus=ai_consensus or config.defaults.use_ai_consensus,
                run_synthesis=not no_synthesis,
                output_dir=effective_output,
            )
        )
    except RoundtableError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
