"""CLI commands for mixver."""

from __future__ import annotations

import logging
import random
import sys
from difflib import SequenceMatcher

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from mixver.config import MixverConfig, load_config
from mixver.core.mutation import MutationOp
from mixver.core.plan import UpgradePlan
from mixver.engine import MutationEngine, MutationReport
from mixver.errors import MixverError
from mixver.planner import UpgradePlanner
from mixver.versions import Version

console = Console()

_OP_STYLES = {
    MutationOp.INSERT_BEFORE: "green",
    MutationOp.INSERT_AFTER: "green",
    MutationOp.REMOVE: "red",
}


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _fail(error: Exception, verbose: bool) -> None:
    if verbose and isinstance(error, MixverError):
        click.echo(error.format_verbose(), err=True)
    else:
        click.echo(str(error), err=True)
    sys.exit(1)


def _run(config: MixverConfig, seed: int | None, force: bool) -> MutationReport:
    seed = seed if seed is not None else config.seed
    if seed is None:
        seed = random.SystemRandom().randrange(2**63)

    planner = UpgradePlanner(config.parsed_versions(), list(range(1, config.nodes + 1)))
    plan = planner.plan(random.Random(seed))
    engine = MutationEngine(config.build_mutators(), seed=seed)
    return engine.run(plan, force=force)


def _plan_tree(plan: UpgradePlan, highlight: set[int]) -> Tree:
    tree = Tree(f"[bold]mixed-version test plan[/bold] (initial version {plan.initial_version})")
    for step in plan.setup:
        tree.add(f"{escape(step.describe())} [dim]({step.id})[/dim]")
    for stage in plan.upgrades:
        branch = tree.add(f"[cyan]{stage}[/cyan]")
        for step in stage.steps:
            label = f"{escape(step.describe())} [dim]({step.id})[/dim]"
            if step.id in highlight:
                label = f"[yellow]{label}[/yellow]"
            branch.add(label)
    return tree


def _inserted_ids(report: MutationReport) -> set[int]:
    """Ids of final-plan steps that do not line up with a base-plan step."""
    final = report.plan.steps()
    matcher = SequenceMatcher(
        a=[s.describe() for s in report.base_plan],
        b=[s.describe() for s in final],
        autojunk=False,
    )
    kept: set[int] = set()
    for block in matcher.get_matching_blocks():
        kept.update(range(block.b, block.b + block.size))
    return {step.id for j, step in enumerate(final) if j not in kept}


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """mixver - randomized mutations for mixed-version upgrade test plans."""
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
    except MixverError as e:
        _fail(e, verbose)
    if verbose:
        config_obj.verbose = True

    ctx.obj["config"] = config_obj
    ctx.obj["verbose"] = config_obj.verbose

    setup_logging(config_obj.verbose)


@cli.command()
@click.option("--seed", "-s", type=int, default=None, help="Random seed (default: config or random)")
@click.option("--versions", "versions_csv", default=None, help="Comma-separated upgrade path, oldest first")
@click.option("--nodes", "-n", type=click.IntRange(min=1), default=None, help="Number of nodes")
@click.option("--force", is_flag=True, help="Run every mutator, ignoring probabilities")
@click.option("--plain", is_flag=True, help="Print the plan as plain text")
@click.pass_context
def plan(
    ctx: click.Context,
    seed: int | None,
    versions_csv: str | None,
    nodes: int | None,
    force: bool,
    plain: bool,
) -> None:
    """Build a base plan, mutate it and print the result."""
    config: MixverConfig = ctx.obj["config"]
    overrides: dict[str, object] = {}
    if versions_csv:
        overrides["versions"] = [v.strip() for v in versions_csv.split(",") if v.strip()]
    if nodes is not None:
        overrides["nodes"] = nodes

    try:
        if overrides:
            config = config.with_overrides(**overrides)
        report = _run(config, seed, force)
    except MixverError as e:
        _fail(e, ctx.obj["verbose"])

    if plain:
        click.echo(report.plan.pretty_print())
    else:
        console.print(_plan_tree(report.plan, _inserted_ids(report)))

    applied = ", ".join(a.name for a in report.applied) or "none"
    click.echo(f"\nseed: {report.seed} | mutators applied: {applied}")


@cli.command()
@click.option("--seed", "-s", type=int, default=None, help="Random seed (default: config or random)")
@click.option("--force", is_flag=True, help="Run every mutator, ignoring probabilities")
@click.pass_context
def mutations(ctx: click.Context, seed: int | None, force: bool) -> None:
    """Show the mutations each selected mutator generated."""
    config: MixverConfig = ctx.obj["config"]
    try:
        report = _run(config, seed, force)
    except MixverError as e:
        _fail(e, ctx.obj["verbose"])

    if not report.applied:
        click.echo("No mutator was selected for this seed.")
        return

    for applied in report.applied:
        table = Table(title=escape(applied.name))
        table.add_column("#", justify="right")
        table.add_column("Op")
        table.add_column("Anchor")
        table.add_column("Step")
        for j, m in enumerate(applied.mutations, 1):
            style = _OP_STYLES[m.op]
            table.add_row(
                str(j),
                f"[{style}]{m.op.value}[/{style}]",
                f"{m.reference.id}: {escape(m.reference.describe())}",
                escape(m.impl.describe()) if m.impl is not None else "-",
            )
        console.print(table)

    for name in report.skipped:
        console.print(f"[dim]skipped {escape(name)}[/dim]")


@cli.command()
@click.pass_context
def settings(ctx: click.Context) -> None:
    """Validate the configuration and list the mutators it defines."""
    config: MixverConfig = ctx.obj["config"]
    try:
        mutators = config.build_mutators()
        versions = config.parsed_versions()
    except MixverError as e:
        _fail(e, ctx.obj["verbose"])

    console.print(f"[bold]upgrade path:[/bold] {' → '.join(str(v) for v in versions)}")
    console.print(f"[bold]nodes:[/bold] {config.nodes}")

    table = Table(title="Mutators")
    table.add_column("Name")
    table.add_column("Probability", justify="right")
    table.add_column("Values")
    table.add_column("Min version")
    table.add_column("Max changes", justify="right")
    for cs in config.cluster_settings:
        table.add_row(
            escape(cs.name),
            f"{cs.probability:.2f}",
            escape(", ".join(repr(v) for v in cs.values)),
            str(Version.parse(cs.min_version)) if cs.min_version else "-",
            str(cs.max_changes),
        )
    if config.randomize_downgrade_option:
        table.add_row("preserve_downgrade_option_randomizer", f"{config.downgrade_option_probability:.2f}", "-", "-", "-")
    console.print(table)
    click.echo(f"{len(mutators)} mutator(s) configured")

