"""Command line interface: `felt equity|evaluate|texture|solve`."""

import argparse
import logging
import sys
from typing import Optional

import numpy as np
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich import box

from felt.game.board import analyze_board_texture, find_danger_cards, find_draws, find_nuts
from felt.game.cards import SUIT_NAMES, parse_cards
from felt.game.equity import EquityCalculator
from felt.game.evaluator import evaluate_hand, get_hand_percentile
from felt.game.ranges import HandRange, get_range, parse_range_string, range_percentage
from felt.game.tree import build_game_tree
from felt.solver.cfr import CFRSolver, SolverConfig, get_recommendation

logger = logging.getLogger("felt.cli")

DEFAULT_OOP_RANGE = "BB_call_vs_BTN"
DEFAULT_IP_RANGE = "BTN_open_100bb"


def _resolve_range(value: str) -> HandRange:
    """A preset key such as 'BTN_open_100bb', or a range string."""
    preset = get_range(value)
    if preset is not None:
        return preset
    return parse_range_string(value)


def _parse_sizes(value: str) -> list[float]:
    try:
        return [float(x) for x in value.split(",") if x.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid sizes: {value!r}") from None


def _rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed)


def cmd_equity(args, console: Console) -> int:
    calc = EquityCalculator(_rng(args.seed))
    hero = parse_cards(args.hero)
    board = parse_cards(args.board or "")

    if args.range:
        villain_range = _resolve_range(args.range)
        result = calc.calculate_equity_vs_range(hero, board, villain_range, args.sims_per_combo)
        against = f"range ({range_percentage(villain_range):.1f}% of hands)"
    else:
        villain = parse_cards(args.villain) if args.villain else None
        result = calc.calculate_equity(hero, board, args.opponents, args.sims, villain)
        against = " ".join(str(c) for c in villain) if villain else f"{args.opponents} random hand(s)"

    table = Table(title="Equity", show_header=False, box=box.SIMPLE)
    table.add_column("Stat", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Hero", " ".join(str(c) for c in hero))
    table.add_row("Board", " ".join(str(c) for c in board) or "-")
    table.add_row("Against", against)
    table.add_row("Win", f"[green]{result.win:.1f}%[/]")
    table.add_row("Tie", f"{result.tie:.1f}%")
    table.add_row("Lose", f"[red]{result.lose:.1f}%[/]")
    table.add_row("Samples", str(result.samples))
    console.print(table)
    return 0


def cmd_evaluate(args, console: Console) -> int:
    hand = evaluate_hand(parse_cards(args.cards))
    console.print(f"[bold]{hand.description}[/] ({hand.ranking.label})")
    console.print(f"Best five: {' '.join(str(c) for c in hand.cards)}")
    console.print(f"Percentile: ~{get_hand_percentile(hand):.1f}")
    return 0


def cmd_texture(args, console: Console) -> int:
    board = parse_cards(args.board)
    texture = analyze_board_texture(board)

    table = Table(title="Board Texture", show_header=False, box=box.SIMPLE)
    table.add_column("Property", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Texture", texture.texture)
    table.add_row("Danger", texture.danger_level)
    table.add_row("Paired", "yes" if texture.is_paired else "no")
    suits = "monotone" if texture.is_monotone else "two-tone" if texture.is_two_tone else (
        "rainbow" if texture.is_rainbow else "-"
    )
    table.add_row("Suits", suits)
    if texture.flush_suit is not None:
        table.add_row("Flush suit", SUIT_NAMES[texture.flush_suit])
    table.add_row("Connected", f"{'yes' if texture.is_connected else 'no'} (gaps {texture.gaps})")
    table.add_row("OESD possible", "yes" if texture.has_oesd else "no")
    table.add_row("Gutshot possible", "yes" if texture.has_gutshot else "no")
    console.print(table)

    nuts = find_nuts(board)
    console.print(Panel(
        "\n".join(f"{n.ranking}. {n.description} [dim]{n.hand}[/]" for n in nuts),
        title="[bold]Nut hands[/]",
        border_style="green",
    ))

    hole = parse_cards(args.hole) if args.hole else None
    dangers = find_danger_cards(board, hole)
    if dangers:
        console.print(Panel(
            "\n".join(f"[{_severity_style(d.severity)}]{d}[/]" for d in dangers),
            title="[bold]Danger cards[/]",
            border_style="red",
        ))

    if hole:
        draws = find_draws(hole, board)
        draw_table = Table(title="Draws", box=box.SIMPLE)
        draw_table.add_column("Type", style="cyan")
        draw_table.add_column("Outs", justify="right")
        draw_table.add_column("Hit by river", justify="right")
        for draw in draws:
            draw_table.add_row(draw.type, str(draw.outs), f"{draw.probability:.1f}%")
        if draws:
            console.print(draw_table)
        else:
            console.print("[dim]No draws[/]")
    return 0


def _severity_style(severity: str) -> str:
    return {"high": "red", "medium": "yellow"}.get(severity, "dim")


def cmd_solve(args, console: Console) -> int:
    config = SolverConfig(
        stack_size=args.stack,
        starting_pot=args.pot,
        bet_sizes=args.bet_sizes,
        raise_sizes=args.raise_sizes,
        max_raises=args.max_raises,
        iterations=args.iterations,
        board=parse_cards(args.board),
        ranges=(_resolve_range(args.oop_range), _resolve_range(args.ip_range)),
        max_hands=args.max_hands,
    )
    config.validate()

    tree = build_game_tree(config)
    node_counts = tree.count_nodes()
    console.print(f"[bold]Board:[/] {' '.join(str(c) for c in config.board)}")
    console.print(f"[bold]Pot:[/] {config.starting_pot}  [bold]Stack:[/] {config.stack_size}")
    console.print(f"Game tree: {node_counts['total']} nodes ({node_counts['terminal']} terminal)")

    solver = CFRSolver(config, tree=tree, rng=_rng(args.seed))
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Running CFR ({config.iterations} iterations)...")

        def callback(iteration, exploitability):
            progress.update(task, description=f"CFR iteration {iteration}, exploit={exploitability:.4f}")

        result = solver.solve(callback=callback)

    console.print(
        f"[green]Done[/] in {result.solving_time:.1f}s, "
        f"{len(result.strategies)} info sets, exploitability {result.exploitability:.4f}"
    )
    console.print(f"EV OOP {result.ev_oop:.2f}  EV IP {result.ev_ip:.2f}")

    # First decision for each OOP hand
    table = Table(title="OOP first action", box=box.SIMPLE)
    table.add_column("Hand", style="cyan")
    table.add_column("Strategy")
    for hand in sorted(config.ranges[0], key=lambda h: -config.ranges[0][h]):
        recs = get_recommendation(
            hand, config.board, "", 0, result.strategies, result.action_values
        )
        if recs:
            table.add_row(hand, "  ".join(
                f"{r.action} {r.probability:.0%}" + (f" ({r.ev:+.2f})" if r.ev is not None else "")
                for r in recs
            ))
    console.print(table)

    if args.output:
        result.save(args.output)
        console.print(f"\n[bold]Result saved to:[/] {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="felt",
        description="Texas Hold'em equity, board analysis and CFR solving",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose (debug) logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    equity = sub.add_parser("equity", help="Monte Carlo equity")
    equity.add_argument("hero", help="Hero hole cards (e.g., 'AsKs')")
    equity.add_argument("-b", "--board", help="Board cards (e.g., 'Kh7s2c')")
    equity.add_argument("--villain", help="Known villain hole cards")
    equity.add_argument("-n", "--opponents", type=int, default=1, help="Number of opponents (default: 1)")
    equity.add_argument("--sims", type=int, default=10000, help="Simulations (default: 10000)")
    equity.add_argument("-r", "--range", help="Villain range string or preset key")
    equity.add_argument(
        "--sims-per-combo", type=int, default=100,
        help="Simulations per range combo (default: 100)",
    )
    equity.add_argument("--seed", type=int, help="Random seed")
    equity.set_defaults(func=cmd_equity)

    evaluate = sub.add_parser("evaluate", help="Evaluate a 5-7 card hand")
    evaluate.add_argument("cards", help="Cards (e.g., 'AhKhQhJhTh')")
    evaluate.set_defaults(func=cmd_evaluate)

    texture = sub.add_parser("texture", help="Board texture, nuts, danger cards and draws")
    texture.add_argument("board", help="Board cards (e.g., 'Kh7s2c')")
    texture.add_argument("--hole", help="Hero hole cards, for draws")
    texture.set_defaults(func=cmd_texture)

    solve = sub.add_parser("solve", help="Solve a heads-up spot with CFR")
    solve.add_argument("board", help="Board cards (e.g., 'AsKhTd')")
    solve.add_argument("-p", "--pot", type=float, default=10.0, help="Starting pot (default: 10)")
    solve.add_argument("-s", "--stack", type=float, default=100.0, help="Effective stack (default: 100)")
    solve.add_argument(
        "--bet-sizes", type=_parse_sizes, default=[0.66],
        help="Bet sizes as pot fractions (default: 0.66)",
    )
    solve.add_argument(
        "--raise-sizes", type=_parse_sizes, default=None,
        help="Raise sizes as pot fractions (default: bet sizes)",
    )
    solve.add_argument("-i", "--iterations", type=int, default=100, help="CFR iterations (default: 100)")
    solve.add_argument("--max-raises", type=int, default=2, help="Raises per street (default: 2)")
    solve.add_argument("--max-hands", type=int, default=10, help="Hands sampled per range (default: 10)")
    solve.add_argument(
        "--oop-range", default=DEFAULT_OOP_RANGE,
        help=f"OOP range string or preset key (default: {DEFAULT_OOP_RANGE})",
    )
    solve.add_argument(
        "--ip-range", default=DEFAULT_IP_RANGE,
        help=f"IP range string or preset key (default: {DEFAULT_IP_RANGE})",
    )
    solve.add_argument("--seed", type=int, help="Random seed")
    solve.add_argument("-o", "--output", help="Save result to a JSON file")
    solve.set_defaults(func=cmd_solve)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    logger.debug("Running %s", args.command)
    try:
        return args.func(args, console)
    except ValueError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
