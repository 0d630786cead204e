"""Terminal entry point for Interview Desk — serve the API or peek at the schedule."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from interview_desk.calendar import WEEK_VISIBLE_PER_CELL
from interview_desk.errors import DeskError
from interview_desk.state import DeskState

custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})

console = Console(theme=custom_theme)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the interview-desk CLI."""
    parser = argparse.ArgumentParser(prog="interview-desk", description="HR interview dashboard")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    parser.add_argument("--email", default=None, help="Sign in as this HR user before reading")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    week = sub.add_parser("week", help="Print the booking grid for a week")
    week.add_argument("--date", default=None, help="Any day of the week, yyyy-MM-dd")

    sub.add_parser("stats", help="Print the dashboard cards")

    args = parser.parse_args(argv)

    if args.command == "serve":
        _serve(args.host, args.port)
        return

    try:
        asyncio.run(_run(args))
    except DeskError as e:
        console.print(f"[error]{e.kind.capitalize()} error: {e.message}[/error]")
        if e.retryable:
            console.print("[warning]The request can be retried.[/warning]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[info]Goodbye![/info]")


def _serve(host: str, port: int) -> None:
    import uvicorn

    from interview_desk.config import load_config

    cfg = load_config()
    logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("interview_desk.main:app", host=host, port=port, log_level=cfg.log_level.lower())


async def _run(args: argparse.Namespace) -> None:
    desk = DeskState.from_env(args.env_file).require()
    logging.basicConfig(level=desk.cfg.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        if args.email:
            password = console.input("[bold green]Password>[/bold green] ", password=True)
            await desk.session.sign_in(args.email, password)
        if args.command == "week":
            await _print_week(desk, args.date)
        elif args.command == "stats":
            await _print_stats(desk)
    finally:
        await desk.aclose()


async def _print_week(desk: DeskState, route_date: str | None) -> None:
    view = await desk.booking.week_view(route_date, desk.today())

    table = Table(title=view["label"], show_lines=True)
    table.add_column("Time", style="bold")
    for day in view["days"]:
        header = f"{day['weekday']} {day['date'][-2:]}"
        table.add_column(f"[red]{header}[/red]" if day["blocked"] else header)

    for row in view["rows"]:
        cells = []
        for cell in row["cells"]:
            if cell["blocked"]:
                cells.append("[dim]blocked[/dim]")
                continue
            lines = [f"{a['time']} {a['candidate_name']}" for a in cell["appointments"][:WEEK_VISIBLE_PER_CELL]]
            if cell["overflow"]:
                lines.append(f"[info]+{cell['overflow']} more[/info]")
            cells.append("\n".join(lines))
        table.add_row(row["slot"], *cells)

    console.print(table)


async def _print_stats(desk: DeskState) -> None:
    stats = await desk.dashboard.stats(desk.now())
    console.print(Panel(
        f"Total candidates:      [bold]{stats.total_candidates}[/bold]\n"
        f"Scheduled interviews:  [bold]{stats.scheduled_interviews}[/bold]\n"
        f"Completed interviews:  [bold]{stats.completed_interviews}[/bold]\n"
        f"Pending evaluations:   [bold]{stats.pending_evaluations}[/bold]",
        title="Dashboard",
        border_style="cyan",
    ))

    if stats.by_status:
        table = Table(title="Candidates by status")
        table.add_column("Status")
        table.add_column("Count", justify="right")
        for status, count in sorted(stats.by_status.items(), key=lambda kv: -kv[1]):
            table.add_row(status or "(none)", str(count))
        console.print(table)

    if stats.monthly_trend:
        trend = Table(title="Upcoming interviews by month")
        trend.add_column("Month")
        trend.add_column("Interviews", justify="right")
        for point in stats.monthly_trend:
            trend.add_row(point["month"], str(point["count"]))
        console.print(trend)


if __name__ == "__main__":
    main()
