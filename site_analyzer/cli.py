"""Typer CLI application for Site Analyzer.

Provides commands to analyse a website, browse the analysis history,
manage recurring report schedules and check system health.
"""

import asyncio
import json
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from site_analyzer.utils.helpers import normalize_url
from site_analyzer.utils.validators import REPORT_TYPES, validate_report_type, validate_url

console = Console()
app = typer.Typer(
    name="site-analyzer",
    help="Site Analyzer -- SEO, performance, content and security analysis for websites.",
    add_completion=False,
    no_args_is_help=True,
)

CONFIG_OPTION = typer.Option("config/settings.yaml", "--config", "-c", help="Path to settings.yaml.")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context."""
    return asyncio.run(coro)


def _get_app(config: str):
    """Lazy-import, initialise and return the application."""
    from site_analyzer.app import SiteAnalyzerApp
    application = SiteAnalyzerApp(config_path=config)
    application.initialize()
    return application


def _fail(message: str) -> None:
    console.print(f"[red]✘[/red] {message}")
    raise typer.Exit(code=1)


def _score_cell(value) -> str:
    if value is None or value == "N/A":
        return "[dim]N/A[/dim]"
    if value >= 80:
        return f"[green]{value}[/green]"
    if value >= 50:
        return f"[yellow]{value}[/yellow]"
    return f"[red]{value}[/red]"


def _print_report(report) -> None:
    """Pretty-print scores, insights and recommendations using Rich."""
    scores = report.scores
    table = Table(title="Scores: " + report.url, show_header=True, header_style="bold magenta")
    table.add_column("Bereich", style="cyan", min_width=15)
    table.add_column("Score", min_width=8)
    table.add_row("SEO", _score_cell(scores.seo))
    table.add_row("Performance", _score_cell(scores.performance))
    table.add_row("Sicherheit", _score_cell(scores.security))
    table.add_row("Cookies", _score_cell(scores.cookies))
    console.print(table)
    console.print(f"Statuscode: {report.status_code}   Ladezeit: {report.load_time}")

    console.print("\n[bold]Erkenntnisse[/bold]")
    for insight in report.insights:
        console.print(f"  [{insight.priority.value}] {insight.category.value}: {insight.text}")

    console.print("\n[bold]Empfehlungen[/bold]")
    for rec in report.recommendations:
        console.print(f"  [{rec.priority.value}] {rec.text}")
        for detail in rec.details:
            console.print(f"      - {detail}")


def _file_deliverer(report_dir: str):
    """Delivery callback that writes the rendered report into *report_dir*."""
    from site_analyzer.modules.reporting import ReportRenderer
    renderer = ReportRenderer()

    def _deliver(schedule, report, text) -> None:
        path = renderer.write_report(report, report_dir, report_type=schedule["reportType"])
        logging.getLogger(__name__).info(
            "Report for schedule %s written to %s (recipients: %s)",
            schedule["id"], path, ", ".join(schedule["recipients"]),
        )

    return _deliver


# ------------------------------------------------------------------
# analyze
# ------------------------------------------------------------------
@app.command()
def analyze(
    url: str = typer.Argument(..., help="URL to analyse (e.g. https://example.com)."),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON."),
    save: bool = typer.Option(True, "--save/--no-save", help="Store the result in the history database."),
    report_type: Optional[str] = typer.Option(
        None, "--report-type", "-r", help="Also print a text report: " + ", ".join(REPORT_TYPES) + "."
    ),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Write the text report to this directory."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Run a complete SEO, performance, content and security analysis."""
    _setup_logging(verbose)
    url = normalize_url(url)
    ok, message = validate_url(url)
    if not ok:
        _fail(message)
    if report_type is not None:
        ok, message = validate_report_type(report_type)
        if not ok:
            _fail(message)

    application = _get_app(config)
    pipeline = application.pipeline()

    async def _run():
        result = await pipeline.analyze(url)
        analysis_id = None
        if result.success and save:
            from site_analyzer.modules.history.storage import save_report
            analysis_id = await save_report(application.storage(), result.report)
        return result, analysis_id

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        progress.add_task(description="Analysing " + url + "...", total=None)
        result, analysis_id = _run_async(_run())

    if not result.success:
        _fail(f"{result.error}: {result.details}")

    if as_json:
        console.print_json(json.dumps(result.report.to_dict(), ensure_ascii=False))
    else:
        _print_report(result.report)

    if report_type is not None or output_dir is not None:
        from site_analyzer.modules.reporting import ReportRenderer
        renderer = ReportRenderer()
        kind = report_type or "full"
        if output_dir is not None:
            path = renderer.write_report(result.report, output_dir, report_type=kind)
            console.print(f"[green]✔[/green] Report written to {path}")
        else:
            console.print(renderer.render_text(result.report, report_type=kind), markup=False)

    if analysis_id is not None:
        console.print(f"[green]✔[/green] Analysis saved (id {analysis_id}).")


# ------------------------------------------------------------------
# recommend
# ------------------------------------------------------------------
@app.command()
def recommend(
    url: str = typer.Argument(..., help="URL to analyse."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Analyse a URL and ask the LLM for additional recommendations."""
    _setup_logging(verbose)
    url = normalize_url(url)
    ok, message = validate_url(url)
    if not ok:
        _fail(message)
    application = _get_app(config)

    async def _run():
        from site_analyzer.modules.analysis.ai_recommendations import generate_ai_recommendations
        result = await application.pipeline().analyze(url)
        if not result.success:
            return result, None
        client = application.llm_client()
        ai = await generate_ai_recommendations(
            result.report, client if client.is_configured else None
        )
        return result, ai

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        progress.add_task(description="Generating AI recommendations...", total=None)
        result, ai = _run_async(_run())

    if ai is None:
        _fail(f"{result.error}: {result.details}")
    if ai.error:
        console.print(f"[yellow]⚠[/yellow] {ai.error}")
    for rec in ai.recommendations:
        console.print(Panel(
            f"{rec.description or rec.text}\n\n[bold]Vorteile:[/bold] {rec.benefits or '-'}",
            title=f"[{rec.priority.value}] {rec.text}",
            subtitle=rec.category.value,
        ))
    usage = application.llm_client().get_usage_stats()
    if usage["requests"]:
        console.print(f"[dim]{usage['requests']} OpenAI request(s), ${usage['cost_usd']:.5f}[/dim]")


# ------------------------------------------------------------------
# history
# ------------------------------------------------------------------
@app.command()
def history(
    url: str = typer.Argument(..., help="URL whose analysis history to show."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show all stored analyses of a URL in chronological order."""
    _setup_logging(verbose)
    application = _get_app(config)
    url = normalize_url(url)
    data = _run_async(application.storage().query_history(url))
    if data is None:
        _fail("Keine Analysen für " + url + " gefunden.")

    table = Table(title="History: " + url, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Datum", min_width=20)
    table.add_column("SEO")
    table.add_column("Performance")
    table.add_column("Sicherheit")
    for entry in data["analyses"]:
        scores = entry["scores"]
        table.add_row(
            str(entry["id"]),
            entry["date"] or "",
            _score_cell(scores["seo"]),
            _score_cell(scores["performance"]),
            _score_cell(scores["security"]),
        )
    console.print(table)


# ------------------------------------------------------------------
# websites
# ------------------------------------------------------------------
@app.command()
def websites(
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List every analysed website with its latest scores."""
    _setup_logging(verbose)
    application = _get_app(config)
    rows = _run_async(application.storage().list_websites())
    if not rows:
        console.print("[yellow]⚠[/yellow] Noch keine Websites analysiert.")
        return

    table = Table(title="Websites", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("URL", max_width=50)
    table.add_column("Analysen")
    table.add_column("Letzte Analyse", min_width=20)
    table.add_column("SEO")
    table.add_column("Performance")
    table.add_column("Sicherheit")
    for site in rows:
        latest = site["latestScores"] or {}
        table.add_row(
            str(site["id"]),
            site["url"],
            str(site["analysisCount"]),
            site["lastAnalysis"] or "",
            _score_cell(latest.get("seo")),
            _score_cell(latest.get("performance")),
            _score_cell(latest.get("security")),
        )
    console.print(table)


# ------------------------------------------------------------------
# details
# ------------------------------------------------------------------
@app.command()
def details(
    analysis_id: int = typer.Argument(..., help="Analysis id (see `history`)."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the stored detail rows of one analysis as JSON."""
    _setup_logging(verbose)
    application = _get_app(config)
    data = _run_async(application.storage().get_analysis_details(analysis_id))
    if data is None:
        _fail(f"Analyse {analysis_id} nicht gefunden.")
    data = {key: value for key, value in data.items() if key != "report"}
    console.print_json(json.dumps(data, ensure_ascii=False))


# ------------------------------------------------------------------
# schedules
# ------------------------------------------------------------------
@app.command("schedule-add")
def schedule_add(
    url: str = typer.Argument(..., help="URL to report on."),
    interval: str = typer.Option("weekly", "--interval", "-i", help="hourly, daily, weekly, biweekly, monthly or a cron expression."),
    recipients: list[str] = typer.Option(..., "--recipient", "-e", help="Recipient e-mail (repeatable)."),
    report_type: str = typer.Option("full", "--report-type", "-r", help=", ".join(REPORT_TYPES) + "."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Create a recurring report schedule."""
    _setup_logging(verbose)
    from site_analyzer.modules.history.schedules import ScheduleError
    from site_analyzer.scheduler import build_trigger, interval_to_cron

    application = _get_app(config)
    url = normalize_url(url)
    cron = interval_to_cron(interval)
    try:
        build_trigger(cron)
        schedule = application.schedule_repository().create_schedule(url, cron, recipients, report_type)
    except ScheduleError as exc:
        _fail(str(exc))
    console.print(
        f"[green]✔[/green] Schedule {schedule['id']} created: {schedule['url']} [{schedule['cronExpression']}]"
    )


@app.command("schedule-list")
def schedule_list(
    active_only: bool = typer.Option(False, "--active", help="Only show active schedules."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List report schedules."""
    _setup_logging(verbose)
    application = _get_app(config)
    schedules = application.schedule_repository().list_schedules(active_only=active_only)
    if not schedules:
        console.print("[yellow]⚠[/yellow] Keine Zeitpläne vorhanden.")
        return

    table = Table(title="Report Schedules", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("URL", max_width=45)
    table.add_column("Cron")
    table.add_column("Typ")
    table.add_column("Empfänger", max_width=40)
    table.add_column("Aktiv")
    for item in schedules:
        table.add_row(
            str(item["id"]),
            item["url"] or "",
            item["cronExpression"],
            item["reportType"],
            ", ".join(item["recipients"]),
            "[green]ja[/green]" if item["isActive"] else "[dim]nein[/dim]",
        )
    console.print(table)


@app.command("schedule-remove")
def schedule_remove(
    schedule_id: int = typer.Argument(..., help="Schedule id."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Delete a report schedule."""
    _setup_logging(verbose)
    application = _get_app(config)
    if not application.schedule_repository().delete_schedule(schedule_id):
        _fail(f"Zeitplan {schedule_id} nicht gefunden.")
    console.print(f"[green]✔[/green] Schedule {schedule_id} deleted.")


@app.command("schedule-run")
def schedule_run(
    schedule_id: Optional[int] = typer.Argument(None, help="Run this schedule once; omit to start the scheduler."),
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Run one schedule now, or keep the scheduler running in the foreground."""
    _setup_logging(verbose)
    application = _get_app(config)
    report_dir = application.config.get("app", {}).get("report_dir", "data/reports")
    scheduler = application.scheduler(deliver=_file_deliverer(report_dir))

    if schedule_id is not None:
        if not scheduler.execute_schedule(schedule_id):
            _fail(f"Zeitplan {schedule_id} fehlgeschlagen.")
        console.print(f"[green]✔[/green] Schedule {schedule_id} executed.")
        return

    count = scheduler.start()
    console.print(f"[green]✔[/green] Scheduler running with {count} schedules. Press Ctrl+C to stop.")
    try:
        _run_async(asyncio.Event().wait())
    except KeyboardInterrupt:
        console.print("Stopping scheduler...")
    finally:
        application.shutdown()


# ------------------------------------------------------------------
# status
# ------------------------------------------------------------------
@app.command()
def status(
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show project status: database, scheduler, analysis sources and configuration."""
    _setup_logging(verbose)
    console.print(Panel("[bold cyan]System Status[/bold cyan]"))

    table = Table(title="Component Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", min_width=15)
    table.add_column("Status", min_width=10)
    table.add_column("Details", max_width=60)

    icons = {
        "ok": "[green]✔ OK[/green]",
        "warning": "[yellow]⚠ Warning[/yellow]",
        "error": "[red]✘ Error[/red]",
    }
    application = _get_app(config)
    for component, info in application.get_status().items():
        table.add_row(component.title(), icons.get(info["status"], info["status"]), info["details"])
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
