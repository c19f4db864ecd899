"""
DB Insight - Main Entry Point

Command-line interface and orchestration for the database analysis agent.
"""

import json
import sys
import logging
from typing import Any, Dict, List, Optional, Sequence
from pathlib import Path
import time

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.panel import Panel
from rich.table import Table

from dbinsight import __version__
from dbinsight.config import InsightConfig, create_default_config
from dbinsight.core.connection import DatabaseConnectionManager
from dbinsight.core.models import (
    AnalysisResult,
    GraphLayout,
    HealthReport,
    HealthStatus,
    Schema,
    StatisticsResult,
)
from dbinsight.core.pipeline import analyze as analyze_table, introspect, layout, score
from dbinsight.core.statistics_engine import StatisticsEngine, format_number
from dbinsight.core.summary import DatabaseSummary, build_database_summary
from dbinsight.demo.sample_db import create_sample_database
from dbinsight.inference.assistant import AssistantError, DatabaseAssistant, OpenAIDatabaseAssistant

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console()

STATUS_STYLES = {
    HealthStatus.SUCCESS: "green",
    HealthStatus.WARNING: "yellow",
    HealthStatus.ERROR: "red",
    HealthStatus.INFO: "blue",
}


class InsightAgent:
    """
    Main orchestrator for the DB Insight analysis agent.

    This class coordinates all modules to:
    1. Connect to the database
    2. Introspect the schema
    3. Profile every column
    4. Score database health
    5. Lay out the schema graph
    """

    def __init__(self, config: InsightConfig, assistant: Optional[DatabaseAssistant] = None):
        """
        Initialize the agent.

        Args:
            config: Complete configuration object
            assistant: Chat assistant; an OpenAI-backed one is built on first use
        """
        self.config = config
        self.assistant = assistant
        self.conn_manager: Optional[DatabaseConnectionManager] = None
        self.schema: Optional[Schema] = None

    def run(self, show_progress: bool = True) -> AnalysisResult:
        """
        Execute the complete analysis pass.

        Args:
            show_progress: Render a progress display on the console

        Returns:
            Analysis result for the whole database
        """
        start_time = time.time()

        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            disable=not show_progress,
        ) as progress:

            task1 = progress.add_task("Connecting to database...", total=1)
            self._connect()
            progress.update(task1, completed=1)

            task2 = progress.add_task("Reading database schema...", total=1)
            schema = self.introspect()
            progress.update(task2, completed=1)

            task3 = progress.add_task("Profiling columns...", total=len(schema) or 1)
            engine = StatisticsEngine(self.conn_manager, self.config)
            statistics = []
            for table in schema:
                statistics.append(engine.profile_table(table))
                progress.advance(task3)
            if not len(schema):
                progress.update(task3, completed=1)

            task4 = progress.add_task("Scoring database health...", total=1)
            health = score(schema, self.config)
            progress.update(task4, completed=1)

            task5 = progress.add_task("Laying out schema graph...", total=1)
            graph = layout(schema, self.config)
            progress.update(task5, completed=1)

        logger.info(f"Analysis finished in {time.time() - start_time:.2f}s")
        return AnalysisResult(schema=schema, statistics=statistics, health=health, graph=graph)

    def introspect(self) -> Schema:
        """Read the schema, reusing it within this agent."""
        if self.schema is None:
            self._connect()
            self.schema = introspect(self.conn_manager, self.config)
            logger.info(f"Introspected {len(self.schema)} tables")
        return self.schema

    def statistics(self, table_name: str, columns: Optional[Sequence[str]] = None) -> StatisticsResult:
        """Statistics and insights for columns of one table."""
        schema = self.introspect()
        return analyze_table(self.conn_manager, schema, table_name, columns or None, self.config)

    def histogram(self, table_name: str, column_name: str) -> List[Any]:
        """Value counts of one column, in value order."""
        table = self.introspect().get_table(table_name)
        if table is None:
            return []
        return StatisticsEngine(self.conn_manager, self.config).histogram(table, column_name)

    def health(self) -> HealthReport:
        return score(self.introspect(), self.config)

    def graph(self) -> GraphLayout:
        return layout(self.introspect(), self.config)

    def summary(self) -> DatabaseSummary:
        """Database overview for the chat assistant."""
        schema = self.introspect()
        return build_database_summary(
            self.conn_manager, schema, self.config.analysis.sample_rows
        )

    def ask(self, question: str) -> str:
        """
        Forward a question and the database overview to the assistant.

        Raises:
            AssistantError: If the assistant cannot answer
        """
        if self.assistant is None:
            self.assistant = OpenAIDatabaseAssistant(self.config.llm)
        return self.assistant.answer(question, self.summary().to_text())

    def _connect(self):
        """Establish database connection."""
        if self.conn_manager is not None:
            return
        self.conn_manager = DatabaseConnectionManager(self.config.database)

        if not self.conn_manager.test_connection():
            raise ConnectionError("Failed to connect to database")

        db_info = self.conn_manager.get_database_info()
        logger.info(f"Connected to {db_info.get('type')} {db_info.get('version')} database")

    def close(self):
        """Cleanup resources."""
        if self.conn_manager:
            self.conn_manager.close()
            self.conn_manager = None
        self.schema = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _build_config(db_path: str, config_path: Optional[str], verbose: bool) -> InsightConfig:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if config_path:
        config = InsightConfig.from_yaml(config_path)
        config.database.db_path = db_path
        config.verbose = config.verbose or verbose
        return config
    return create_default_config(db_path=db_path, verbose=verbose)


def _write_json(data: Dict[str, Any], path: str):
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    console.print(f"[green]✓ JSON written to {path}[/green]")


def _fail(e: Exception, verbose: bool):
    console.print(f"\n[bold red]✗ Error: {e}[/bold red]")
    if verbose:
        import traceback
        traceback.print_exc()
    sys.exit(1)


def print_health_report(report: HealthReport):
    """Render the health report on the console."""
    style = "green" if report.overall_score >= 70 else "yellow" if report.overall_score >= 50 else "red"
    console.print(Panel(
        f"[bold {style}]{report.overall_score}/100[/bold {style}]\n{report.rating}",
        title="Database Health Score",
        border_style=style,
    ))

    stats = report.statistics
    overview = Table(title="Database Statistics", show_header=True)
    overview.add_column("Metric", style="cyan")
    overview.add_column("Value", style="green")
    overview.add_row("Tables", str(stats.total_tables))
    overview.add_row("Total Rows", f"{stats.total_rows:,}")
    overview.add_row("Columns", str(stats.total_columns))
    overview.add_row("Indexes", str(stats.total_indexes))
    overview.add_row("Relationships", str(stats.total_relationships))
    overview.add_row("Avg Rows per Table", f"{stats.avg_rows_per_table:,}")
    overview.add_row("Orphaned Tables", str(stats.orphaned_tables))
    console.print(overview)

    if report.checks:
        checks = Table(title="Health Checks", show_header=True)
        checks.add_column("Check", style="cyan")
        checks.add_column("Status")
        checks.add_column("Score", justify="right")
        checks.add_column("Details")
        for check in report.checks:
            status_style = STATUS_STYLES[check.status]
            checks.add_row(
                check.name,
                f"[{status_style}]{check.status.value}[/{status_style}]",
                str(check.score),
                check.details,
            )
        console.print(checks)

    if report.table_scores:
        tables = Table(title="Table Scores", show_header=True)
        tables.add_column("Table", style="cyan")
        tables.add_column("Score", justify="right")
        tables.add_column("Rows", justify="right")
        tables.add_column("Columns", justify="right")
        tables.add_column("Nullable", justify="right")
        tables.add_column("PK")
        tables.add_column("Index")
        tables.add_column("FK")
        for t in report.table_scores:
            tables.add_row(
                t.name,
                str(t.score),
                f"{t.row_count:,}",
                str(t.total_columns),
                str(t.nullable_columns),
                "✓" if t.has_primary_key else "✗",
                "✓" if t.has_index else "✗",
                "✓" if t.has_foreign_key else "✗",
            )
        console.print(tables)

    console.print("[bold]Recommendations[/bold]")
    for rec in report.recommendations:
        console.print(f"  • {rec}")


def print_statistics(result: StatisticsResult):
    """Render column statistics and insights on the console."""
    table = Table(title=f"Statistics: {result.table}", show_header=True)
    for heading in ["Column", "Type", "Rows", "Nulls", "Distinct", "Min", "Max", "Mean", "Std Dev", "Median", "Mode"]:
        table.add_column(heading, style="cyan" if heading == "Column" else None)

    def cell(value: Any) -> str:
        if value is None:
            return "-"
        if isinstance(value, float):
            return format_number(round(value, 4))
        return str(value)

    for col in result.columns:
        table.add_row(
            col.column,
            col.data_type,
            cell(col.row_count),
            cell(col.null_count),
            cell(col.distinct_count),
            cell(col.min),
            cell(col.max),
            cell(col.mean),
            cell(col.std_dev),
            cell(col.median),
            cell(col.mode),
        )
    console.print(table)

    if result.insights:
        console.print("[bold]Insights[/bold]")
        for insight in result.insights:
            console.print(f"  • {insight}")

    if result.correlations:
        console.print("[bold]Correlations[/bold]")
        for corr in result.correlations:
            console.print(
                f"  • {corr.column_a} ↔ {corr.column_b}: {corr.coefficient:.3f} ({corr.strength})"
            )

    if result.value_distribution:
        console.print("[bold]Value Distribution[/bold]")
        for vc in result.value_distribution:
            console.print(f"  {vc.value}: {vc.count}")


# CLI Commands
@click.group()
@click.version_option(version=__version__, prog_name="DB Insight")
def cli():
    """DB Insight - Database Structure and Health Analysis"""
    pass


db_path_argument = click.argument("db_path", type=click.Path(exists=True, dir_okay=False))
config_option = click.option("--config", "-c", "config_path", type=click.Path(exists=True),
                             help="YAML configuration file")
verbose_option = click.option("--verbose", "-v", is_flag=True, help="Verbose output")


@cli.command()
@db_path_argument
@click.option("--json", "json_path", type=click.Path(), help="Write the full result as JSON")
@config_option
@verbose_option
def analyze(db_path, json_path, config_path, verbose):
    """
    Run a full analysis pass and print the health report.

    Examples:

        dbinsight analyze ./data/sample.db

        dbinsight analyze ./data/sample.db --json ./output/result.json
    """
    console.print(Panel(
        "[bold blue]DB Insight[/bold blue]\n"
        "[dim]Database Structure and Health Analysis[/dim]",
        border_style="blue"
    ))

    try:
        config = _build_config(db_path, config_path, verbose)
        with InsightAgent(config) as agent:
            result = agent.run()

        print_health_report(result.health)
        if json_path:
            _write_json(result.to_dict(), json_path)

    except Exception as e:
        _fail(e, verbose)


@cli.command()
@db_path_argument
@click.argument("table")
@click.argument("columns", nargs=-1)
@click.option("--histogram", "histogram_column", help="Also print value counts of this column")
@config_option
@verbose_option
def stats(db_path, table, columns, histogram_column, config_path, verbose):
    """
    Print statistics and insights for columns of TABLE.

    With no COLUMNS every column of the table is analyzed.
    """
    try:
        config = _build_config(db_path, config_path, verbose)
        with InsightAgent(config) as agent:
            if agent.introspect().get_table(table) is None:
                raise click.BadParameter(f"Table '{table}' not found", param_hint="TABLE")
            print_statistics(agent.statistics(table, list(columns)))

            if histogram_column:
                console.print(f"[bold]Histogram of {histogram_column}[/bold]")
                for vc in agent.histogram(table, histogram_column):
                    console.print(f"  {vc.value}: {vc.count}")

    except Exception as e:
        _fail(e, verbose)


@cli.command()
@db_path_argument
@click.option("--json", "json_path", type=click.Path(), help="Write the layout as JSON")
@config_option
@verbose_option
def graph(db_path, json_path, config_path, verbose):
    """Print the schema graph layout."""
    try:
        config = _build_config(db_path, config_path, verbose)
        with InsightAgent(config) as agent:
            result = agent.graph()

        nodes = Table(title="Schema Graph Nodes", show_header=True)
        for heading in ["Table", "X", "Y", "Width", "Height", "Color"]:
            nodes.add_column(heading, style="cyan" if heading == "Table" else None)
        for node in result.nodes:
            nodes.add_row(
                node.table,
                f"{node.x:.1f}",
                f"{node.y:.1f}",
                str(node.width),
                str(node.height),
                f"[{node.color}]{node.color}[/{node.color}]",
            )
        console.print(nodes)

        if result.edges:
            console.print("[bold]Edges[/bold]")
            for edge in result.edges:
                console.print(f"  {edge.from_table} → {edge.to_table} ({edge.label})")

        if json_path:
            _write_json(result.to_dict(), json_path)

    except Exception as e:
        _fail(e, verbose)


@cli.command()
@db_path_argument
@config_option
@verbose_option
def summary(db_path, config_path, verbose):
    """Print the database overview given to the assistant."""
    try:
        config = _build_config(db_path, config_path, verbose)
        with InsightAgent(config) as agent:
            console.print(agent.summary().to_text(), markup=False, highlight=False)
    except Exception as e:
        _fail(e, verbose)


@cli.command()
@db_path_argument
@click.argument("question")
@click.option("--model", "-m", help="LLM model to use")
@config_option
@verbose_option
def ask(db_path, question, model, config_path, verbose):
    """Ask the AI assistant a QUESTION about the database."""
    try:
        config = _build_config(db_path, config_path, verbose)
        if model:
            config.llm.model = model
        with InsightAgent(config) as agent:
            answer = agent.ask(question)
        console.print(Panel(answer, title="Assistant", border_style="green"))
    except AssistantError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        sys.exit(1)
    except Exception as e:
        _fail(e, verbose)


@cli.command()
@db_path_argument
def test_connection(db_path):
    """Test database connection."""
    try:
        config = create_default_config(db_path=db_path)
        conn_manager = DatabaseConnectionManager(config.database)

        if conn_manager.test_connection():
            console.print("[bold green]✓ Connection successful![/bold green]")

            db_info = conn_manager.get_database_info()
            console.print(f"  Database Type: {db_info.get('type')}")
            console.print(f"  Version: {db_info.get('version')}")

            tables = introspect(conn_manager, config).table_names
            console.print(f"  Tables Found: {len(tables)}")
        else:
            console.print("[bold red]✗ Connection failed![/bold red]")

        conn_manager.close()

    except Exception as e:
        console.print(f"[bold red]✗ Error: {e}[/bold red]")


@cli.command()
@click.option("--path", "-p", "db_path", default="./data/sample.db", type=click.Path(),
              help="Where to create the sample database")
@click.option("--seed", default=42, type=int, help="Seed for the generated data")
@verbose_option
def demo(db_path, seed, verbose):
    """Create the sample e-commerce database and analyze it."""
    try:
        create_sample_database(db_path, seed=seed)
        console.print(f"[green]✓ Sample database created at {db_path}[/green]")

        config = _build_config(db_path, None, verbose)
        with InsightAgent(config) as agent:
            result = agent.run()
        print_health_report(result.health)

    except Exception as e:
        _fail(e, verbose)


@cli.command()
def version():
    """Show version information."""
    console.print(Panel(
        f"[bold]DB Insight[/bold] v{__version__}\n\n"
        "Structure, statistics and health analysis for SQLite databases.\n\n"
        "Components:\n"
        "  • Schema Introspector\n"
        "  • Statistics Engine\n"
        "  • Health Scorer\n"
        "  • Graph Layout Engine\n"
        "  • Database Assistant",
        title="About",
        border_style="blue"
    ))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
