"""
Five-Element Compatibility Engine — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Open the database and build a ``FengShuiEngine``.
  4. Execute the action.
  5. Report result to stdout; engine errors become ``[ERROR]`` + exit code 1.

Install and run::

    pip install -e .
    fengshui-engine --help
    fengshui-engine init-db
    fengshui-engine seed-rules
    fengshui-engine classify 1990
    fengshui-engine analyze 1990 --gender female --focus career
    fengshui-engine compatibility Wood Fire
    fengshui-engine import-catalog --file data/catalog.json
    fengshui-engine rank 1990 --category bracelet --limit 10
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer

app = typer.Typer(
    name="fengshui-engine",
    help="Five-element classification, compatibility and product ranking.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from fengshui_engine.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from fengshui_engine.utils.logging import configure_logging
    configure_logging(config.logging)


@contextmanager
def _open_engine(config, db_path: Optional[str] = None) -> Iterator:
    """Yield a ``FengShuiEngine`` bound to the configured database.

    Engine errors are reported as ``[ERROR]`` lines and turned into exit 1.
    """
    from fengshui_engine.db.connection import get_connection
    from fengshui_engine.db.schema import apply_schema
    from fengshui_engine.engine import FengShuiEngine
    from fengshui_engine.errors import EngineError, ValidationError

    try:
        with get_connection(
            db_path or config.database.db_path,
            wal_mode=config.database.wal_mode,
            busy_timeout_ms=config.database.busy_timeout_ms,
        ) as conn:
            apply_schema(conn)
            yield FengShuiEngine(conn, config)
    except ValidationError as exc:
        typer.echo("[ERROR] Validation failed:", err=True)
        for msg in exc.errors:
            typer.echo(f"  - {msg}", err=True)
        raise typer.Exit(code=1)
    except EngineError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _echo_list(label: str, values) -> None:
    typer.echo(f"  {label:<20}{', '.join(str(v) for v in values) or '-'}")


# ── Setup commands ────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Initialize the SQLite database and apply the schema.

    Safe to run multiple times — all DDL uses IF NOT EXISTS.
    """
    from fengshui_engine.db.connection import get_connection
    from fengshui_engine.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False, "--full", help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values."""
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  Rules seed file:  {config.data.rules_seed_file}")
    typer.echo(f"  Output dir:       {config.data.output_dir}")
    typer.echo(
        f"  Ranking limit:    {config.ranking.default_limit} "
        f"(max {config.ranking.max_limit})"
    )
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("seed-rules")
def seed_rules(
    rules_file: Optional[str] = typer.Option(
        None, "--file", "-f",
        help="Rules JSON file. Defaults to config.data.rules_seed_file.",
    ),
    export_parquet: bool = typer.Option(
        False, "--export-parquet",
        help="Also export the active rules to <output_dir>/element_rules.parquet.",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Insert the five default element rules if the rule table is empty."""
    from fengshui_engine.rules.seed_loader import export_rules_parquet

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    seed_path = Path(rules_file) if rules_file else Path(config.data.rules_seed_file)
    if not seed_path.exists():
        typer.echo(f"[ERROR] Rules file not found: {seed_path}", err=True)
        raise typer.Exit(code=1)

    with _open_engine(config, db_path) as engine:
        result = engine.seed_default_rules(seed_path)
        if result.skipped:
            typer.echo("  Rules already present; nothing inserted.")
        else:
            typer.echo(f"  Inserted {result.count} rule(s) from {seed_path}.")

        if export_parquet:
            out = export_rules_parquet(engine.rules.conn, Path(config.data.output_dir))
            typer.echo(f"  Parquet written: {out}")

    typer.echo("[OK] Rules seeded.")


# ── Rule administration ───────────────────────────────────────────────────────

@app.command("list-rules")
def list_rules(
    include_deleted: bool = typer.Option(
        False, "--all", help="Include soft-deleted rule records.",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """List element rule records."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_engine(config, db_path) as engine:
        rules = engine.rules.list_all(include_deleted=include_deleted)

    if not rules:
        typer.echo("No rules found. Run 'fengshui-engine seed-rules' first.")
        return

    typer.echo(f"{'ID':>4}  {'ELEMENT':<8}{'STATUS':<9}{'YEARS':>6}  BENEFICIAL COLOURS")
    for rule in rules:
        typer.echo(
            f"{rule.rule_id:>4}  {rule.element.value:<8}{rule.status.value:<9}"
            f"{len(rule.birth_years):>6}  {', '.join(rule.beneficial_colors)}"
        )


@app.command("show-rule")
def show_rule(
    element: str = typer.Argument(..., help="Element name (English or Vietnamese)."),
    as_json: bool = typer.Option(False, "--json", help="Print the record as JSON."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Show the active rule for an element."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_engine(config, db_path) as engine:
        rule = engine.get_rule(element)

    if as_json:
        typer.echo(json.dumps(rule.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    typer.echo(f"{rule.element.value} ({rule.element.source_name})")
    _echo_list("Birth years:", sorted(rule.birth_years))
    _echo_list("Compatible colours:", rule.compatible_colors)
    _echo_list("Beneficial colours:", rule.beneficial_colors)
    _echo_list("Avoid colours:", rule.avoid_colors)
    _echo_list("Lucky directions:", rule.lucky_directions)
    _echo_list("Lucky numbers:", rule.lucky_numbers)
    for kind, members in rule.relations.items():
        _echo_list(f"{kind.value}:", sorted(e.value for e in members))


@app.command("delete-rule")
def delete_rule(
    element: str = typer.Argument(..., help="Element whose active rule to soft-delete."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Soft-delete the active rule for an element.

    Ranking for people of that element fails until a new rule is created.
    """
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if not yes:
        typer.confirm(f"Soft-delete the active rule for '{element}'?", abort=True)

    with _open_engine(config, db_path) as engine:
        ack = engine.rules.soft_delete(element)

    typer.echo(f"  {ack.element.value} deleted at {ack.deleted_at.isoformat()}.")
    typer.echo("[OK] Rule deleted.")


# ── Queries ───────────────────────────────────────────────────────────────────

@app.command("classify")
def classify_cmd(
    birth_year: int = typer.Argument(..., help="Birth year (1900-2100)."),
) -> None:
    """Print the element for a birth year (no database needed)."""
    from fengshui_engine.elements.classifier import classify, validate_birth_year
    from fengshui_engine.errors import ValidationError

    try:
        element = classify(validate_birth_year(birth_year))
    except ValidationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"{birth_year}: {element.value} ({element.source_name})")


@app.command("analyze")
def analyze_cmd(
    birth_year: int = typer.Argument(..., help="Birth year (1900-2100)."),
    gender: Optional[str] = typer.Option(None, "--gender", help="male or female."),
    focus: Optional[str] = typer.Option(
        None, "--focus", help="career, health, relationship or wealth.",
    ),
    preferences: Optional[str] = typer.Option(
        None, "--preferences", help="Free-text preferences; adds tips to the guidance.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the analysis as JSON."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Full element analysis for a birth year."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_engine(config, db_path) as engine:
        result = engine.analyze(birth_year, gender=gender, focus_area=focus, preferences=preferences)

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    typer.echo(f"{result.birth_year}: {result.element.value} (via {result.resolved_by})")
    _echo_list("Compatible colours:", result.compatible_colors)
    _echo_list("Beneficial colours:", result.beneficial_colors)
    _echo_list("Avoid colours:", result.avoid_colors)
    _echo_list("Lucky directions:", result.lucky_directions)
    _echo_list("Lucky numbers:", result.lucky_numbers)
    typer.echo("")
    typer.echo(result.guidance)
    if result.personalized_advice is not None:
        typer.echo("")
        typer.echo(f"Advice ({result.focus_area.value}):")
        for line in result.personalized_advice:
            typer.echo(f"  - {line}")


@app.command("compatibility")
def compatibility_cmd(
    element_a: str = typer.Argument(..., help="Element whose rule is consulted."),
    element_b: str = typer.Argument(..., help="The other element."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Directional compatibility of element A towards element B."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_engine(config, db_path) as engine:
        result = engine.compatibility(element_a, element_b)

    typer.echo(
        f"{result.element_a.value} -> {result.element_b.value}: "
        f"{result.relation_kind.value} ({result.score:+d})"
    )
    typer.echo(f"  {result.description}")


# ── Catalog & ranking ─────────────────────────────────────────────────────────

@app.command("import-catalog")
def import_catalog(
    catalog_file: str = typer.Option(..., "--file", "-f", help="Catalog JSON file."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Validate a catalog JSON file and upsert its items."""
    from fengshui_engine.ingestion.catalog_json import import_catalog_file

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(catalog_file)
    if not path.exists():
        typer.echo(f"[ERROR] Catalog file not found: {path}", err=True)
        raise typer.Exit(code=1)

    with _open_engine(config, db_path) as engine:
        count = import_catalog_file(engine.catalog.conn, path)

    typer.echo(f"  Upserted {count} item(s).")
    typer.echo("[OK] Catalog imported.")


@app.command("rank")
def rank_cmd(
    birth_year: int = typer.Argument(..., help="Birth year (1900-2100)."),
    category: Optional[str] = typer.Option(None, "--category", help="Exact category filter."),
    limit: Optional[int] = typer.Option(None, "--limit", help="Maximum items returned."),
    no_prioritize: bool = typer.Option(
        False, "--no-prioritize", help="Weight beneficial colours at 20 instead of 30.",
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Write CSV and JSON reports to this directory.",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Rank catalog items for a birth year."""
    from fengshui_engine.recommendations.reporter import write_ranking_csv, write_ranking_json

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_engine(config, db_path) as engine:
        result = engine.rank(
            birth_year,
            category=category,
            limit=limit,
            prioritize_beneficial=False if no_prioritize else None,
        )

    typer.echo(f"{birth_year}: {result.element.value}")
    _echo_list("Beneficial colours:", result.beneficial_colors)
    _echo_list("Avoid colours:", result.avoid_colors)
    typer.echo("")
    if not result.items:
        typer.echo("No matching items.")
    for position, ranked in enumerate(result.items, start=1):
        item = ranked.item
        typer.echo(
            f"{position:>3}. {ranked.score:>7.2f}  {item.item_id:<16} {item.name} "
            f"(rating {item.rating}, price {item.price})"
        )

    if output_dir:
        out = Path(output_dir)
        csv_path = write_ranking_csv(result, out)
        json_path = write_ranking_json(result, out)
        typer.echo(f"  Reports written: {csv_path}, {json_path}")


if __name__ == "__main__":
    app()
