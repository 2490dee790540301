import json
import logging

import click

from valuecast.config import Settings
from valuecast.logging_config import setup_logging

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Valuecast - multi-model probabilistic valuation ensemble"""
    settings = Settings()
    setup_logging(settings.log_dir, "DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


def _load_history(returns_file):
    """Parse a returns file into (returns, price_points); one of them is None."""
    from valuecast.analysis.errors import InvalidInputError

    try:
        payload = json.load(returns_file)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"returns file is not valid JSON: {e}") from e

    if not isinstance(payload, list):
        raise InvalidInputError("returns file must hold a JSON list")

    if payload and all(isinstance(item, list) and len(item) == 2 for item in payload):
        return None, [(d, p) for d, p in payload]

    if all(isinstance(item, (int, float)) and not isinstance(item, bool) for item in payload):
        return [float(r) for r in payload], None

    raise InvalidInputError(
        "returns file must list numeric monthly returns or [date, price] pairs"
    )


@cli.command()
@click.option("--value", "current_value", type=float, required=True,
              help="Current total value of the asset or portfolio")
@click.option("--years-old", type=float, default=1.0, show_default=True,
              help="Asset age in years")
@click.option("--licensed/--unlicensed", default=False, show_default=True,
              help="Whether the asset carries a licensed brand")
@click.option("--growth", type=float, default=None,
              help="Recent annual growth as a fraction (default: derived or 0.05)")
@click.option("--returns-file", type=click.File("r"), default=None,
              help="JSON list of monthly returns, or of [date, price] pairs")
@click.option("--paths", "num_paths", type=int, default=None,
              help="Simulated paths per model (default: VC_SIMULATION_NUM_PATHS)")
@click.option("--horizon", "horizon_years", type=int, default=None,
              help="Primary horizon in years (default: VC_SIMULATION_HORIZON_YEARS)")
@click.option("--seed", type=int, default=None, help="Seed for reproducible output")
@click.option("--indent", type=int, default=2, show_default=True)
@click.pass_obj
def simulate(
    settings: Settings,
    current_value: float,
    years_old: float,
    licensed: bool,
    growth: float | None,
    returns_file,
    num_paths: int | None,
    horizon_years: int | None,
    seed: int | None,
    indent: int,
):
    """Run the ensemble and print the JSON report."""
    from valuecast.analysis.errors import InvalidInputError
    from valuecast.analysis.inputs import build_simulation_input
    from valuecast.analysis.simulation import run_valuation

    overrides = {}
    if num_paths is not None:
        overrides["num_paths"] = num_paths
    if horizon_years is not None:
        overrides["horizon_years"] = horizon_years
    config = settings.to_simulation_config(**overrides)

    returns = None
    price_points = None

    try:
        if returns_file is not None:
            returns, price_points = _load_history(returns_file)

        sim_input = build_simulation_input(
            current_value=current_value,
            years_old=years_old,
            is_licensed=licensed,
            historical_growth=growth,
            historical_returns=returns,
            price_points=price_points,
        )
        report = run_valuation(
            sim_input,
            config,
            seed=seed if seed is not None else settings.simulation_seed,
            max_workers=settings.simulation_max_workers,
        )
    except InvalidInputError as e:
        raise click.ClickException(str(e)) from e

    for warning in report.primary.warnings:
        click.echo(f"warning: {warning}", err=True)

    click.echo(json.dumps(report.to_record(), indent=indent))


@cli.command("show-config")
@click.pass_obj
def show_config(settings: Settings):
    """Print the effective simulation configuration."""
    config = settings.to_simulation_config()
    click.echo(config.model_dump_json(indent=2))
    total = sum(config.weights.values())
    if abs(total - 1.0) > 1e-9:
        click.echo(f"warning: model weights sum to {total:.4f}, expected 1.0", err=True)


if __name__ == "__main__":
    cli()
