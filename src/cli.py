"""CLI commands for the ZIP football calculator."""
import json

import click


def _build_inputs(
    home_xg, away_xg, supremacy, expectancy, pi_home, pi_away,
    no_zip, home_team, away_team, half_factor, half_split, margin,
):
    """Build MatchInputs from either xG or supremacy/expectancy options."""
    from src.models import MatchInputs

    options = dict(
        pi_home=pi_home,
        pi_away=pi_away,
        use_zip=not no_zip,
        home_team=home_team,
        away_team=away_team,
        half_factor=half_factor,
        half_split=half_split,
        margin_pct=margin,
    )

    if supremacy is not None or expectancy is not None:
        if supremacy is None or expectancy is None:
            raise click.UsageError("--supremacy and --expectancy must be given together")
        return MatchInputs.from_supremacy(supremacy, expectancy, **options)

    if home_xg is None or away_xg is None:
        raise click.UsageError("Give --home-xg/--away-xg or --supremacy/--expectancy")
    return MatchInputs.from_xg(home_xg, away_xg, **options)


def input_options(func):
    """Shared match input options."""
    options = [
        click.option("--home-xg", type=float, help="Home expected goals (full match)"),
        click.option("--away-xg", type=float, help="Away expected goals (full match)"),
        click.option("--supremacy", type=float, help="Goal supremacy, home minus away"),
        click.option("--expectancy", type=float, help="Total goal expectancy"),
        click.option("--pi-home", default=0.0, help="Home zero-inflation probability"),
        click.option("--pi-away", default=0.0, help="Away zero-inflation probability"),
        click.option("--no-zip", is_flag=True, help="Ignore zero inflation"),
        click.option("--home-team", default="Home", help="Home team name"),
        click.option("--away-team", default="Away", help="Away team name"),
        click.option("--half-factor", type=float, help="First half share of expectancy"),
        click.option(
            "--half-split",
            type=click.Choice(["complementary", "symmetric"]),
            help="Second half scaling: 1 - f or f",
        ),
        click.option("--margin", type=float, help="Margin percentage for every period"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _calculate(**kwargs):
    from src.models import InvalidParameterError, match_calculator

    try:
        inputs = _build_inputs(**kwargs)
    except InvalidParameterError as e:
        raise click.BadParameter(str(e))

    return match_calculator.calculate(inputs)


def _resolve_profile(profile, margin):
    """Pick the margin to price with.

    --profile wins, then --margin. With neither, the configured
    MARGIN_PROFILE is used.
    """
    from src.config import get_margin_profile, settings

    if profile is None and margin is not None:
        return None

    name = profile or settings.margin_profile
    try:
        return get_margin_profile(name)
    except KeyError as e:
        if profile:
            raise click.BadParameter(str(e.args[0]), param_hint="--profile")
        raise click.ClickException(str(e.args[0]))


@click.group()
def cli():
    """ZIP football calculator CLI."""
    pass


@cli.command()
@input_options
@click.option("--profile", default=None, help="Margin profile name (overrides --margin)")
@click.option("--output", default="table", help="Output format: table or json")
def calculate(profile: str, output: str, **kwargs):
    """Calculate and price every market for a match."""
    from src.config import setup_logging
    from src.models import match_calculator

    setup_logging()

    calculation = _calculate(**kwargs)
    margin = _resolve_profile(profile, kwargs["margin"])

    priced = match_calculator.price(calculation, margin)

    if output == "json":
        result = calculation.to_dict()
        result["priced"] = priced.to_dict()
        click.echo(json.dumps(result, indent=2, default=str))
    else:
        _print_summary(calculation, priced)


def _print_summary(calculation, priced):
    """Print the headline markets as a formatted table."""
    inputs = calculation.inputs
    full = priced.periods["full"]

    click.echo("\n" + "=" * 50)
    click.echo(f"{inputs.home_team} vs {inputs.away_team}")
    click.echo("=" * 50)
    click.echo(f"Margin profile: {priced.profile.name} ({priced.profile.full:.1f}%)")

    for period, message in calculation.tail_warnings.items():
        click.echo(f"Warning ({period}): {message}")

    labels = {"home": inputs.home_team, "draw": "Draw", "away": inputs.away_team}

    click.echo("\n--- Match Result ---")
    for outcome, priced_outcome in full["1x2"].items():
        _print_row(labels[outcome], priced_outcome)

    click.echo("\n--- Goal Lines ---")
    for line, group in full["over_under"].items():
        _print_row(f"Over {line}", group["over"])
        _print_row(f"Under {line}", group["under"])

    click.echo("\n--- Both Teams To Score ---")
    _print_row("Yes", full["btts"]["yes"])
    _print_row("No", full["btts"]["no"])

    click.echo("\n--- Win to Nil / Clean Sheet ---")
    _print_row("Home Win to Nil", full["win_to_nil"]["home"])
    _print_row("Home Clean Sheet", full["clean_sheet"]["home"])


def _print_row(label: str, priced_outcome):
    odds = f"{priced_outcome.price:.2f}" if priced_outcome.price > 0 else "-"
    click.echo(f"  {label:<20} {priced_outcome.probability:>8.2%}  {odds:>8}")


@cli.command()
@input_options
@click.option(
    "--period",
    type=click.Choice(["full", "first_half", "second_half"]),
    default="full",
    help="Period to show",
)
def grid(period: str, **kwargs):
    """Show the correct-score matrix (percent) for a period."""
    import pandas as pd

    from src.config import setup_logging

    setup_logging()

    calculation = _calculate(**kwargs)
    joint = calculation.joints[period]

    frame = pd.DataFrame(joint.matrix * 100)
    frame.index.name = "H \\ A"

    click.echo(frame.to_string(float_format=lambda v: f"{v:.2f}"))
    if joint.tail_warning:
        click.echo(f"\nWarning: {joint.warning_message}")


@cli.command()
@input_options
@click.option("--profile", default=None, help="Margin profile name (overrides --margin)")
def htft(profile: str, **kwargs):
    """Show the half-time/full-time table with prices."""
    from src.config import setup_logging
    from src.models import match_calculator

    setup_logging()

    calculation = _calculate(**kwargs)
    priced = match_calculator.price(calculation, _resolve_profile(profile, kwargs["margin"]))

    click.echo(f"Margin profile: {priced.profile.name} ({priced.profile.htft:.1f}%)")

    click.echo("\n--- Half Time / Full Time ---")
    for key, priced_outcome in priced.htft.items():
        _print_row(key, priced_outcome)
    click.echo(f"\nCovered mass: {calculation.compound.htft.covered_mass:.4%}")


@cli.command()
def profiles():
    """List configured margin profiles."""
    from src.config import load_margin_profiles, setup_logging

    setup_logging()

    for name, profile in load_margin_profiles().items():
        click.echo(f"{name}: {profile.get('description', '')}")
        for key, value in profile.items():
            if key != "description":
                click.echo(f"  {key}: {value}%")


if __name__ == "__main__":
    cli()
