"""
Command-line interface for spsplot.

Quick reaction kinematics and focal-plane predictions from the terminal.

Usage:
    spsplot nuclide 13C                        # Mass excess and rest mass
    spsplot qvalue 12C d p                     # Q-value and threshold
    spsplot levels 13C                         # Bundled level listing
    spsplot kinematics 12C d p -b 10 -a 35     # Ejectile energy and rigidity
    spsplot focal-plane 12C d p -b 16 -a 35    # Levels on the focal plane
    spsplot fetch-levels 13C                   # Download levels from NNDC
    spsplot config                             # Show settings
"""

from __future__ import annotations

import json
import re
import sys

import click
import pandas as pd

from .config import Config, MassConvention, setup_logging
from .exceptions import InvalidNuclideError, SpsPlotError
from .focal_plane import SpectrometerConfig, field_for_radius, map_to_focal_plane
from .kinematics import Forbidden, TwoRoots, max_excitation_energy, solve
from .levels import LevelLibrary, read_level_file
from .mass_table import load_default_mass_table
from .plot_data import LabelMode, generate, points_to_dataframe, summarize
from .reaction import Reaction, build_reaction
from .utils import format_value, nuclide_name, parse_nuclide

__all__ = [
    "cli",
]

# 12C(d,p)13C or 12C(d,p); the residual is derived, so it is optional
_REACTION_NOTATION = re.compile(r"^\s*([^(\s]+)\s*\(\s*([^,\s]+)\s*,\s*([^)\s]+)\s*\)\s*(\S*)\s*$")

_TABLE_COLUMNS = {
    "excitation_MeV": "Ex (MeV)",
    "spin_parity": "Jπ",
    "status": "status",
    "kinetic_energy_MeV": "T (MeV)",
    "rigidity_kG_cm": "Bρ (kG·cm)",
    "rho_cm": "ρ (cm)",
    "position_cm": "z (cm)",
    "in_acceptance": "in acc.",
}


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _build(target: str, projectile: str, ejectile: str, beam: float | None = None) -> Reaction:
    table = load_default_mass_table()
    return build_reaction(
        table,
        parse_nuclide(target),
        parse_nuclide(projectile),
        parse_nuclide(ejectile),
        beam_energy=beam,
    )


def parse_reaction_notation(text: str) -> tuple[str, str, str]:
    """
    Split reaction notation into target, projectile and ejectile names.

    Example:
        >>> parse_reaction_notation("12C(d,p)13C")
        ('12C', 'd', 'p')
    """
    match = _REACTION_NOTATION.match(text)
    if match is None:
        raise InvalidNuclideError(f"Cannot parse reaction '{text}' (expected e.g. 12C(d,p)13C)")
    return match.group(1), match.group(2), match.group(3)


@click.group()
@click.version_option(version="0.1.0", prog_name="spsplot")
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              default='WARNING', envvar='SPSPLOT_LOG_LEVEL', show_default=True, help='Logging verbosity')
def cli(log_level: str):
    """
    Split-pole spectrograph planning tool.

    Predicts where the states of a residual nucleus land on the focal plane
    for a given reaction, beam energy, angle and field.

    Examples:

        spsplot qvalue 12C d p

        spsplot focal-plane 12C d p -b 16 -a 35

        spsplot focal-plane 27Al d p -b 16 -a 25 --plot al.png
    """
    setup_logging(log_level)


@cli.command()
@click.argument('name')
@click.option('--atomic', is_flag=True, help='Show atomic rather than nuclear (bare) masses')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
def nuclide(name: str, atomic: bool, output_json: bool):
    """
    Look up a nuclide by name (12C, C12, C-12, d, alpha, or Z,A).

    Examples:

        spsplot nuclide 13C

        spsplot nuclide alpha --atomic
    """
    try:
        z, a = parse_nuclide(name)
        table = load_default_mass_table(MassConvention(nuclear=not atomic))
        n = table.lookup(z, a)
    except SpsPlotError as e:
        _fail(e)

    if output_json:
        data = {
            "name": n.name,
            "Z": n.z,
            "N": n.n,
            "A": n.a,
            "mass_excess_keV": n.mass_excess_keV,
            "mass_excess_unc_keV": n.mass_excess_unc_keV,
            "mass_MeV": n.mass,
            "convention": "atomic" if atomic else "nuclear",
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\n{n.name} (Z={n.z}, N={n.n}, A={n.a})")
    click.echo("=" * 40)
    unc = f" ± {n.mass_excess_unc_keV:.3f}" if n.mass_excess_unc_keV is not None else ""
    click.echo(f"\n  Mass excess:  {n.mass_excess_keV:.3f}{unc} keV")
    kind = "Atomic" if atomic else "Nuclear"
    click.echo(f"  {kind} mass: {n.mass:.6f} MeV/c²")
    click.echo()


@cli.command()
@click.argument('target')
@click.argument('projectile')
@click.argument('ejectile')
@click.option('--excitation', '-x', default=0.0, type=float, help='Residual excitation energy (MeV)')
def qvalue(target: str, projectile: str, ejectile: str, excitation: float):
    """
    Q-value and threshold of a reaction.

    Examples:

        spsplot qvalue 12C d p

        spsplot qvalue 16O p a -x 2.3
    """
    try:
        reaction = _build(target, projectile, ejectile)
    except SpsPlotError as e:
        _fail(e)

    q = reaction.q_value
    click.echo(f"\nReaction: {reaction.identifier}")
    click.echo(f"Q-value: {q:.4f} MeV")
    if excitation:
        click.echo(f"Q-value to Ex = {excitation:.3f} MeV: {q - excitation:.4f} MeV")

    if q - excitation >= 0:
        click.echo("  → Exothermic (no threshold)")
    else:
        threshold = reaction.threshold_energy(excitation)
        click.echo(f"  → Endothermic, threshold {threshold:.4f} MeV")
    click.echo()


@cli.command()
@click.argument('name')
@click.option('--file', 'path', type=click.Path(), default=None, help='Read this listing instead of the level library')
@click.option('--unit', type=click.Choice(['keV', 'MeV']), default='keV', help='Energy unit of the listing')
@click.option('--show-skipped', is_flag=True, help='List lines that could not be parsed')
def levels(name: str, path: str | None, unit: str, show_skipped: bool):
    """
    Show the excited states of a nuclide.

    Examples:

        spsplot levels 13C

        spsplot levels 29Si --show-skipped

        spsplot levels 13C --file my_levels.txt
    """
    try:
        z, a = parse_nuclide(name)
        if path:
            result = read_level_file(path, energy_unit=unit)
        else:
            result = LevelLibrary(energy_unit=unit).load(z, a)
    except SpsPlotError as e:
        _fail(e)

    click.echo(f"\n{nuclide_name(z, a)} levels: {result.summary()}\n")
    if result.levels:
        df = pd.DataFrame(
            {
                "Ex (MeV)": [lvl.energy for lvl in result],
                "ΔEx (keV)": [None if lvl.uncertainty is None else lvl.uncertainty * 1000 for lvl in result],
                "Jπ": [lvl.spin_parity for lvl in result],
                "T1/2": [lvl.half_life for lvl in result],
                "approx": ["~" if lvl.approximate else "" for lvl in result],
            }
        )
        click.echo(df.to_string(index=False, na_rep='---', float_format=lambda v: f"{v:.4f}"))

    if show_skipped and result.skipped:
        click.echo("\nSkipped lines:")
        for skipped in result.skipped:
            click.echo(f"  line {skipped.line_number}: {skipped.reason}")


@cli.command()
@click.argument('target')
@click.argument('projectile')
@click.argument('ejectile')
@click.option('--beam', '-b', required=True, type=float, help='Beam energy (MeV)')
@click.option('--angle', '-a', default=35.0, show_default=True, type=float, help='Lab angle (degrees)')
@click.option('--excitation', '-x', default=0.0, type=float, help='Residual excitation energy (MeV)')
@click.option('--field', default=None, type=float, help='Spectrometer field (kG) for the orbit radius')
@click.option('--charge-state', '-q', default=None, type=int, help='Ejectile charge state (default: Z)')
def kinematics(target: str, projectile: str, ejectile: str, beam: float, angle: float,
               excitation: float, field: float | None, charge_state: int | None):
    """
    Ejectile energy, momentum and rigidity at one angle.

    Examples:

        spsplot kinematics 12C d p -b 10 -a 35

        spsplot kinematics 12C d p -b 10 -a 35 -x 3.089
    """
    try:
        reaction = _build(target, projectile, ejectile, beam)
        config = SpectrometerConfig() if field is None else SpectrometerConfig(field=field)
        solution = solve(reaction, beam, angle, excitation, charge_state)
        limit = max_excitation_energy(reaction, beam, angle)
    except (SpsPlotError, ValueError) as e:
        _fail(e)

    click.echo(f"\n{reaction.identifier} at {beam:g} MeV, {angle:g}°, Ex = {excitation:.3f} MeV")
    click.echo("=" * 50)
    click.echo(f"  Q-value:            {reaction.q_value:.4f} MeV")
    click.echo(f"  Max Ex at {angle:g}°:     {format_value(limit, 3, 'MeV')}")

    if isinstance(solution, Forbidden):
        click.echo(f"\n  Kinematically forbidden: {solution.reason}")
        click.echo()
        return

    for branch, result in zip(("forward", "backward"), solution.results):
        heading = f"\n  Solution ({branch} root):" if len(solution.results) > 1 else "\n  Solution:"
        click.echo(heading)
        click.echo(f"    Ejectile T:       {result.kinetic_energy:.4f} MeV")
        click.echo(f"    Ejectile p:       {result.momentum:.4f} MeV/c")
        if result.charge_state > 0:
            hit = map_to_focal_plane(result, result.charge_state, config)
            click.echo(f"    Bρ (q={result.charge_state}):         {hit.rigidity:.3f} kG·cm")
            click.echo(f"    ρ at {config.field:g} kG:      {hit.rho:.3f} cm")
        click.echo(f"    Residual T:       {result.residual_kinetic_energy:.4f} MeV")
        click.echo(f"    Residual angle:   {result.residual_angle:.2f}°")
    click.echo()


@cli.command('focal-plane')
@click.argument('target')
@click.argument('projectile')
@click.argument('ejectile')
@click.option('--beam', '-b', default=16.0, show_default=True, type=float, help='Beam energy (MeV)')
@click.option('--angle', '-a', default=35.0, show_default=True, type=float, help='Spectrometer angle (degrees)')
@click.option('--field', default=None, type=float, help='Field (kG), overrides --config')
@click.option('--config', 'config_path', type=click.Path(), default=None, help='Spectrometer settings JSON')
@click.option('--levels-file', type=click.Path(), default=None, help='Level listing for the residual')
@click.option('--charge-state', '-q', default=None, type=int, help='Ejectile charge state (default: Z)')
@click.option('--label-mode', type=click.Choice([m.value for m in LabelMode]),
              default=LabelMode.EXCITATION.value, help='Quantity shown as point label')
@click.option('--center-on', type=float, default=None,
              help='Set the field so this excitation energy sits on the reference orbit')
@click.option('--root', type=click.Choice(['forward', 'backward']), default='forward', show_default=True,
              help='Root used by --center-on when the excitation energy is double-valued')
@click.option('--also', multiple=True, help='Extra reaction on the same plot, e.g. "12C(d,t)11C"')
@click.option('--format', 'fmt', type=click.Choice(['table', 'csv', 'json']),
              default='table', help='Output format')
@click.option('--plot', 'plot_path', type=click.Path(), default=None, help='Save a focal-plane figure')
def focal_plane(target: str, projectile: str, ejectile: str, beam: float, angle: float,
                field: float | None, config_path: str | None, levels_file: str | None,
                charge_state: int | None, label_mode: str, center_on: float | None, root: str,
                also: tuple[str, ...], fmt: str, plot_path: str | None):
    """
    Place the levels of the residual nucleus on the focal plane.

    Examples:

        spsplot focal-plane 12C d p -b 16 -a 35

        spsplot focal-plane 12C d p --center-on 3.089 --plot c13.png

        spsplot focal-plane 12C d p --also "12C(d,t)11C" --plot both.png

        spsplot focal-plane 28Si d p --format csv > si29.csv
    """
    try:
        config = SpectrometerConfig.load(config_path) if config_path else SpectrometerConfig()
        if field is not None:
            config = config.with_field(field)

        reactions = [_build(target, projectile, ejectile, beam)]
        for notation in also:
            reactions.append(_build(*parse_reaction_notation(notation), beam))

        main = reactions[0]
        if center_on is not None:
            solution = solve(main, beam, angle, center_on, charge_state)
            if isinstance(solution, Forbidden):
                raise ValueError(f"cannot centre on Ex = {center_on} MeV: {solution.reason}")
            note = ""
            if isinstance(solution, TwoRoots):
                chosen = solution.forward if root == 'forward' else solution.backward
                note = f" ({root} root of two)"
            else:
                chosen = solution.result
            q = charge_state if charge_state is not None else main.ejectile.z
            config = config.with_field(field_for_radius(chosen, q, config.reference_radius))
            click.echo(f"Field set to {config.field:.4f} kG to centre Ex = {center_on:.3f} MeV{note}",
                       err=True)

        series = {}
        library = LevelLibrary()
        for index, reaction in enumerate(reactions):
            residual = reaction.residual
            if index == 0 and levels_file:
                level_set = read_level_file(levels_file)
            else:
                level_set = library.load_or_empty(residual.z, residual.a)
            if not level_set.levels:
                click.echo(f"Warning: no levels for {residual.name}", err=True)
            series[reaction.identifier] = generate(
                reaction, beam, angle, config, level_set, label_mode, charge_state
            )
    except (SpsPlotError, ValueError) as e:
        _fail(e)

    frames = []
    for identifier, points in series.items():
        df = points_to_dataframe(points)
        df.insert(0, "reaction", identifier)
        frames.append(df)
    df_all = pd.concat(frames, ignore_index=True)

    if fmt == 'csv':
        click.echo(df_all.to_csv(index=False))
    elif fmt == 'json':
        click.echo(df_all.to_json(orient='records', indent=2))
    else:
        click.echo(f"\nB = {config.field:.4f} kG, θ = {angle:g}°, T_beam = {beam:g} MeV, "
                   f"acceptance ρ = {config.rho_min:g}-{config.rho_max:g} cm")
        for identifier, points in series.items():
            counts = summarize(points)
            click.echo(f"\n{identifier}: {counts['levels']} levels, {counts['in_acceptance']} points "
                       f"in acceptance, {counts['forbidden']} forbidden, {counts['ambiguous']} ambiguous\n")
            df = points_to_dataframe(points)[list(_TABLE_COLUMNS)].rename(columns=_TABLE_COLUMNS)
            if len(df):
                click.echo(df.to_string(index=False, na_rep='---', float_format=lambda v: f"{v:.3f}"))

    if plot_path:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from .plotting import plot_focal_plane

        fig = plot_focal_plane(series, config)
        fig.savefig(plot_path, dpi=150)
        plt.close(fig)
        click.echo(f"Saved plot to {plot_path}", err=True)


@cli.command('fetch-levels')
@click.argument('name')
@click.option('--output-dir', type=click.Path(), default=None, help='Directory for the listing (default: level library)')
@click.option('--force', is_flag=True, help='Overwrite an existing listing')
def fetch_levels(name: str, output_dir: str | None, force: bool):
    """
    Download adopted levels from NNDC NuDat into the level library.

    Examples:

        spsplot fetch-levels 13C

        spsplot fetch-levels 29Si --output-dir ./levels --force
    """
    from .nndc import download_levels

    try:
        z, a = parse_nuclide(name)
        path = download_levels(z, a, output_dir, force=force)
        result = read_level_file(path)
    except SpsPlotError as e:
        _fail(e)

    click.echo(f"Saved {nuclide_name(z, a)} levels to {path} ({result.summary()})")


@cli.command()
@click.option('--save', 'save_path', type=click.Path(), default=None,
              help='Write the default spectrometer settings as JSON')
@click.option('--field', default=None, type=float, help='Field (kG) to store with --save')
def config(save_path: str | None, field: float | None):
    """
    Show the active configuration.

    Examples:

        spsplot config

        spsplot config --save sps.json --field 9.1
    """
    try:
        spectrometer = SpectrometerConfig() if field is None else SpectrometerConfig(field=field)
    except SpsPlotError as e:
        _fail(e)

    click.echo("\nspsplot configuration")
    click.echo("=" * 40)
    click.echo(f"  Data directory:    {Config.DATA_DIR}")
    click.echo(f"  Mass table:        {Config.MASS_FILE}")
    click.echo(f"  Level directory:   {Config.LEVEL_DIR}")
    click.echo(f"  Download timeout:  {Config.DOWNLOAD_TIMEOUT} s")
    click.echo(f"  Request delay:     {Config.REQUEST_DELAY} s")
    click.echo(f"  Log level:         {Config.LOG_LEVEL}")
    click.echo("\nSpectrometer:")
    for key, value in spectrometer.to_dict().items():
        click.echo(f"  {key:<18} {value:g}")

    if save_path:
        spectrometer.save(save_path)
        click.echo(f"\nSaved to {save_path}")
    click.echo()


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
