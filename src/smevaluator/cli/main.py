# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
smevaluator CLI - Main Entry Point

Usage:
    smevaluator [OPTIONS] COMMAND [ARGS]...

Examples:
    smevaluator value request.json
    smevaluator --config engine.yaml value request.json --output result.json
    smevaluator sectors
"""

import json
import sys

import click

from smevaluator import __version__
from smevaluator.application.valuation_service import ValuationRequest, ValuationService
from smevaluator.config.settings import EngineSettings
from smevaluator.domain.exceptions import ValuationError
from smevaluator.domain.services.sector_registry import SectorRegistry

from .utils import setup_logging

CONTEXT_SETTINGS = dict(
    help_option_names=["-h", "--help"],
    max_content_width=120,
)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, dir_okay=False),
    envvar="SMEVAL_CONFIG",
    help="Engine configuration file (YAML)"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    envvar="SMEVAL_LOG_LEVEL",
    help="Logging level"
)
@click.option(
    "--log-file",
    type=click.Path(),
    envvar="SMEVAL_LOG_FILE",
    help="Log file path"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (same as --log-level DEBUG)"
)
@click.version_option(
    version=__version__,
    prog_name="smevaluator"
)
@click.pass_context
def cli(ctx, config, log_level, log_file, verbose):
    """smevaluator - SME valuation engine

    Values a small or medium-sized company from up to three fiscal years of
    statements and a qualitative risk profile.

    \b
    EXAMPLES:
      $ smevaluator value request.json
      $ smevaluator sectors
    """
    setup_logging("DEBUG" if verbose else log_level, log_file)

    settings = EngineSettings.from_yaml(config) if config else EngineSettings()
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _registry(settings: EngineSettings) -> SectorRegistry:
    return SectorRegistry.from_yaml(settings.resolved_sectors_path)


@cli.command("value")
@click.argument("request_file", type=click.File("r"))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the result to a file instead of stdout")
@click.pass_context
def value(ctx, request_file, output):
    """Value the company described in REQUEST_FILE (JSON, '-' for stdin)."""
    settings = ctx.obj["settings"]
    try:
        payload = json.load(request_file)
    except json.JSONDecodeError as exc:
        click.echo(f"Error: request is not valid JSON ({exc})", err=True)
        sys.exit(1)

    try:
        service = ValuationService(settings=settings, registry=_registry(settings))
        result = service.value(ValuationRequest.from_dict(payload))
    except ValuationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    rendered = json.dumps(result.to_dict(), indent=2)
    if output:
        with open(output, "w") as f:
            f.write(rendered + "\n")
        click.echo(f"Result written to {output}", err=True)
    else:
        click.echo(rendered)


@cli.command("sectors")
@click.option("--json", "as_json", is_flag=True, help="Print the catalogue as JSON")
@click.pass_context
def sectors(ctx, as_json):
    """List the sector profiles and their method weights."""
    registry = _registry(ctx.obj["settings"])
    profiles = sorted(registry.profiles.values(), key=lambda p: p.code)

    if as_json:
        catalogue = {
            p.code: {
                "name": p.name,
                "methods": {m.value: float(w) for m, w in p.methods.items()},
                "naf_prefixes": list(p.naf_prefixes),
            }
            for p in profiles
        }
        click.echo(json.dumps(catalogue, indent=2))
        return

    for profile in profiles:
        weights = ", ".join(f"{m.value}={w}" for m, w in profile.methods.items())
        click.echo(f"{profile.code:<12} {profile.name:<40} {weights}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
