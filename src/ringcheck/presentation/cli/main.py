from __future__ import annotations

import json
import sys

from typer import Exit, Option, Typer

from ringcheck import __version__
from ringcheck.domain.errors import ScenarioError, VerificationError
from ringcheck.infrastructure.config.settings import get_settings
from ringcheck.infrastructure.logging.config import configure_logging
from ringcheck.infrastructure.scenarios import load_scenarios

from . import scenarios as scenarios_module
from .formatters import human_outcome, outcome_to_dict
from .infra import build_verifier, run_sync

_app_help = (
    "Differential settlement oracle: compares simulated ring settlements with the "
    "Transfer events emitted by the ledger."
)

app: Typer = Typer(help=_app_help, add_completion=False)
app.add_typer(scenarios_module.scenarios, name="scenarios")


@app.command("version")
def version_cmd() -> None:
    """Print package version."""
    print(__version__)


@app.command("verify")
def verify_cmd(
    harness: str = Option(..., "--harness", "-H", help="Harness factory as 'module:callable'."),
    file: str | None = Option(None, "--file", "-f", help="Scenario JSON file (defaults to the built-in set)."),
    only: list[int] | None = Option(None, "--only", help="Run only these scenario indices (repeatable)."),
    json_output: bool = Option(False, "--json", help="Print one JSON object per scenario."),
) -> None:
    """Verify scenarios sequentially; stops at the first failing one.

    Exit code 0 when every scenario passes, 2 on the first FAIL.
    """
    settings = get_settings()
    configure_logging(stream=sys.stderr)
    selected = load_scenarios(file or settings.scenarios_file)
    if only:
        try:
            selected = [selected[i] for i in only]
        except IndexError as exc:
            raise ScenarioError(f"Scenario index out of range in --only {only}") from exc

    async def _run():
        verifier = await build_verifier(harness, settings)
        return await verifier.verify_all(selected)

    outcomes = run_sync(_run())
    for outcome in outcomes:
        print(json.dumps(outcome_to_dict(outcome)) if json_output else human_outcome(outcome))
    if any(not o.passed for o in outcomes):
        raise Exit(code=2)


def cli(argv: list[str] | None = None) -> int:
    """Run the Typer application with top-level error handling.

    VerificationError / ScenarioError / ValueError -> exit code 2, unexpected
    exceptions -> exit code 1. Accepts argv for programmatic use and tests.
    """
    try:
        if argv is not None:
            old_argv = sys.argv
            sys.argv = [old_argv[0]] + argv
            try:
                app()
            finally:
                sys.argv = old_argv
        else:
            app()
        return 0
    except (VerificationError, ScenarioError) as err:
        print(f"[ERROR] {err}", file=sys.stderr)
        return 2
    except ValueError as ve:
        print(f"[ERROR] {ve}", file=sys.stderr)
        return 2
    except SystemExit as se:
        return int(se.code) if isinstance(se.code, int) else 0
    except Exception as exc:
        print(f"[ERROR] unexpected: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(cli())
