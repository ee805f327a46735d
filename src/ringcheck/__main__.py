import sys

from ringcheck.presentation.cli.main import cli

sys.exit(cli())
