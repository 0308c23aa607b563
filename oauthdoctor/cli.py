"""
Command-line entry point for the OAuth doctor.

Usage:
    oauthdoctor --config-file ~/google-ads.yaml --customer-id 123-456-7890

    # Diagnose the web flow with a stored refresh token
    oauthdoctor --config-file ~/google-ads.yaml --oauth-type web -v

Exit codes: 0 if the credentials work, 1 if a failure was diagnosed,
2 on configuration or configuration-file errors.
"""

import logging
import sys
from typing import Optional

import click

from .config import DiagnosticConfig, FlowKind, normalize_customer_id
from .console import OperatorConsole, TerminalConsole
from .coordinator import FlowOrchestrator
from .credentials import open_credential_store
from .exceptions import ConfigIOError, ConfigurationError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DIAGNOSED = 1
EXIT_CONFIG_ERROR = 2


def read_customer_id(console: OperatorConsole) -> str:
    """
    Prompt until the operator enters a non-empty customer ID.

    Returns:
        Customer ID without dashes

    Raises:
        click.Abort: If stdin closes before an ID is entered
    """
    while True:
        customer_id = normalize_customer_id(
            console.read_line("Please enter a Google Ads account ID")
        )
        if customer_id:
            return customer_id


def setup_logging(verbose: bool) -> None:
    """Configure root logging for the command line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
    )


@click.command()
@click.option(
    "--config-file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Client library configuration file (google-ads.yaml or ads.properties)",
)
@click.option(
    "--customer-id",
    help="Google Ads account ID to probe (prompted if omitted)",
)
@click.option(
    "--oauth-type",
    type=click.Choice([kind.value for kind in FlowKind]),
    default=FlowKind.INSTALLED_APP.value,
    show_default=True,
    help="OAuth2 flow to diagnose",
)
@click.option("--no-browser", is_flag=True, help="Print the consent URL instead of opening a browser")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def cli(
    config_file: str,
    customer_id: Optional[str],
    oauth_type: str,
    no_browser: bool,
    verbose: bool,
) -> None:
    """
    OAuth Doctor - diagnose Google Ads API OAuth2 credentials.

    Runs one pass of the selected OAuth2 flow, probes the customer account
    and walks you through fixing whatever went wrong.
    """
    setup_logging(verbose)
    console = TerminalConsole()

    try:
        store = open_credential_store(config_file)
        config = DiagnosticConfig.from_env(
            store=store,
            customer_id=customer_id or read_customer_id(console),
            flow=FlowKind(oauth_type),
            verbose=verbose,
            open_browser=not no_browser,
        )
    except (ConfigurationError, ConfigIOError) as e:
        console.error(f"Error: {e}")
        sys.exit(EXIT_CONFIG_ERROR)
    except click.Abort:
        console.error("Error: no Google Ads account ID entered")
        sys.exit(EXIT_CONFIG_ERROR)

    if verbose:
        click.echo(f"+ Using configuration file {config_file}")
        click.echo(f"+ Diagnosing the {config.flow.value} flow for {config.customer_id}")

    try:
        result = FlowOrchestrator(config, console=console).run()
    except ConfigIOError as e:
        logger.debug(f"Write-back failed: {e}")
        sys.exit(EXIT_CONFIG_ERROR)

    sys.exit(EXIT_OK if result.success else EXIT_DIAGNOSED)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
