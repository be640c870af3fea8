"""
Handles the 'converge' command, which is also what a bare ``reconverge`` runs.

Brings the host in line with its manifests, prints a summary table and the
reboot reminder, and maps the outcome to an exit code.
"""

import logging
import sys
import click

from ..config import load_config
from ..context import RunContext
from ..exit_codes import (
    SUCCESS, INTERRUPTED,
    CommandError, PartialSuccessError, PreconditionError,
)
from ..render import render_report, render_banner
from ..services.convergence_service import ConvergenceDriver

logger = logging.getLogger("reconverge")


def converge(config) -> int:
    """
    Run one convergence pass.

    Returns:
        SUCCESS, unless ``general.strict_exit`` is set and something failed

    Raises:
        PreconditionError: the run could not start
        PartialSuccessError: strict exit is enabled and a stage or item failed
    """
    level = logging.getLevelName(str(config.get('logging', {}).get('level', 'INFO')).upper())
    if isinstance(level, int):
        logger.setLevel(level)

    context = RunContext.from_config(config)
    driver = ConvergenceDriver(context)

    with context.run_log:
        try:
            report = driver.run()
        except PreconditionError as e:
            # Must be logged before the run log closes
            logger.error(str(e))
            raise

    render_report(report)
    render_banner()

    if not report.success and config.get('general', {}).get('strict_exit', False):
        failed = len(report.failed_stages)
        raise PartialSuccessError(
            f"{failed} of {len(report.stages)} stages reported failures",
            succeeded=len(report.stages) - failed,
            failed=failed,
        )
    return SUCCESS


@click.command(name='converge')
def converge_handler():
    """Install and update everything declared in the manifests.

    \b
    Stages run in order: base, system_repositories, system_packages,
    sandbox_packages, language_packages, repositories, releases, hooks,
    cleanup. A failing stage is reported and the next one still runs.
    """
    try:
        sys.exit(converge(load_config()))
    except KeyboardInterrupt:
        logger.error("Interrupted by user")
        sys.exit(INTERRUPTED)
    except PreconditionError as e:
        sys.exit(e.exit_code)
    except CommandError as e:
        logger.error(str(e))
        sys.exit(e.exit_code)
