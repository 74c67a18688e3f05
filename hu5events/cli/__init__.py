# =============================================================================
# hu5events/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line entry points for hu5events.  The scraper runs as a one-shot
# job (cron, CI) that prints the feed to stdout and exits, so each module
# constructs its own dependencies rather than relying on a container.
#
# Architecture Notes:
#   - argparse for argument parsing, subcommands per action.
#   - Logging is configured once per invocation and always targets stderr.
# =============================================================================

"""CLI tools for the hu5events scraper.

- ``python -m hu5events.cli.scrape run`` - scrape every enabled source and
  print the JSON event feed.
"""
