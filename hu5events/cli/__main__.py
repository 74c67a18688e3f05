"""Allow ``python -m hu5events.cli`` execution (delegates to the scraper)."""

from hu5events.cli.scrape import main

main()
