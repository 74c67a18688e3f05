"""YAML sources-table loader.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
#   1. hu5events/config/sources.yaml - Bundled venue/source table
#   2. SOURCES_PATH / --config       - Replacement table for a deployment
#   3. Environment vars (Settings)   - Runtime knobs (timeouts, cache path)
#
# The YAML is validated into a frozen `SourcesTable`; anything that does
# not validate is reported as a ConfigurationError before any fetch runs.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from hu5events.models.source import SourcesTable
from hu5events.utils.errors import ConfigurationError

DEFAULT_SOURCES_PATH = Path(__file__).parent / "sources.yaml"


def load_config(path: str | Path | None = None) -> SourcesTable:
    """Load and validate the sources table.

    Args:
        path: Path to a YAML sources table.  ``None`` or empty loads the
              bundled table.

    Returns:
        The validated, immutable sources table.

    Raises:
        ConfigurationError: The file is missing, is not YAML, or does not
            describe a valid table.
    """
    config_path = Path(path) if path else DEFAULT_SOURCES_PATH
    if not config_path.exists():
        raise ConfigurationError(f"Sources table not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Sources table is not valid YAML: {exc}") from exc

    try:
        return SourcesTable.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Sources table {config_path} is invalid: {exc.error_count()} error(s)\n{exc}"
        ) from exc
