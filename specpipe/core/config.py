"""
Configuration management for specpipe
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

from .models import BiblioEntry, MarkdownOptions, PostprocessOptions, SpecConfig

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class Config:
    """Application configuration"""

    # External xref lookups
    XREF_ENDPOINT: str = os.getenv('XREF_ENDPOINT', 'https://respec.org/xref')
    HTTP_TIMEOUT: float = float(os.getenv('HTTP_TIMEOUT', '10.0'))

    # Assertion export defaults
    SPEC_DIR: str = os.getenv('SPEC_DIR', 'spec')
    ASSERTIONS_BASE_URL: str = os.getenv('ASSERTIONS_BASE_URL', 'https://spec.openuji.dev')

    # Postprocessing defaults
    DEFAULT_SUPPRESS_CLASS: str = os.getenv('SUPPRESS_CLASS', 'no-link-warnings')

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def get(cls, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get configuration value"""
        return getattr(cls, key, default)

    @classmethod
    def assertions_base(cls, spec: str, version: str) -> str:
        """Published location of a spec version, used as the assertion URL base."""
        return f"{cls.ASSERTIONS_BASE_URL.rstrip('/')}/{spec}/{version}/"


def load_postprocess_options(path: Union[str, Path]) -> PostprocessOptions:
    """
    Load postprocess options from a YAML file.

    Resolver objects cannot be expressed in YAML; an ``xref`` section holding
    only ``specs`` lists is attached to the default respec resolver.

    Args:
        path: Path to the options file

    Returns:
        Validated PostprocessOptions
    """
    options_path = Path(path)
    if not options_path.exists():
        raise FileNotFoundError(f"Options file not found: {options_path}")

    with open(options_path, 'r') as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    xref_raw = raw.pop('xref', None)
    options = PostprocessOptions.model_validate(raw)

    if xref_raw:
        from ..services.xref.resolver import RespecXrefResolver
        from .models import XrefOptions

        entries = xref_raw if isinstance(xref_raw, list) else [xref_raw]
        options.xref = [
            XrefOptions(
                specs=entry.get('specs'),
                resolver=RespecXrefResolver(entry.get('endpoint') or Config.XREF_ENDPOINT),
            )
            for entry in entries
        ]

    logger.info(f"Loaded postprocess options from {options_path}")
    return options


def from_respec_config(
    respec: Dict[str, Any],
    postprocess: Optional[PostprocessOptions] = None,
) -> SpecConfig:
    """
    Adapt a ReSpec ``respecConfig`` object.

    Mapped keys:
        specStatus  -> metadata["status"]
        shortName   -> metadata["short_name"]
        localBiblio -> postprocess.biblio.entries (merged over existing entries)
        lint        -> postprocess.diagnostics.ids_and_links (only when a bool)

    ``metadata``, ``postprocess`` and ``markdown`` keys are validated as the
    matching sections; every other key is kept in ``extra``.

    Args:
        respec: The ReSpec configuration
        postprocess: Options to start from instead of the defaults
    """
    rest = dict(respec)
    spec_status = rest.pop('specStatus', None)
    short_name = rest.pop('shortName', None)
    local_biblio = rest.pop('localBiblio', None)
    lint = rest.pop('lint', None)

    raw_postprocess = rest.pop('postprocess', None) or {}
    if postprocess is not None:
        # Resolvers are shared; only the sections edited below are copied
        options = postprocess.model_copy(update={
            'biblio': postprocess.biblio.model_copy(deep=True),
            'diagnostics': postprocess.diagnostics.model_copy(),
        })
    else:
        options = PostprocessOptions.model_validate(raw_postprocess)
    metadata = dict(rest.pop('metadata', None) or {})
    markdown = MarkdownOptions.model_validate(rest.pop('markdown', None) or {})

    if spec_status:
        metadata['status'] = spec_status
    if short_name:
        metadata['short_name'] = short_name

    if isinstance(local_biblio, dict):
        for key, entry in local_biblio.items():
            if not isinstance(entry, dict):
                continue
            options.biblio.entries[key] = BiblioEntry.model_validate({'id': key, **entry})

    if isinstance(lint, bool):
        options.diagnostics.ids_and_links = lint

    unsupported = sorted(rest)
    if unsupported:
        logger.debug(f"Unsupported respecConfig keys kept as extra: {unsupported}")
    return SpecConfig(metadata=metadata, postprocess=options, markdown=markdown, extra=rest)


def load_respec_config(path: Union[str, Path], postprocess: Optional[PostprocessOptions] = None) -> SpecConfig:
    """Load a respecConfig object from a JSON or YAML file and adapt it."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"respecConfig file not found: {config_path}")

    with open(config_path, 'r') as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"respecConfig must be a mapping: {config_path}")

    logger.info(f"Loaded respecConfig from {config_path}")
    return from_respec_config(raw, postprocess)
