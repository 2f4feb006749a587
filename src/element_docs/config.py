"""Build configuration for documentation runs.

``BuildConfig`` mirrors how the rest of the package prefers explicit
configuration objects over module globals. Values can be overridden from the
``ELEMENT_DOCS_CONFIG`` environment variable using ``key=value`` pairs
separated by commas::

    ELEMENT_DOCS_CONFIG="export_version=1.2.0,copy_assets=false" element-docs build model.json out/
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Optional

DEFAULT_EXPORT_VERSION = "0.1.0"
CONFIG_ENV_VAR = "ELEMENT_DOCS_CONFIG"
MODEL_ENV_VAR = "ELEMENT_DOCS_MODEL"


@dataclass
class BuildConfig:
    """Configuration for page generation.

    Args:
        export_version: Version stamp passed to every page (``drupal_vars``).
        copy_assets: Copy the bundled static files (stylesheet, index page)
            into the output directory.
        autolink: Turn bare URLs in descriptions into links when converting
            Markdown.
    """

    export_version: str = DEFAULT_EXPORT_VERSION
    copy_assets: bool = True
    autolink: bool = True


def get_build_config(config_str: Optional[str] = None) -> BuildConfig:
    """Build a :class:`BuildConfig` from ``config_str`` or the environment.

    Unknown keys are ignored. Boolean fields accept ``true`` (any case) as
    true and everything else as false.
    """
    if config_str is None:
        config_str = os.getenv(CONFIG_ENV_VAR, "")
    config = BuildConfig()
    known = {f.name: f for f in fields(BuildConfig)}

    for pair in config_str.split(","):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        key = key.strip()
        value = value.strip()
        if key not in known:
            continue
        if isinstance(getattr(config, key), bool):
            setattr(config, key, value.lower() == "true")
        else:
            setattr(config, key, value)

    return config
