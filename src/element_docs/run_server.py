"""Executable entry point for launching the browse API.

Environment Variables:
    PORT (int): Override listening port (default 8000).
    ELEMENT_DOCS_MODEL (path): Canonical JSON model to serve.

Example:
    $ ELEMENT_DOCS_MODEL=cimcore.json python -m element_docs.run_server
"""

from __future__ import annotations

import os
from typing import Optional

import uvicorn

from .app import app


def main(host: str = "0.0.0.0", port: Optional[int] = None) -> None:
    """Launch the ASGI server with development-friendly defaults."""
    uvicorn.run(app, host=host, port=port or int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
