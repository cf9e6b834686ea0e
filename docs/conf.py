"""Sphinx configuration for litestar-dpdlocal."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

project = "litestar-dpdlocal"
author = "litestar-dpdlocal contributors"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
]

exclude_patterns = ["_build"]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "litestar": ("https://docs.litestar.dev/2/", None),
    "httpx": ("https://www.python-httpx.org", None),
}

autodoc_member_order = "bysource"
autodoc_typehints = "description"
