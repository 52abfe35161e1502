"""Server-rendered pages (root landing page)."""

from thesis_support.pages.root import render_root_page

__all__ = ["render_root_page"]
