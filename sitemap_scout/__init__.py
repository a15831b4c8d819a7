# sitemap_scout/__init__.py
"""
SitemapScout package initializer.
Defines the package version; the CLI lives in :mod:`sitemap_scout.cli`.
"""
__version__ = "0.1.0"
