"""Parsers for sitemap XML, robots.txt and page HTML."""
