"""Network side of SitemapScout: fetching, scheduling, sitemap discovery and crawl orchestration."""
