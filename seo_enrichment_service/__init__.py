"""SEO enrichment service: schedules rate-limited domain metric lookups."""

__version__ = "0.1.0"
