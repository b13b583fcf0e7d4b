"""Website analyzer: SEO, performance, content and security reports over time."""

__version__ = "1.0.0"
