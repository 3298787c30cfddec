"""sitekit - task runner for Jekyll + esbuild sites."""

__version__ = "0.1.0"
