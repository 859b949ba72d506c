"""Pull request review-latency metrics for GitHub, with a file-backed API cache."""

__version__ = "0.1.0"