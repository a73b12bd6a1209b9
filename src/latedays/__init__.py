"""Late-day computation for GitLab-hosted course submissions."""

__version__ = "0.1.0"
