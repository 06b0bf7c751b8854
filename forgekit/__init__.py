"""forgekit: one interface over GitHub- and GitLab-style hosting services."""

__version__ = "0.1.0"
