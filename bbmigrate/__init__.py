"""bbmigrate — post-migration BBCode cleanup for Discourse forums."""

__version__ = "0.1.0"
