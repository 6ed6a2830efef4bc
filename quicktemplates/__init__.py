"""QuickTemplates: scaffold Julia packages from layered TOML and .env configuration."""

__version__ = "0.1.0"
