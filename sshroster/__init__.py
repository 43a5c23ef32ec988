"""sshroster: browse, edit and launch SSH connection profiles from the terminal."""

__version__ = "0.3.0"
