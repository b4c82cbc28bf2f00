"""gitback - back up GitHub repositories and gists to local disk."""

__version__ = "0.3.0"
