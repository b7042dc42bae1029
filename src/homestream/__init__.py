"""homestream - self-hosted music server with range streaming and on-demand HLS."""

__version__ = "0.1.0"
