"""Stage-based agent orchestration with streaming responses and tool dispatch."""

__version__ = "0.1.0"
