"""ClawAgent: a conversational agent runtime with tool calling."""

__version__ = "0.1.0"
