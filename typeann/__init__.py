"""typeann: show or inject inferred type information into source files."""

__version__ = "0.1.0"
