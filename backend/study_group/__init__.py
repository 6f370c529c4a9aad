"""Study Group - multi-persona tutoring backend."""

__version__ = "0.1.0"
