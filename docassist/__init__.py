"""docassist: retrieval-augmented chat assistant over a private document corpus."""

__version__ = "0.1.0"
