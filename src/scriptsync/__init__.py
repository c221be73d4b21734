"""Mirror a remote script project against a local directory tree."""

__version__ = "0.3.0"
