"""Match a candidate's CV against job postings from Google Jobs."""

__version__ = "1.0.0"
