"""Qcheck: FMEA risk-record management backed by a hosted Supabase project."""

__version__ = "0.1.0"
