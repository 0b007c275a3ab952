"""Observability helpers for lbverify."""
