"""Entry point for `python -m lbverify`.

Usage:
    python -m lbverify create --namespace demo --selector app=nginx
    uv run python -m lbverify urls --namespace demo
"""

from __future__ import annotations

from lbverify.cli.main import cli

cli()
