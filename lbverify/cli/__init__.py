"""lbverify command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``lbverify`` script).
"""

from lbverify.cli.main import cli

__all__ = ["cli"]
