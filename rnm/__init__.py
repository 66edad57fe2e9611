"""
rnm - Batch Rename Tool

Preview and apply bulk file renames safely: collisions are reported,
swaps and cycles go through temporary names, and a failed step rolls
back everything already applied.
"""

__version__ = "1.0.0"
