"""
Felt: Texas Hold'em decision-support engine

Hand evaluation, Monte Carlo equity, board texture analysis and a
CFR solver for constrained heads-up betting subgames.
"""

__version__ = "0.1.0"
