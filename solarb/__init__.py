"""Find, simulate and rank cyclic swap paths across Solana liquidity pools."""

__version__ = "0.1.0"