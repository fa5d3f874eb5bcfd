"""swapscan - detect on-chain atomic swap steps and walk recent blocks."""

__version__ = "0.1.0"
