"""HTTP-facing contracts for wallet clients."""
