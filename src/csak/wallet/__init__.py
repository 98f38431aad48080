"""CIP-30 message signing."""
