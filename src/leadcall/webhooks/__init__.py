"""Provider callback processing."""
