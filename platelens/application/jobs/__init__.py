"""Job dispatch and processing."""
