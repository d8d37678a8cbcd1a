"""Core functionality: configuration and state synchronization."""
