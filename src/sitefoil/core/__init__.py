"""Core data models for sitefoil."""
