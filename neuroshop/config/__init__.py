"""Configuration: environment settings and provider definitions."""
