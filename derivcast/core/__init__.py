"""Dispatch core: resolution, templating, event building and orchestration."""
