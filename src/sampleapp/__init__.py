"""Demonstration app: one endpoint per okapi capability."""
