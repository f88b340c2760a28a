"""Deployable services built on the channelhub core."""
