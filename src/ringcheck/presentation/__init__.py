"""Presentation layer: the ringcheck command line."""
