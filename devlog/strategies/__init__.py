"""Concrete implementations of the AI layer's interfaces."""
