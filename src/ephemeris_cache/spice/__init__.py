"""Kernel reader layer (SPICE via cspyce)."""
