"""Bend a flat image along an editable curved path and export it as PNG."""
