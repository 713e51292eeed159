"""Test suite for the coupled-field simulation.

This package contains:
- Unit tests for the kernels (grid, constitutive relations, update, braiding)
- Integration tests for the driver loop, CSV sink and command line
"""
