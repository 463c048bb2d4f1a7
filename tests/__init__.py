"""Test suite for the dynui package.

This package contains unit and integration tests validating
layout parsing in every format, value conversion, property
validation, plugin tracking and the build pipeline.
"""
