"""Local Library - Utilities Package

This package contains form validation rules, CLI output helpers and
identifier generation.
"""
