"""Utility functions and helpers."""

from .validation import validate_input_file, validate_input_files, validate_unique_labels

__all__ = ['validate_input_file', 'validate_input_files', 'validate_unique_labels']
