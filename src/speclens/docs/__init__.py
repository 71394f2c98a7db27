"""Standalone Markdown and HTML documentation for a loaded specification."""

from speclens.docs.generator import DocumentationGenerator, output_filename

__all__ = ["DocumentationGenerator", "output_filename"]
