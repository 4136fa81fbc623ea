"""Command-line interface for the InceptionDB client."""
