"""Shared CLI plumbing: global options, context, output and error handling."""
