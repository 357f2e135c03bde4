"""Execution of external encoder, extractor and packager processes."""
