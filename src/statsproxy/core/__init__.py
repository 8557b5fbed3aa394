"""Cross-cutting infrastructure: logging and exceptions."""
