"""Detection of other coding assistants."""
