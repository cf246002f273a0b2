"""Terminal output: formatting, summary and inline images."""
