"""Local OpenCode storage: records, validation and the corpus reader."""
