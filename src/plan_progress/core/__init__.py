"""Pure progression logic: calendar, progress state machines, reindexing, preview."""
