"""Testing helpers – in-memory log service, sample domain and pytest fixtures."""
