"""Row store, models and repositories shared by the draftbot services."""
