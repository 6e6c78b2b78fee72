"""HTTP API for triggering and polling analysis jobs."""
