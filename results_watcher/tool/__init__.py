"""Command line tool for running and querying results-watcher."""
