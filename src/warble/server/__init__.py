"""Serving: request handling, rendering, dev rebuilds, socket lifecycle."""
