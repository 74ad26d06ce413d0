"""Dashboard snapshot domain."""
