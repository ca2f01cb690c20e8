"""Template discovery and instantiation for Peak sources."""
