"""Core routing components: discovery and dispatch."""
