"""Core domain: error taxonomy, classification catalog, configuration, logging."""
