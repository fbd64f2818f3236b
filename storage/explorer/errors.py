class ExplorerConfigError(Exception):
    """Invalid or unusable explorer database configuration. Fatal at startup."""
