"""aikit core: data models, errors and the streaming HTTP client."""
