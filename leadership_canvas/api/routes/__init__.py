"""Route modules, one router per area of the API."""
