"""CrisisConnect abuse-prevention backend: login attempt limiting and request rate limits."""
