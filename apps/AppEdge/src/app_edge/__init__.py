"""Edge app: local API handlers behind the gateway."""
