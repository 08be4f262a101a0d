"""Direct-messaging conversation data-access layer."""
